"""EditingRelay -- "某用户正在编辑某字段" 指示的转发

纯转发：不落库，只做形状检查，发送者自己不会收到。
"""

from typing import Any

import structlog
from pydantic import ValidationError
from workspin.core.models import EditingSignal

from .room_hub import RoomHub, task_room

log = structlog.get_logger()


class EditingRelay:
    """编辑中指示转发器"""

    def __init__(self, hub: RoomHub) -> None:
        self._hub = hub

    def relay(self, session_id: str, data: dict[str, Any]) -> int:
        """转发给 task:{taskId} 中除发送者外的所有会话

        Returns:
            投递数量；信号形状不合法时返回 0 并丢弃
        """
        try:
            signal = EditingSignal.model_validate(data)
        except ValidationError as e:
            log.warning(
                "editing_signal_dropped",
                session_id=session_id,
                error_count=e.error_count(),
            )
            return 0

        return self._hub.publish(
            task_room(signal.task_id),
            "user-editing",
            dict(data),
            exclude=session_id,
        )
