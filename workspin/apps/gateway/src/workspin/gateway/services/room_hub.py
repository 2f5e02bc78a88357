"""RoomHub -- 内存中的房间广播器

每个 WebSocket 会话持有一个 asyncio.Queue，房间是会话 ID 的集合：
- task:{task_id}  正在查看该任务的会话
- tab:{tab_id}    该标签页的活动流
- user:{user_id}  个人通知

SSE 只读订阅者直接挂在房间上（subscribe/unsubscribe），不占用会话。
投递是尽力而为：队列已满时丢弃该会话的这条消息，不排队、不重放。
"""

import asyncio
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

import structlog

log = structlog.get_logger()

# 横幅文案中的字段名
FIELD_LABELS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "dueDate": "due date",
    "assignedTo": "assignees",
    "tags": "tags",
    "strokeColor": "color",
    "customFields": "custom fields",
    "attachments": "attachments",
}


def task_room(task_id: str) -> str:
    return f"task:{task_id}"


def tab_room(tab_id: str) -> str:
    return f"tab:{tab_id}"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def build_notification_banner(event_type: str, field: str | None, actor_name: str) -> str:
    """根据事件类型和字段合成 tab 活动流中的横幅文案"""
    if event_type == "TASK_UPDATED" and field:
        label = FIELD_LABELS.get(field, field)
        return f"{actor_name} updated the {label} of a task"
    if event_type == "TASK_CREATED":
        return f"{actor_name} created a task"
    if event_type == "SUBTASK_CREATED":
        return f"{actor_name} created a subtask"
    return f"{actor_name} made a change"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def task_update_event(
    event_type: str,
    update: dict[str, Any],
    timestamp: str | None = None,
) -> dict[str, Any]:
    """task:{id} 房间收到的 task-update-response 形状（发起者直发也用它）"""
    return {"type": event_type, **update, "timestamp": timestamp or _now_iso()}


class RoomHub:
    """房间广播器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        # session_id -> 出站队列
        self._sessions: dict[str, asyncio.Queue] = {}
        # room -> session ids
        self._rooms: dict[str, set[str]] = defaultdict(set)
        # session_id -> rooms
        self._memberships: dict[str, set[str]] = defaultdict(set)
        # room -> SSE 订阅者队列
        self._streams: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    # ---- 会话 ----

    def connect(self, session_id: str) -> asyncio.Queue:
        """注册会话，返回它的出站队列"""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._sessions[session_id] = queue
        return queue

    def disconnect(self, session_id: str) -> None:
        """注销会话并移除它的全部房间成员关系"""
        for room in list(self._memberships.get(session_id, ())):
            self.leave(session_id, room)
        self._memberships.pop(session_id, None)
        self._sessions.pop(session_id, None)

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    # ---- 房间成员 ----

    def join(self, session_id: str, room: str) -> None:
        if session_id not in self._sessions:
            return
        self._rooms[room].add(session_id)
        self._memberships[session_id].add(room)

    def leave(self, session_id: str, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(session_id)
            if not members:
                del self._rooms[room]
        rooms = self._memberships.get(session_id)
        if rooms is not None:
            rooms.discard(room)

    def rooms_of(self, session_id: str) -> set[str]:
        return set(self._memberships.get(session_id, ()))

    def members(self, room: str) -> set[str]:
        return set(self._rooms.get(room, ()))

    def join_user_tabs(self, session_id: str, user_id: str | None, tabs: list[str]) -> None:
        """加入个人房间和标签页房间

        幂等：替换该会话之前的 user:/tab: 成员关系，task: 房间不受影响。
        """
        for room in self.rooms_of(session_id):
            if room.startswith(("user:", "tab:")):
                self.leave(session_id, room)
        if user_id:
            self.join(session_id, user_room(user_id))
        for tab_id in tabs:
            self.join(session_id, tab_room(tab_id))

    def join_task(self, session_id: str, task_id: str) -> None:
        self.join(session_id, task_room(task_id))

    def leave_task(self, session_id: str, task_id: str) -> None:
        self.leave(session_id, task_room(task_id))

    # ---- SSE 只读订阅 ----

    async def subscribe(self, room: str) -> asyncio.Queue:
        """订阅房间的消息流（SSE 使用）"""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._streams[room].add(queue)
        return queue

    async def unsubscribe(self, room: str, queue: asyncio.Queue) -> None:
        self._streams[room].discard(queue)
        if not self._streams[room]:
            del self._streams[room]

    # ---- 发布 ----

    def publish(
        self,
        room: str,
        event: str,
        data: dict[str, Any],
        exclude: str | None = None,
    ) -> int:
        """向房间内所有会话（可排除一个）和 SSE 订阅者投递消息

        Returns:
            成功入队的数量
        """
        message = {"event": event, "data": data}
        delivered = 0
        for session_id in self.members(room):
            if session_id == exclude:
                continue
            if self._offer(self._sessions.get(session_id), message):
                delivered += 1
            else:
                log.warning("room_message_dropped", room=room, event=event, session_id=session_id)

        full_streams = []
        for queue in self._streams.get(room, set()):
            if self._offer(queue, message):
                delivered += 1
            else:
                full_streams.append(queue)
        # 清理已满的 SSE 队列
        for queue in full_streams:
            self._streams[room].discard(queue)
        if room in self._streams and not self._streams[room]:
            del self._streams[room]
        return delivered

    def emit_to_session(self, session_id: str, event: str, data: dict[str, Any]) -> bool:
        """只投递给单个会话（失败响应）"""
        return self._offer(self._sessions.get(session_id), {"event": event, "data": data})

    def emit_task_event(
        self,
        task_id: str | None,
        tab_id: str | None,
        event_type: str,
        update: dict[str, Any],
        tab_payload: dict[str, Any] | None = None,
        field: str | None = None,
        actor_name: str = "",
        timestamp: str | None = None,
    ) -> None:
        """发布任务事件

        task:{id} 收到精简的更新记录（task-update-response）；
        tab:{id} 收到完整快照和横幅（tab-activity）。
        """
        timestamp = timestamp or _now_iso()
        if task_id:
            self.publish(
                task_room(task_id),
                "task-update-response",
                task_update_event(event_type, update, timestamp),
            )
        if tab_id:
            self.publish(
                tab_room(tab_id),
                "tab-activity",
                {
                    "type": event_type,
                    **(tab_payload or {}),
                    "notification": build_notification_banner(event_type, field, actor_name),
                    "timestamp": timestamp,
                },
            )

    def emit_user_notification(self, user_id: str, payload: dict[str, Any]) -> int:
        """发布到个人房间 user:{id}"""
        return self.publish(
            user_room(user_id),
            "notification",
            {**payload, "timestamp": _now_iso()},
        )

    @staticmethod
    def _offer(queue: asyncio.Queue | None, message: dict[str, Any]) -> bool:
        if queue is None:
            return False
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True
