"""实时协作 WebSocket 路由

GET /ws: 每个连接是一个会话，帧格式 {"event": <name>, "data": {...}}。

入站：join-user-tabs / join-task / leave-task / task-update / task-editing
出站：connected / task-update-response / tab-activity / notification / user-editing / error

出站消息统一经由会话队列，由单独的发送协程写出；
处理器异常不会关闭连接，格式错误的帧回一个 error 事件。
"""

import asyncio
import json
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from ulid import ULID
from workspin.core.exceptions import MalformedIntentError
from workspin.core.models import JoinUserTabsPayload, TaskRoomPayload, TaskUpdateIntent
from workspin.core.store import StoreGroup

from ..services.room_hub import RoomHub
from ..services.task_update import TaskUpdateCoordinator

log = structlog.get_logger()

router = APIRouter()


class _Session:
    """单个 WebSocket 会话的入站分发"""

    def __init__(
        self,
        session_id: str,
        hub: RoomHub,
        coordinator: TaskUpdateCoordinator,
        store_group: StoreGroup,
    ) -> None:
        self.session_id = session_id
        self._hub = hub
        self._stores = store_group
        self._coordinator = coordinator
        self._pending: set[asyncio.Task] = set()

    def error(self, message: str) -> None:
        self._hub.emit_to_session(self.session_id, "error", {"message": message})

    async def dispatch(self, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            self.error("Malformed frame: invalid JSON")
            return
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            self.error("Malformed frame: expected {event, data}")
            return

        event = frame["event"]
        data = frame.get("data") or {}
        if not isinstance(data, dict):
            self.error(f"Malformed frame: data of {event} must be an object")
            return

        try:
            await self._handle(event, data)
        except ValidationError as e:
            log.info("ws_frame_rejected", ws_event=event, error_count=e.error_count())
            self.error(f"Invalid payload for {event}")

    async def _handle(self, event: str, data: dict[str, Any]) -> None:
        if event == "join-user-tabs":
            payload = JoinUserTabsPayload.model_validate(data)
            tabs = payload.tabs
            if tabs is None:
                # 未携带 tabs：按成员关系从存储解析
                tabs = []
                if payload.user_id:
                    owned = await self._stores.workspace_store.list_tabs_for_user(payload.user_id)
                    tabs = [tab.tab_id for tab in owned]
            self._hub.join_user_tabs(self.session_id, payload.user_id, tabs)
            log.info("joined_user_tabs", user_id=payload.user_id, tab_count=len(tabs))
        elif event == "join-task":
            payload = TaskRoomPayload.model_validate(data)
            self._hub.join_task(self.session_id, payload.task_id)
        elif event == "leave-task":
            payload = TaskRoomPayload.model_validate(data)
            self._hub.leave_task(self.session_id, payload.task_id)
        elif event == "task-update":
            try:
                intent = TaskUpdateIntent.model_validate(data)
            except ValidationError as e:
                self._reject_update(data, e)
                return
            # 更新并发执行：同一会话对不同字段的更新互不阻塞
            task = asyncio.create_task(self._coordinator.handle_update(intent, self.session_id))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        elif event == "task-editing":
            self._coordinator.handle_editing_signal(self.session_id, data)
        else:
            self.error(f"Unknown event: {event}")

    def _reject_update(self, data: dict[str, Any], error: ValidationError) -> None:
        """字段类型错误的 task-update 也按统一失败形状回给发起者"""
        invalid = list(dict.fromkeys(str(err["loc"][0]) for err in error.errors() if err["loc"]))
        task_id = data.get("taskId")
        field = data.get("field")
        rejected = MalformedIntentError(
            invalid,
            task_id=task_id if isinstance(task_id, str) else None,
            field=field if isinstance(field, str) else None,
        )
        log.info("task_update_rejected", error_type="MalformedIntentError", reason=rejected.message)
        self._hub.emit_to_session(self.session_id, "task-update-response", rejected.to_payload())

    async def drain(self) -> None:
        """等待进行中的更新结束（锁由协调器自身释放）"""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


@router.websocket("/ws")
async def realtime(websocket: WebSocket) -> None:
    """实时协作会话"""
    hub: RoomHub = websocket.app.state.room_hub
    coordinator: TaskUpdateCoordinator = websocket.app.state.coordinator
    store_group: StoreGroup = websocket.app.state.store_group

    await websocket.accept()
    session_id = str(ULID())
    queue = hub.connect(session_id)
    structlog.contextvars.bind_contextvars(session_id=session_id)
    log.info("ws_session_connected")

    session = _Session(session_id, hub, coordinator, store_group)
    hub.emit_to_session(session_id, "connected", {"sessionId": session_id})
    sender = asyncio.create_task(_pump(websocket, queue))

    try:
        while True:
            raw = await websocket.receive_text()
            await session.dispatch(raw)
    except WebSocketDisconnect:
        log.info("ws_session_disconnected")
    finally:
        hub.disconnect(session_id)
        await session.drain()
        sender.cancel()
        try:
            await sender
        except (asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            pass
        structlog.contextvars.unbind_contextvars("session_id")
