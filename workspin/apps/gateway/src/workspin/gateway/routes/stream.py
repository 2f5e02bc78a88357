"""SSE 只读事件流路由

GET /api/stream/tab/{tab_id}:   tab:{id} 房间的活动流（tab-activity）
GET /api/stream/user/{user_id}: user:{id} 房间的个人通知（notification）

不提供历史回放；15 秒心跳保活。
"""

import asyncio
import json

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse
from workspin.core.config import SSE_HEARTBEAT_INTERVAL

from ..deps import get_room_hub, get_store_group
from ..services.room_hub import RoomHub, tab_room, user_room

router = APIRouter()


def _not_found(code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": {"code": code, "message": message}},
    )


def _room_stream(hub: RoomHub, room: str) -> EventSourceResponse:
    async def event_generator():
        queue = await hub.subscribe(room)
        try:
            while True:
                try:
                    # 等待新消息（带心跳超时）
                    message = await asyncio.wait_for(queue.get(), timeout=SSE_HEARTBEAT_INTERVAL)
                    yield {
                        "event": message["event"],
                        "data": json.dumps(message["data"], ensure_ascii=False, default=str),
                    }
                except TimeoutError:
                    yield {"comment": "heartbeat"}
        finally:
            await hub.unsubscribe(room, queue)

    return EventSourceResponse(event_generator())


@router.get("/api/stream/tab/{tab_id}")
async def stream_tab_activity(
    tab_id: str,
    store_group=Depends(get_store_group),
    hub: RoomHub = Depends(get_room_hub),
):
    """标签页活动流"""
    tab = await store_group.workspace_store.get_tab(tab_id)
    if tab is None:
        return _not_found("TAB_NOT_FOUND", f"Tab with id {tab_id} does not exist")
    return _room_stream(hub, tab_room(tab_id))


@router.get("/api/stream/user/{user_id}")
async def stream_user_notifications(
    user_id: str,
    store_group=Depends(get_store_group),
    hub: RoomHub = Depends(get_room_hub),
):
    """个人通知流"""
    user = await store_group.workspace_store.get_user(user_id)
    if user is None:
        return _not_found("USER_NOT_FOUND", f"User with id {user_id} does not exist")
    return _room_stream(hub, user_room(user_id))
