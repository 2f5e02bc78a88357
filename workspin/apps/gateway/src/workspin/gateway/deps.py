"""依赖注入模块 -- 通过 FastAPI Depends 注入服务实例

所有实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from workspin.core.store import StoreGroup

from .services.room_hub import RoomHub


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_room_hub(request: Request) -> RoomHub:
    """从 app.state 获取 RoomHub 实例"""
    return request.app.state.room_hub