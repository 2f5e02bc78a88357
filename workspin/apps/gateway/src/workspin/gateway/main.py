"""FastAPI 应用主文件

app 创建 + lifespan 管理：
启动时创建 StoreGroup、RoomHub、UpdateLockTable（启动清扫任务）和 TaskUpdateCoordinator，
关闭时停止清扫任务并关闭数据库连接。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from workspin.core.config import (
    SESSION_QUEUE_SIZE,
    get_db_path,
    get_lock_stale_seconds,
    get_lock_sweep_interval,
)
from workspin.core.store import create_store_group

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, notifications, realtime, stream, tasks
from .services.room_hub import RoomHub
from .services.task_update import TaskUpdateCoordinator
from .services.update_locks import UpdateLockTable

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    room_hub = RoomHub(queue_maxsize=SESSION_QUEUE_SIZE)
    app.state.room_hub = room_hub

    update_locks = UpdateLockTable(
        stale_after=get_lock_stale_seconds(),
        sweep_interval=get_lock_sweep_interval(),
    )
    update_locks.start()
    app.state.update_locks = update_locks

    app.state.coordinator = TaskUpdateCoordinator(store_group, update_locks, room_hub)
    log.info(
        "gateway_started",
        db_path=db_path,
        lock_stale_s=get_lock_stale_seconds(),
        lock_sweep_s=get_lock_sweep_interval(),
    )

    yield

    await update_locks.shutdown()
    await store_group.close()
    log.info("gateway_stopped")


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Workspin Gateway",
        version="0.1.0",
        description="Workspin 实时任务协作 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(realtime.router, tags=["realtime"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(notifications.router, tags=["notifications"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
