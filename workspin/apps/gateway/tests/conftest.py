"""apps/gateway 测试配置 -- 服务实例 + FastAPI app + httpx / TestClient"""

import asyncio
import os
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient
from workspin.gateway.services.room_hub import RoomHub
from workspin.gateway.services.task_update import TaskUpdateCoordinator
from workspin.gateway.services.update_locks import UpdateLockTable

_ENV_KEYS = ("WORKSPIN_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE")


@pytest.fixture
def hub() -> RoomHub:
    return RoomHub(queue_maxsize=100)


@pytest.fixture
def locks() -> UpdateLockTable:
    return UpdateLockTable(stale_after=30, sweep_interval=10)


@pytest_asyncio.fixture
async def coordinator(store_group, hub, locks) -> TaskUpdateCoordinator:
    return TaskUpdateCoordinator(store_group, locks, hub)


@pytest.fixture
def drain() -> Callable[[asyncio.Queue], list[dict]]:
    """取出队列中已有的全部消息"""

    def _drain(queue: asyncio.Queue) -> list[dict]:
        messages = []
        while not queue.empty():
            messages.append(queue.get_nowait())
        return messages

    return _drain


@pytest_asyncio.fixture
async def app(tmp_path: Path, store_group, hub, locks, coordinator):
    """创建测试用 FastAPI app 实例

    httpx ASGITransport 不会触发 lifespan，这里直接注入 app.state。
    """
    os.environ["WORKSPIN_DB_PATH"] = str(tmp_path / "unused.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from workspin.gateway.main import create_app

    application = create_app()
    application.state.store_group = store_group
    application.state.room_hub = hub
    application.state.update_locks = locks
    application.state.coordinator = coordinator
    yield application

    for key in _ENV_KEYS:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def live_client(seeded_db):
    """运行完整 lifespan 的 TestClient（WebSocket 测试使用）

    Returns:
        (TestClient, Workspace)
    """
    db_path, workspace = seeded_db
    os.environ["WORKSPIN_DB_PATH"] = str(db_path)
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from workspin.gateway.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client, workspace

    for key in _ENV_KEYS:
        os.environ.pop(key, None)
