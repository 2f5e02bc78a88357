"""全局 pytest 配置 -- 临时 SQLite 数据库 + 协作空间 fixture"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from ulid import ULID
from workspin.core.models import Channel, ChannelTab, Project, Task, User
from workspin.core.store import StoreGroup, create_store_group


@dataclass
class Workspace:
    """测试用协作空间

    tab 成员: creator, member
    channel 成员: creator, channel_member
    task 负责人: assignee
    outsider 与任务无任何关系
    """

    creator: User
    member: User
    channel_member: User
    assignee: User
    outsider: User
    channel: Channel
    tab: ChannelTab
    project: Project
    task: Task


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供临时数据库上的 StoreGroup"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.close()


@pytest_asyncio.fixture
async def make_task(store_group: StoreGroup) -> Callable[..., Awaitable[Task]]:
    """任务工厂：默认挂在 proj-1 下，由 u-creator 创建"""

    async def _make(**overrides) -> Task:
        now = datetime.now(UTC)
        data = {
            "task_id": str(ULID()),
            "title": "Ship the release",
            "project_id": "proj-1",
            "created_by": "u-creator",
            "assigned_to": ["u-assignee"],
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        task = Task(**data)
        await store_group.task_store.create_task(task)
        return task

    return _make


async def seed_workspace(store_group: StoreGroup) -> Workspace:
    """写入一套 channel / tab / project / users / task"""
    ws = store_group.workspace_store

    users = {
        "creator": User(user_id="u-creator", name="Carol", email="carol@example.com"),
        "member": User(user_id="u-member", name="Mia", email="mia@example.com"),
        "channel_member": User(user_id="u-channel", name="Chen", email="chen@example.com"),
        "assignee": User(user_id="u-assignee", name="Ana", email="ana@example.com"),
        "outsider": User(user_id="u-outsider", name="Otto", email="otto@example.com"),
    }
    for user in users.values():
        await ws.save_user(user)
    for user_id, name in (("U1", "Uma"), ("U2", "Ugo")):
        await ws.save_user(User(user_id=user_id, name=name, email=f"{user_id.lower()}@example.com"))

    channel = Channel(
        channel_id="ch-1",
        channel_name="Engineering",
        members=["u-creator", "u-channel"],
        tabs=["tab-1"],
    )
    tab = ChannelTab(
        tab_id="tab-1",
        channel_id="ch-1",
        tab_name="Sprint Board",
        members=["u-creator", "u-member"],
    )
    project = Project(
        project_id="proj-1",
        name="Release 2.0",
        channel_id="ch-1",
        tab_id="tab-1",
        created_by="u-creator",
    )
    await ws.save_channel(channel)
    await ws.save_tab(tab)
    await ws.save_project(project)

    now = datetime.now(UTC)
    task = Task(
        task_id=str(ULID()),
        title="Ship the release",
        project_id="proj-1",
        created_by="u-creator",
        assigned_to=["u-assignee"],
        created_at=now,
        updated_at=now,
    )
    await store_group.task_store.create_task(task)
    return Workspace(
        channel=channel,
        tab=tab,
        project=project,
        task=task,
        **users,
    )


@pytest_asyncio.fixture
async def workspace(store_group: StoreGroup) -> Workspace:
    """当前事件循环内的 StoreGroup 上写入协作空间"""
    return await seed_workspace(store_group)


@pytest.fixture
def seeded_db(tmp_path: Path) -> tuple[Path, Workspace]:
    """同步测试使用：预先写好协作空间的数据库文件

    TestClient 在自己的事件循环里运行 lifespan，
    因此这里用独立连接写入后关闭，由应用重新打开。
    """
    db_path = tmp_path / "seeded.db"

    async def _seed() -> Workspace:
        group = await create_store_group(str(db_path))
        try:
            return await seed_workspace(group)
        finally:
            await group.close()

    return db_path, asyncio.run(_seed())
