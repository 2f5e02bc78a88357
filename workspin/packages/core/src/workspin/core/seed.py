"""演示数据 -- 全局演示用户 "Uncle" 及其频道/标签页/项目/任务

重复执行是幂等的：演示用户已存在时直接返回已有 ID。
"""

from datetime import UTC, datetime

import structlog
from ulid import ULID

from .models.enums import UserRole
from .models.task import Task
from .models.workspace import Channel, ChannelTab, Project, User
from .store import StoreGroup

log = structlog.get_logger()

DEMO_USER_ID = "000000000000000000000001"
DEMO_CHANNEL_ID = "demo-channel"
DEMO_TAB_ID = "demo-tab"
DEMO_PROJECT_ID = "demo-project"


async def seed_demo(store_group: StoreGroup) -> dict[str, str]:
    """写入演示数据

    Returns:
        {"userId", "channelId", "tabId", "projectId", "taskId"}，
        演示用户已存在时 taskId 为空字符串
    """
    ids = {
        "userId": DEMO_USER_ID,
        "channelId": DEMO_CHANNEL_ID,
        "tabId": DEMO_TAB_ID,
        "projectId": DEMO_PROJECT_ID,
        "taskId": "",
    }
    if await store_group.workspace_store.get_user(DEMO_USER_ID) is not None:
        log.info("demo_seed_skipped", user_id=DEMO_USER_ID)
        return ids

    ws = store_group.workspace_store
    await ws.save_user(
        User(
            user_id=DEMO_USER_ID,
            name="Uncle",
            email="uncle@boardd.demo",
            role=UserRole.DEMO_USER,
        )
    )
    await ws.save_channel(
        Channel(
            channel_id=DEMO_CHANNEL_ID,
            channel_name="Getting Started",
            members=[DEMO_USER_ID],
            tabs=[DEMO_TAB_ID],
            created_by=DEMO_USER_ID,
        )
    )
    await ws.save_tab(
        ChannelTab(
            tab_id=DEMO_TAB_ID,
            channel_id=DEMO_CHANNEL_ID,
            tab_name="Board",
            members=[DEMO_USER_ID],
            is_default=True,
            created_by=DEMO_USER_ID,
        )
    )
    await ws.save_project(
        Project(
            project_id=DEMO_PROJECT_ID,
            name="Demo Project",
            channel_id=DEMO_CHANNEL_ID,
            tab_id=DEMO_TAB_ID,
            created_by=DEMO_USER_ID,
        )
    )

    now = datetime.now(UTC)
    task = Task(
        task_id=str(ULID()),
        title="Try editing me",
        description="Open this task in two windows and edit the same field.",
        project_id=DEMO_PROJECT_ID,
        created_by=DEMO_USER_ID,
        assigned_to=[DEMO_USER_ID],
        tags=["demo"],
        created_at=now,
        updated_at=now,
    )
    await store_group.task_store.create_task(task)
    ids["taskId"] = task.task_id

    log.info("demo_seed_created", **ids)
    return ids
