"""packages/core 测试配置 -- 活动/通知记录工厂"""

from collections.abc import Callable
from datetime import UTC, datetime

import pytest
from ulid import ULID
from workspin.core.models import (
    Activity,
    ActivityMessage,
    ActionType,
    Notification,
    NotificationType,
)


@pytest.fixture
def make_activity() -> Callable[..., Activity]:
    """Activity 工厂"""

    def _make(**overrides) -> Activity:
        data = {
            "activity_id": str(ULID()),
            "project_id": "proj-1",
            "task_id": "task-1",
            "user_id": "u-creator",
            "action_type": ActionType.CHANGE_STATUS,
            "field": "status",
            "previous_value": "todo",
            "new_value": "in_progress",
            "message": ActivityMessage(
                for_creator="You changed the status",
                for_others="Carol changed the status",
            ),
            "timestamp": datetime.now(UTC),
        }
        data.update(overrides)
        return Activity(**data)

    return _make


@pytest.fixture
def make_notification() -> Callable[..., Notification]:
    """Notification 工厂"""

    def _make(**overrides) -> Notification:
        data = {
            "notification_id": str(ULID()),
            "user_id": "u-assignee",
            "type": NotificationType.MENTION,
            "project_id": "proj-1",
            "channel_id": "ch-1",
            "tab_id": "tab-1",
            "task_id": "task-1",
            "created_by": "u-creator",
            "title": "Task Assignment",
            "message": 'Carol assigned you to task "Ship the release"',
            "context_path": "Engineering / Sprint Board",
            "timestamp": datetime.now(UTC),
        }
        data.update(overrides)
        return Notification(**data)

    return _make
