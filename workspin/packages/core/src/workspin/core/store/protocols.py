"""Store Protocol 接口定义

定义 TaskStore、WorkspaceStore、ActivityStore、NotificationStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
协调器只依赖这些接口，测试可以替换为故障注入实现。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.activity import Activity
from ..models.notification import Notification
from ..models.task import Task
from ..models.workspace import Channel, ChannelTab, Project, User


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str, active_only: bool = True) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def update_task_field(
        self,
        task_id: str,
        field: str,
        value: Any,
        updated_at: datetime,
    ) -> Task | None:
        """原子写入单个字段并递增 version"""
        ...


class WorkspaceStore(Protocol):
    """用户 / 频道 / 标签页 / 项目 查找接口"""

    async def get_user(self, user_id: str) -> User | None: ...

    async def get_channel(self, channel_id: str) -> Channel | None: ...

    async def get_tab(self, tab_id: str) -> ChannelTab | None: ...

    async def get_project(self, project_id: str) -> Project | None: ...


class ActivityStore(Protocol):
    """Activity 存储接口

    活动表 append-only：只允许插入，不允许更新或删除。
    """

    async def append_activity(self, activity: Activity) -> None:
        """追加活动记录"""
        ...

    async def list_activities_for_task(self, task_id: str, limit: int = 20) -> list[Activity]:
        """查询指定任务的活动记录，按时间倒序"""
        ...


class NotificationStore(Protocol):
    """Notification 存储接口"""

    async def create_notification(self, notification: Notification) -> None:
        """创建通知记录"""
        ...

    async def list_notifications_for_user(
        self,
        user_id: str,
        type: str | None = None,
        limit: int = 20,
    ) -> list[Notification]:
        """查询用户的通知"""
        ...

    async def mark_as_read(self, notification_id: str) -> Notification | None:
        """标记通知为已读"""
        ...
