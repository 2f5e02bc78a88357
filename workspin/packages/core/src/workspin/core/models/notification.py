"""Notification Domain Model

创建后仅 is_read 可变（mark_as_read）。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import NotificationType


class Notification(BaseModel):
    """Notification 数据模型"""

    notification_id: str = Field(description="唯一标识，ULID 格式")
    user_id: str = Field(description="接收者 ID")
    type: NotificationType
    project_id: str | None = None
    channel_id: str | None = None
    tab_id: str | None = None
    task_id: str | None = None
    created_by: str = Field(description="触发者 ID")
    title: str
    message: str
    context_path: str = ""
    is_read: bool = False
    timestamp: datetime
