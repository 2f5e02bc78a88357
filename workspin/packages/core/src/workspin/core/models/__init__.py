"""Workspin Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import Activity, ActivityMessage
from .enums import (
    FIELD_ACTION_TYPES,
    ActionType,
    CustomFieldType,
    NotificationType,
    TaskEventType,
    TaskPriority,
    TaskStatus,
    UserRole,
    action_type_for,
)
from .notification import Notification
from .payloads import (
    ActivitySummary,
    EditingSignal,
    JoinUserTabsPayload,
    TaskRoomPayload,
    TaskUpdateIntent,
    TaskUpdateResponse,
)
from .task import (
    JSON_COLUMNS,
    RESERVED_FIELDS,
    TASK_FIELD_COLUMNS,
    CustomField,
    Task,
    column_adapter,
)
from .workspace import Channel, ChannelTab, Project, User, build_context_path

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "CustomFieldType",
    "NotificationType",
    "ActionType",
    "TaskEventType",
    "UserRole",
    "FIELD_ACTION_TYPES",
    "action_type_for",
    # Task
    "Task",
    "CustomField",
    "TASK_FIELD_COLUMNS",
    "JSON_COLUMNS",
    "RESERVED_FIELDS",
    "column_adapter",
    # 协作空间
    "Project",
    "ChannelTab",
    "Channel",
    "User",
    "build_context_path",
    # Activity / Notification
    "Activity",
    "ActivityMessage",
    "Notification",
    # Payloads
    "JoinUserTabsPayload",
    "TaskRoomPayload",
    "TaskUpdateIntent",
    "EditingSignal",
    "ActivitySummary",
    "TaskUpdateResponse",
]
