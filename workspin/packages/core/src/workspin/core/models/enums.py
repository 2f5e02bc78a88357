"""枚举定义

包含任务状态/优先级、通知类型、活动类型、实时事件类型、用户角色等枚举，
以及字段名到活动类型的映射。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """任务状态"""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(StrEnum):
    """任务优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CustomFieldType(StrEnum):
    """自定义字段类型"""

    NUMBER = "number"
    TEXT = "text"
    DATE = "date"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"


class NotificationType(StrEnum):
    """通知类型"""

    MENTION = "MENTION"
    CHANNEL = "CHANNEL"
    WORK_IN_PROGRESS = "WORK_IN_PROGRESS"


class ActionType(StrEnum):
    """活动记录的动作类型"""

    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    CREATE_SUBTASK = "CREATE_SUBTASK"
    UPDATE_SUBTASK = "UPDATE_SUBTASK"
    DELETE_SUBTASK = "DELETE_SUBTASK"
    ASSIGN_USER = "ASSIGN_USER"
    CHANGE_STATUS = "CHANGE_STATUS"
    CHANGE_PRIORITY = "CHANGE_PRIORITY"
    CHANGE_DUE_DATE = "CHANGE_DUE_DATE"
    ADD_TAG = "ADD_TAG"
    REMOVE_TAG = "REMOVE_TAG"
    ADD_DESCRIPTION = "ADD_DESCRIPTION"
    UPDATE_DESCRIPTION = "UPDATE_DESCRIPTION"
    ADD_STROKE_COLOR = "ADD_STROKE_COLOR"
    UPDATE_STROKE_COLOR = "UPDATE_STROKE_COLOR"
    ADD_CUSTOM_FIELD = "ADD_CUSTOM_FIELD"
    UPDATE_CUSTOM_FIELD = "UPDATE_CUSTOM_FIELD"
    DELETE_CUSTOM_FIELD = "DELETE_CUSTOM_FIELD"


class TaskEventType(StrEnum):
    """广播到 task/tab 房间的事件类型"""

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    SUBTASK_CREATED = "SUBTASK_CREATED"


class UserRole(StrEnum):
    """用户角色"""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    DEMO_USER = "demo_user"
    GUEST = "guest"


# 字段 -> 活动类型；未列出的字段记为 UPDATE_TASK
FIELD_ACTION_TYPES: dict[str, ActionType] = {
    "assignedTo": ActionType.ASSIGN_USER,
    "status": ActionType.CHANGE_STATUS,
    "priority": ActionType.CHANGE_PRIORITY,
    "dueDate": ActionType.CHANGE_DUE_DATE,
}


def action_type_for(field: str, previous_value=None, new_value=None) -> ActionType:
    """根据字段与新旧值推导活动类型

    description/strokeColor 区分首次设置（ADD_*）与修改（UPDATE_*），
    tags 区分新增与移除。
    """
    if field in FIELD_ACTION_TYPES:
        return FIELD_ACTION_TYPES[field]

    is_first_set = previous_value in (None, "", [])
    if field == "description":
        return ActionType.ADD_DESCRIPTION if is_first_set else ActionType.UPDATE_DESCRIPTION
    if field == "strokeColor":
        return ActionType.ADD_STROKE_COLOR if is_first_set else ActionType.UPDATE_STROKE_COLOR
    if field == "tags":
        previous = list(previous_value or [])
        current = list(new_value or [])
        added = [tag for tag in current if tag not in previous]
        return ActionType.ADD_TAG if added else ActionType.REMOVE_TAG
    if field == "customFields":
        previous_count = len(previous_value or [])
        current_count = len(new_value or [])
        if current_count > previous_count:
            return ActionType.ADD_CUSTOM_FIELD
        if current_count < previous_count:
            return ActionType.DELETE_CUSTOM_FIELD
        return ActionType.UPDATE_CUSTOM_FIELD
    return ActionType.UPDATE_TASK
