"""活动消息生成 -- 双受众文本

forCreator 面向操作者本人（"You ..."），forOthers 面向其他成员（"<name> ..."）。
"""

from datetime import datetime
from typing import Any

from .models.activity import ActivityMessage
from .validation import parse_due_date


def _format_date(value: Any) -> str:
    try:
        parsed = value if isinstance(value, datetime) else parse_due_date(value)
    except ValueError:
        return str(value)
    if parsed is None:
        return "no date"
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def _join(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def _both(user_name: str, phrase: str) -> ActivityMessage:
    return ActivityMessage(
        for_creator=f"You {phrase}",
        for_others=f"{user_name} {phrase}",
    )


def generate_activity_message(
    field: str,
    user_name: str,
    previous_value: Any,
    new_value: Any,
    task_title: str,
) -> ActivityMessage:
    """根据字段和新旧值生成活动消息"""
    if field in ("status", "priority"):
        return _both(
            user_name,
            f'changed the {field} of "{task_title}" from {previous_value} to {new_value}',
        )

    if field == "dueDate":
        return _both(
            user_name,
            f'changed the due date of "{task_title}" to {_format_date(new_value)}',
        )

    if field == "assignedTo":
        return _both(user_name, f'assigned "{task_title}" to {_join(new_value)}')

    if field == "description":
        return _both(user_name, f'updated the description of "{task_title}"')

    if field == "strokeColor":
        return _both(user_name, f'changed the color of "{task_title}"')

    if field == "title":
        return _both(user_name, f'renamed "{previous_value}" to "{new_value}"')

    if field == "tags":
        previous = list(previous_value or [])
        current = list(new_value or [])
        added = [tag for tag in current if tag not in previous]
        if added:
            return _both(user_name, f'added tags {_join(added)} to "{task_title}"')
        removed = [tag for tag in previous if tag not in current]
        return _both(user_name, f'removed tags {_join(removed)} from "{task_title}"')

    return _both(user_name, f'updated {field} of "{task_title}"')
