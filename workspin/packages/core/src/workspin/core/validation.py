"""字段校验与值规整

validate_field: 纯函数，字段名 -> 候选值是否可接受。
coerce_value: 持久化前的字段级规整（dueDate 字符串解析为日期等）。

未列出的字段名一律放行（可扩展的自定义字段），
仅拒绝协调器自身维护的簿记字段。
"""

import re
from collections.abc import Callable
from datetime import UTC, date, datetime, time
from typing import Any

from dateutil import parser as date_parser
from pydantic import ValidationError

from .models.enums import TaskPriority, TaskStatus
from .models.task import RESERVED_FIELDS, TASK_FIELD_COLUMNS, column_adapter

_DD_MM_YYYY = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_EXTRA_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_STATUS_VALUES = {s.value for s in TaskStatus}
_PRIORITY_VALUES = {p.value for p in TaskPriority}


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


_VALIDATORS: dict[str, Callable[[Any], bool]] = {
    "status": lambda v: isinstance(v, str) and v in _STATUS_VALUES,
    "priority": lambda v: isinstance(v, str) and v in _PRIORITY_VALUES,
    "assignedTo": _is_sequence,
    "dueDate": lambda v: v is None or isinstance(v, (date, str)),
    "title": lambda v: isinstance(v, str),
    "description": lambda v: isinstance(v, str),
    "tags": _is_sequence,
}


def validate_field(field: str, value: Any) -> bool:
    """校验字段值的形状

    assignedTo 只校验是序列，元素身份在加载阶段才有意义；
    dueDate 接受字符串，解析推迟到 coerce_value。
    """
    validator = _VALIDATORS.get(field)
    if validator is None:
        return True
    return validator(value)


def is_writable_field(field: str) -> bool:
    """字段是否允许被客户端写入

    簿记字段（version/updatedAt ...）不可写；
    不在固定列中的字段名需是合法标识符，存入任务的 extra 文档。
    """
    if field in RESERVED_FIELDS:
        return False
    if field in TASK_FIELD_COLUMNS:
        return True
    return bool(_EXTRA_FIELD_NAME.match(field))


def parse_due_date(value: Any) -> datetime | None:
    """解析截止日期

    支持 DD-MM-YYYY，其余格式交给 dateutil 通用解析。
    无时区信息的结果按 UTC 处理。

    Raises:
        ValueError: 无法解析的字符串
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        match = _DD_MM_YYYY.match(text)
        if match:
            day, month, year = (int(part) for part in match.groups())
            parsed = datetime(year, month, day)
        else:
            try:
                parsed = date_parser.parse(text)
            except (date_parser.ParserError, OverflowError) as e:
                raise ValueError(f"Unrecognized date: {text}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def coerce_value(field: str, value: Any) -> Any:
    """持久化前的字段级规整

    固定列的值按 Task 模型的字段类型校验（customFields -> list[CustomField] ...），
    extra 字段原样保存。

    Raises:
        ValueError: 值无法规整（例如无法解析的日期）
    """
    if field == "dueDate":
        return parse_due_date(value)
    if field in ("assignedTo", "tags"):
        value = [str(item) for item in value]

    column = TASK_FIELD_COLUMNS.get(field)
    if column is None:
        return value
    try:
        return column_adapter(column).validate_python(value)
    except ValidationError as e:
        reason = e.errors()[0]["msg"] if e.errors() else str(e)
        raise ValueError(reason) from e
