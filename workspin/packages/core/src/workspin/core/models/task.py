"""Task Domain Model

Task 是被多人实时协同编辑的主体。version 在每次字段更新成功时 +1，
只由 store 层在同一条 UPDATE 语句内原子递增。
实时协议使用 camelCase 字段名（assignedTo、dueDate ...），
模型通过 alias 与之对齐。
"""

from datetime import datetime
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from ..config import DEFAULT_STROKE_COLOR
from .enums import CustomFieldType, TaskPriority, TaskStatus

# 协议字段名 -> tasks 表列名
TASK_FIELD_COLUMNS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "projectId": "project_id",
    "createdBy": "created_by",
    "assignedTo": "assigned_to",
    "status": "status",
    "priority": "priority",
    "dueDate": "due_date",
    "tags": "tags",
    "strokeColor": "stroke_color",
    "type": "type",
    "customFields": "custom_fields",
    "attachments": "attachments",
    "isActive": "is_active",
}

# 以 JSON 文本存储的列
JSON_COLUMNS: frozenset[str] = frozenset(
    {"assigned_to", "tags", "custom_fields", "attachments"}
)

# 由协调器维护的簿记字段，不接受客户端写入
RESERVED_FIELDS: frozenset[str] = frozenset(
    {"id", "_id", "taskId", "version", "createdAt", "updatedAt", "extra"}
)


class CustomField(BaseModel):
    """任务自定义字段"""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: CustomFieldType
    value: Any = None
    options: list[str] = Field(default_factory=list)

    @field_validator("options")
    @classmethod
    def _dropdown_options_limit(cls, options: list[str]) -> list[str]:
        if len(options) > 3:
            raise ValueError("Dropdown can have maximum 3 options")
        return options


class Task(BaseModel):
    """Task 数据模型"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    project_id: str = Field(description="所属项目 ID")
    created_by: str = Field(description="创建者用户 ID")
    assigned_to: list[str] = Field(default_factory=list, description="负责人 ID 列表")
    status: TaskStatus = Field(default=TaskStatus.TODO)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: datetime | None = Field(default=None, description="截止时间")
    tags: list[str] = Field(default_factory=list)
    stroke_color: str = Field(default=DEFAULT_STROKE_COLOR, description="展示颜色")
    type: str = Field(default="task", description="自由类型标签")
    custom_fields: list[CustomField] = Field(default_factory=list)
    attachments: list[str] = Field(default_factory=list)
    extra: dict[str, Any] = Field(
        default_factory=dict,
        description="未映射到固定列的字段（文档式存储）",
    )
    version: int = Field(default=0, ge=0, description="乐观并发版本号")
    is_active: bool = Field(default=True)
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    def get_field(self, field: str) -> Any:
        """按协议字段名读取当前值（JSON 兼容形式），未知字段从 extra 读取"""
        if field in TASK_FIELD_COLUMNS:
            data = self.model_dump(mode="json", by_alias=True, include={TASK_FIELD_COLUMNS[field]})
            return data.get(field)
        return self.extra.get(field)

    def is_participant(self, user_id: str) -> bool:
        """用户是否为创建者或当前负责人"""
        return user_id == self.created_by or user_id in self.assigned_to

    def to_wire(self) -> dict[str, Any]:
        """序列化为实时协议的 camelCase 快照"""
        return self.model_dump(mode="json", by_alias=True)


@lru_cache(maxsize=None)
def column_adapter(column: str) -> TypeAdapter:
    """按 tasks 列名返回对应模型字段类型的 TypeAdapter"""
    return TypeAdapter(Task.model_fields[column].annotation)
