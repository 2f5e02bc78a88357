"""Activity Domain Model

activities 表 append-only：每次被接受的字段变更写入一条，不更新、不删除。
message 为双受众文本：forCreator 给操作者本人，forOthers 给其他人。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import ActionType


class ActivityMessage(BaseModel):
    """双受众活动消息"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    for_creator: str
    for_others: str


class Activity(BaseModel):
    """Activity 数据模型"""

    activity_id: str = Field(description="唯一标识，ULID 格式")
    project_id: str
    task_id: str | None = None
    subtask_id: str | None = None
    user_id: str = Field(description="操作者 ID")
    action_type: ActionType
    field: str | None = None
    previous_value: Any = None
    new_value: Any = None
    message: ActivityMessage
    timestamp: datetime
