"""实时协议 payload 定义

入站：join-user-tabs / join-task / leave-task / task-update / task-editing
出站：task-update-response（成功/失败两种形状）

协议字段统一 camelCase，模型通过 alias 对齐。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .activity import Activity, ActivityMessage
from .workspace import User


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JoinUserTabsPayload(_WireModel):
    """join-user-tabs 入站消息"""

    user_id: str | None = None
    # 省略时由服务端按 tab 成员关系解析
    tabs: list[str] | None = None


class TaskRoomPayload(_WireModel):
    """join-task / leave-task 入站消息"""

    task_id: str


class TaskUpdateIntent(_WireModel):
    """task-update 入站消息（更新意图）

    字段全部可选，缺失由协调器的形状检查统一报告 MissingFieldError。
    """

    task_id: str | None = None
    field: str | None = None
    value: Any = None
    user_id: str | None = None
    version: int | None = Field(default=None, description="客户端已知的版本号")


class EditingSignal(_WireModel):
    """task-editing 入站消息（编辑中指示，不落库）"""

    task_id: str
    field: str
    user_id: str
    user_name: str = ""
    is_editing: bool = True


class ActivitySummary(_WireModel):
    """随更新结果广播的活动摘要"""

    id: str
    message: ActivityMessage
    timestamp: datetime
    user: dict[str, str]

    @classmethod
    def from_activity(cls, activity: Activity, user: User) -> "ActivitySummary":
        return cls(
            id=activity.activity_id,
            message=activity.message,
            timestamp=activity.timestamp,
            user=user.to_wire(),
        )


class TaskUpdateResponse(_WireModel):
    """task-update-response 出站消息

    成功：{success, taskId, field, previousValue, newValue, version, activity}
    失败：{success, error, taskId, field, [conflict], [currentVersion, providedVersion]}
    """

    success: bool
    task_id: str | None = None
    field: str | None = None
    error: str | None = None
    conflict: bool | None = None
    current_version: int | None = None
    provided_version: int | None = None
    previous_value: Any = None
    new_value: Any = None
    version: int | None = None
    activity: ActivitySummary | None = None

    def to_wire(self) -> dict[str, Any]:
        """按成功/失败两种形状序列化"""
        if self.success:
            data: dict[str, Any] = {
                "success": True,
                "taskId": self.task_id,
                "field": self.field,
                "previousValue": self.previous_value,
                "newValue": self.new_value,
                "version": self.version,
            }
            if self.activity is not None:
                data["activity"] = self.activity.model_dump(mode="json", by_alias=True)
            return data

        data = {
            "success": False,
            "error": self.error,
            "taskId": self.task_id,
            "field": self.field,
        }
        if self.conflict:
            data["conflict"] = True
        if self.current_version is not None:
            data["currentVersion"] = self.current_version
        if self.provided_version is not None:
            data["providedVersion"] = self.provided_version
        return data
