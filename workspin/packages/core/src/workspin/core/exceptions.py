"""任务字段更新异常体系

每个异常对应协调器状态机中的一种终止原因，
to_payload() 生成统一的失败 payload，只回给发起请求的连接。
"""

from typing import Any


class TaskUpdateError(Exception):
    """任务更新基础异常"""

    def __init__(
        self,
        message: str,
        task_id: str | None = None,
        field: str | None = None,
        retryable: bool = False,
    ) -> None:
        """
        Args:
            message: 错误描述（原样返回给客户端）
            task_id: 目标任务 ID
            field: 目标字段
            retryable: 客户端是否可以退避后重试
        """
        super().__init__(message)
        self.message = message
        self.task_id = task_id
        self.field = field
        self.retryable = retryable

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "taskId": self.task_id,
            "field": self.field,
        }
        if self.retryable:
            payload["conflict"] = True
        return payload


class MissingFieldError(TaskUpdateError):
    """意图缺少 taskId / field / userId"""

    def __init__(self, missing: list[str], task_id: str | None = None, field: str | None = None) -> None:
        super().__init__(
            f"Missing required fields: {', '.join(missing)}",
            task_id=task_id,
            field=field,
        )
        self.missing = missing


class InvalidValueError(TaskUpdateError):
    """字段值未通过校验"""

    def __init__(self, task_id: str | None, field: str | None, value: Any, reason: str = "") -> None:
        message = f"Invalid value for field {field}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, task_id=task_id, field=field)
        self.value = value


class ConcurrentUpdateError(TaskUpdateError):
    """同一 (task, field) 已有进行中的更新"""

    def __init__(self, task_id: str, field: str) -> None:
        super().__init__(
            "Another update is in progress for this field",
            task_id=task_id,
            field=field,
            retryable=True,
        )


class NotFoundError(TaskUpdateError):
    """task / project / tab / channel / user 不存在"""

    def __init__(self, entity: str, task_id: str | None = None, field: str | None = None) -> None:
        super().__init__(f"{entity} not found", task_id=task_id, field=field)
        self.entity = entity


class StaleVersionError(TaskUpdateError):
    """客户端版本落后于存储版本，需要重新拉取后重试"""

    def __init__(self, task_id: str, field: str, current_version: int, provided_version: int) -> None:
        super().__init__(
            "Task has been modified by another user",
            task_id=task_id,
            field=field,
            retryable=True,
        )
        self.current_version = current_version
        self.provided_version = provided_version

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["currentVersion"] = self.current_version
        payload["providedVersion"] = self.provided_version
        return payload


class TaskPermissionError(TaskUpdateError):
    """操作者既不是 tab/channel 成员，也不是负责人或创建者"""

    def __init__(self, task_id: str, field: str) -> None:
        super().__init__(
            "You do not have permission to update this task",
            task_id=task_id,
            field=field,
        )


class StoreReadError(TaskUpdateError):
    """加载任务或上下文时存储读取失败（锁内，无写入）"""

    def __init__(self, task_id: str, field: str) -> None:
        super().__init__("Failed to load task", task_id=task_id, field=field)


class MalformedIntentError(TaskUpdateError):
    """task-update 帧的字段类型错误（如 taskId 不是字符串）"""

    def __init__(
        self,
        invalid: list[str],
        task_id: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(
            f"Invalid task-update payload: {', '.join(invalid)}",
            task_id=task_id,
            field=field,
        )
        self.invalid = invalid


class PersistenceError(TaskUpdateError):
    """持久化写入失败（单文档原子更新未生效）"""

    def __init__(self, task_id: str, field: str) -> None:
        super().__init__("Failed to update task", task_id=task_id, field=field)


class SideChannelError(TaskUpdateError):
    """持久化成功之后的活动/通知/广播失败

    只记录日志，不回滚已持久化的字段变更，也不返回给客户端。
    """

    def __init__(self, stage: str, task_id: str, field: str, original_error: Exception) -> None:
        super().__init__(
            f"{stage} failed after task update: {type(original_error).__name__}",
            task_id=task_id,
            field=field,
        )
        self.stage = stage
        self.original_error = original_error
