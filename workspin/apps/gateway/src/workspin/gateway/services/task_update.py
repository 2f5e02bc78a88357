"""TaskUpdateCoordinator -- 单字段实时更新的状态机

一次更新意图依次经过：
1. 形状检查（taskId / field / userId）
2. 值校验
3. 占用 (task, field) 更新锁
4. 加载任务
5. 版本检查（客户端版本小于存储版本则拒绝）
6. 加载 project / tab / channel / 操作者
7. 鉴权（tab 成员 / channel 成员 / 负责人 / 创建者）
8. 值规整
9. 原子持久化（字段 + updated_at + version + 1）
10. 写活动记录
11. 通知
12. 广播
13. 释放更新锁

1-9 任一步失败：只回给发起者，不产生任何写入。
10-12 失败（SideChannelError）：记录日志后继续，已持久化的变更保持有效。
锁一旦占用成功，由 try/finally 保证释放。
"""

from dataclasses import dataclass, field as dc_field
from datetime import UTC, datetime
from typing import Any

import structlog
from ulid import ULID
from workspin.core.activity_messages import generate_activity_message
from workspin.core.exceptions import (
    ConcurrentUpdateError,
    InvalidValueError,
    MissingFieldError,
    NotFoundError,
    PersistenceError,
    SideChannelError,
    StaleVersionError,
    StoreReadError,
    TaskPermissionError,
    TaskUpdateError,
)
from workspin.core.models import (
    Activity,
    ActivityMessage,
    ActivitySummary,
    Channel,
    ChannelTab,
    Notification,
    Project,
    Task,
    TaskEventType,
    TaskUpdateIntent,
    TaskUpdateResponse,
    User,
    action_type_for,
)
from workspin.core.store import StoreGroup
from workspin.core.validation import coerce_value, is_writable_field, validate_field

from .notification_fanout import NotificationFanout
from .presence import EditingRelay
from .room_hub import RoomHub, task_room, task_update_event
from .update_locks import UpdateLockTable

log = structlog.get_logger()


@dataclass
class TaskUpdateResult:
    """一次更新意图的处理结果"""

    response: TaskUpdateResponse
    task: Task | None = None
    activity: Activity | None = None
    notifications: list[Notification] = dc_field(default_factory=list)
    # 成功时 task:{id} 房间收到的记录（含 type / timestamp）
    event: dict[str, Any] | None = None

    @property
    def success(self) -> bool:
        return self.response.success

    def to_wire(self) -> dict[str, Any]:
        return self.response.to_wire()


def _failure_response(error: TaskUpdateError) -> TaskUpdateResponse:
    return TaskUpdateResponse.model_validate(error.to_payload())


@dataclass
class _UpdateContext:
    task: Task
    project: Project
    tab: ChannelTab
    channel: Channel
    actor: User


class TaskUpdateCoordinator:
    """任务字段更新协调器"""

    def __init__(
        self,
        store_group: StoreGroup,
        locks: UpdateLockTable,
        hub: RoomHub,
    ) -> None:
        self._stores = store_group
        self._locks = locks
        self._hub = hub
        self._fanout = NotificationFanout(store_group.notification_store, hub)
        self._relay = EditingRelay(hub)

    async def handle_update(
        self,
        intent: TaskUpdateIntent,
        session_id: str | None = None,
    ) -> TaskUpdateResult:
        """处理一个 task-update 意图

        失败结果只投递给发起会话；成功结果广播到 task:{id}，
        发起会话未加入该房间时另外直接投递一份。
        """
        try:
            result = await self._apply(intent, session_id)
        except TaskUpdateError as e:
            log.info(
                "task_update_rejected",
                task_id=e.task_id,
                field=e.field,
                user_id=intent.user_id,
                error_type=type(e).__name__,
                reason=e.message,
            )
            result = TaskUpdateResult(response=_failure_response(e))
            if session_id:
                self._hub.emit_to_session(session_id, "task-update-response", result.to_wire())
            return result

        if session_id and session_id not in self._hub.members(task_room(intent.task_id)):
            self._hub.emit_to_session(session_id, "task-update-response", result.event)
        return result

    def handle_editing_signal(self, session_id: str, data: dict[str, Any]) -> int:
        """转发 task-editing 信号"""
        return self._relay.relay(session_id, data)

    async def _apply(self, intent: TaskUpdateIntent, session_id: str | None) -> TaskUpdateResult:
        # 1. 形状检查
        missing = [
            name
            for name, value in (
                ("taskId", intent.task_id),
                ("field", intent.field),
                ("userId", intent.user_id),
            )
            if not value
        ]
        if missing:
            raise MissingFieldError(missing, task_id=intent.task_id, field=intent.field)

        task_id, field, user_id = intent.task_id, intent.field, intent.user_id

        # 2. 值校验
        if not is_writable_field(field):
            raise InvalidValueError(task_id, field, intent.value, "field is not writable")
        if not validate_field(field, intent.value):
            raise InvalidValueError(task_id, field, intent.value)

        # 3. 占用更新锁
        if not self._locks.try_claim(task_id, field, user_id):
            raise ConcurrentUpdateError(task_id, field)

        try:
            return await self._apply_locked(intent, task_id, field, user_id)
        finally:
            # 13. 释放更新锁
            self._locks.release(task_id, field)

    async def _apply_locked(
        self,
        intent: TaskUpdateIntent,
        task_id: str,
        field: str,
        user_id: str,
    ) -> TaskUpdateResult:
        # 4-7. 加载、版本检查、鉴权
        try:
            ctx = await self._load_context(intent, task_id, field, user_id)
        except TaskUpdateError:
            raise
        except Exception as e:
            log.error(
                "task_load_failed",
                task_id=task_id,
                field=field,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise StoreReadError(task_id, field) from e

        # 8. 值规整
        try:
            coerced = coerce_value(field, intent.value)
        except ValueError as e:
            raise InvalidValueError(task_id, field, intent.value, str(e)) from e

        # 9. 原子持久化
        previous_value = ctx.task.get_field(field)
        now = datetime.now(UTC)
        try:
            updated = await self._stores.task_store.update_task_field(task_id, field, coerced, now)
        except Exception as e:
            log.error(
                "task_persist_failed",
                task_id=task_id,
                field=field,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise PersistenceError(task_id, field) from e
        if updated is None:
            # 加载之后任务被删除或停用
            raise NotFoundError("Task", task_id=task_id, field=field)

        new_value = updated.get_field(field)
        log.info(
            "task_field_updated",
            task_id=task_id,
            field=field,
            user_id=user_id,
            version=updated.version,
        )

        message = generate_activity_message(
            field,
            ctx.actor.display_name,
            previous_value,
            new_value,
            ctx.task.title,
        )

        # 10. 活动记录
        activity = await self._log_activity(ctx, field, previous_value, new_value, message, now)

        # 11. 通知
        notifications: list[Notification] = []
        try:
            notifications = await self._fanout.fanout(
                field,
                previous_value,
                new_value,
                updated,
                ctx.project,
                ctx.tab,
                ctx.channel,
                ctx.actor,
                message,
            )
        except Exception as e:
            self._log_side_channel_failure("notification", task_id, field, e)

        response = TaskUpdateResponse(
            success=True,
            task_id=task_id,
            field=field,
            previous_value=previous_value,
            new_value=new_value,
            version=updated.version,
            activity=ActivitySummary.from_activity(activity, ctx.actor) if activity else None,
        )

        event = task_update_event(
            TaskEventType.TASK_UPDATED.value, response.to_wire(), now.isoformat()
        )

        # 12. 广播
        try:
            self._broadcast(ctx, updated, response, event["timestamp"])
        except Exception as e:
            self._log_side_channel_failure("broadcast", task_id, field, e)

        return TaskUpdateResult(
            response=response,
            task=updated,
            activity=activity,
            notifications=notifications,
            event=event,
        )

    async def _load_context(
        self,
        intent: TaskUpdateIntent,
        task_id: str,
        field: str,
        user_id: str,
    ) -> _UpdateContext:
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id=task_id, field=field)

        if intent.version is not None and intent.version < task.version:
            raise StaleVersionError(task_id, field, task.version, intent.version)

        ws = self._stores.workspace_store
        project = await ws.get_project(task.project_id)
        if project is None:
            raise NotFoundError("Project", task_id=task_id, field=field)
        tab = await ws.get_tab(project.tab_id)
        if tab is None:
            raise NotFoundError("Tab", task_id=task_id, field=field)
        channel = await ws.get_channel(project.channel_id)
        if channel is None:
            raise NotFoundError("Channel", task_id=task_id, field=field)
        actor = await ws.get_user(user_id)
        if actor is None:
            raise NotFoundError("User", task_id=task_id, field=field)

        allowed = (
            user_id in tab.members
            or user_id in channel.members
            or task.is_participant(user_id)
        )
        if not allowed:
            raise TaskPermissionError(task_id, field)

        return _UpdateContext(task=task, project=project, tab=tab, channel=channel, actor=actor)

    async def _log_activity(
        self,
        ctx: _UpdateContext,
        field: str,
        previous_value: Any,
        new_value: Any,
        message: ActivityMessage,
        now: datetime,
    ) -> Activity | None:
        activity = Activity(
            activity_id=str(ULID()),
            project_id=ctx.project.project_id,
            task_id=ctx.task.task_id,
            user_id=ctx.actor.user_id,
            action_type=action_type_for(field, previous_value, new_value),
            field=field,
            previous_value=previous_value,
            new_value=new_value,
            message=message,
            timestamp=now,
        )
        try:
            await self._stores.activity_store.append_activity(activity)
        except Exception as e:
            self._log_side_channel_failure("activity", ctx.task.task_id, field, e)
            return None
        return activity

    def _broadcast(
        self,
        ctx: _UpdateContext,
        updated: Task,
        response: TaskUpdateResponse,
        timestamp: str,
    ) -> None:
        update = response.to_wire()
        activities = [update["activity"]] if "activity" in update else []
        self._hub.emit_task_event(
            updated.task_id,
            ctx.project.tab_id,
            TaskEventType.TASK_UPDATED.value,
            update,
            tab_payload={
                "task": updated.to_wire(),
                "activities": activities,
                "updatedBy": ctx.actor.to_wire(),
            },
            field=response.field,
            actor_name=ctx.actor.display_name,
            timestamp=timestamp,
        )

    @staticmethod
    def _log_side_channel_failure(stage: str, task_id: str, field: str, error: Exception) -> None:
        err = SideChannelError(stage, task_id, field, error)
        log.warning(
            "side_channel_failed",
            stage=err.stage,
            task_id=err.task_id,
            field=err.field,
            reason=err.message,
            error=str(err.original_error),
        )
