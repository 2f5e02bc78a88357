"""NotificationFanout -- 根据字段变更推导通知接收者

规则：
- assignedTo：新增的负责人（新集合减旧集合）中除操作者外的每个人 -> MENTION
- status 变为 in_progress：任务创建者 -> WORK_IN_PROGRESS（创建者即操作者时同样通知）
- 其他字段：任务创建者 -> CHANNEL

通知先落库再推送；单条通知的写入失败只记录日志，不影响字段更新结果。
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from ulid import ULID
from workspin.core.models import (
    ActivityMessage,
    Channel,
    ChannelTab,
    Notification,
    NotificationType,
    Project,
    Task,
    TaskStatus,
    User,
    build_context_path,
)
from workspin.core.store.protocols import NotificationStore

from .room_hub import RoomHub

log = structlog.get_logger()


def _as_id_set(value: Any) -> set[str]:
    if not isinstance(value, (list, tuple, set)):
        return set()
    return {str(item) for item in value}


def derive_notifications(
    field: str,
    previous_value: Any,
    new_value: Any,
    task: Task,
    project: Project,
    tab: ChannelTab,
    channel: Channel,
    actor: User,
    message: ActivityMessage,
    now: datetime | None = None,
) -> list[Notification]:
    """计算需要创建的通知（纯函数，不落库）"""
    now = now or datetime.now(UTC)
    context_path = build_context_path(channel, tab)

    def _make(recipient: str, ntype: NotificationType, title: str, text: str) -> Notification:
        return Notification(
            notification_id=str(ULID()),
            user_id=recipient,
            type=ntype,
            project_id=project.project_id,
            channel_id=channel.channel_id,
            tab_id=tab.tab_id,
            task_id=task.task_id,
            created_by=actor.user_id,
            title=title,
            message=text,
            context_path=context_path,
            timestamp=now,
        )

    if field == "assignedTo":
        previous = _as_id_set(previous_value)
        # 保持新列表中的顺序
        added = [
            user_id
            for user_id in dict.fromkeys(str(item) for item in (new_value or []))
            if user_id not in previous and user_id != actor.user_id
        ]
        return [
            _make(
                user_id,
                NotificationType.MENTION,
                "Task Assignment",
                f'{actor.display_name} assigned you to task "{task.title}"',
            )
            for user_id in added
        ]

    if field == "status" and new_value == TaskStatus.IN_PROGRESS.value:
        return [
            _make(
                task.created_by,
                NotificationType.WORK_IN_PROGRESS,
                "Work In Progress",
                message.for_others,
            )
        ]

    return [
        _make(
            task.created_by,
            NotificationType.CHANNEL,
            "Task Update",
            message.for_others,
        )
    ]


def notification_push_payload(notification: Notification, project: Project) -> dict[str, Any]:
    """推送到 user:{id} 的通知 payload"""
    return {
        "notificationId": notification.notification_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "taskId": notification.task_id,
        "createdBy": notification.created_by,
        "context": {
            "channelId": notification.channel_id,
            "tabId": notification.tab_id,
            "projectId": notification.project_id,
            "projectName": project.name,
            "contextPath": notification.context_path,
        },
    }


class NotificationFanout:
    """通知落库 + 推送"""

    def __init__(self, notification_store: NotificationStore, hub: RoomHub) -> None:
        self._store = notification_store
        self._hub = hub

    async def fanout(
        self,
        field: str,
        previous_value: Any,
        new_value: Any,
        task: Task,
        project: Project,
        tab: ChannelTab,
        channel: Channel,
        actor: User,
        message: ActivityMessage,
    ) -> list[Notification]:
        """创建并推送通知

        Returns:
            成功落库并推送的通知
        """
        notifications = derive_notifications(
            field,
            previous_value,
            new_value,
            task,
            project,
            tab,
            channel,
            actor,
            message,
        )

        persisted: list[Notification] = []
        for notification in notifications:
            try:
                await self._store.create_notification(notification)
            except Exception as e:
                log.warning(
                    "notification_persist_failed",
                    task_id=task.task_id,
                    recipient=notification.user_id,
                    type=notification.type.value,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue
            persisted.append(notification)

        for notification in persisted:
            self._hub.emit_user_notification(
                notification.user_id,
                notification_push_payload(notification, project),
            )

        if persisted:
            log.info(
                "notifications_sent",
                task_id=task.task_id,
                field=field,
                count=len(persisted),
            )
        return persisted
