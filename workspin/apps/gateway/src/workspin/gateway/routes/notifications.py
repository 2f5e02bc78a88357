"""通知路由

GET /api/users/{user_id}/notifications: 用户通知列表，支持 type 筛选，按时间倒序
POST /api/notifications/{notification_id}/read: 标记已读
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from starlette.responses import JSONResponse
from workspin.core.config import NOTIFICATION_PAGE_SIZE
from workspin.core.models import Notification, NotificationType

from ..deps import get_store_group

router = APIRouter()

_NOTIFICATION_TYPES = {t.value for t in NotificationType}


def notification_to_wire(notification: Notification) -> dict[str, Any]:
    """序列化通知（camelCase）"""
    return {
        "id": notification.notification_id,
        "userId": notification.user_id,
        "type": notification.type.value,
        "projectId": notification.project_id,
        "channelId": notification.channel_id,
        "tabId": notification.tab_id,
        "taskId": notification.task_id,
        "createdBy": notification.created_by,
        "title": notification.title,
        "message": notification.message,
        "contextPath": notification.context_path,
        "isRead": notification.is_read,
        "timestamp": notification.timestamp.isoformat(),
    }


@router.get("/api/users/{user_id}/notifications")
async def list_user_notifications(
    user_id: str,
    type: str | None = Query(default=None, description="按通知类型筛选"),
    limit: int = Query(default=NOTIFICATION_PAGE_SIZE, ge=1, le=200),
    store_group=Depends(get_store_group),
):
    """查询用户通知"""
    if type is not None and type not in _NOTIFICATION_TYPES:
        return JSONResponse(
            status_code=400,
            content={
                "error": {
                    "code": "INVALID_NOTIFICATION_TYPE",
                    "message": f"Unknown notification type: {type}",
                }
            },
        )

    notifications = await store_group.notification_store.list_notifications_for_user(
        user_id, type=type, limit=limit
    )
    return {"notifications": [notification_to_wire(n) for n in notifications]}


@router.post("/api/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    store_group=Depends(get_store_group),
):
    """标记通知为已读"""
    notification = await store_group.notification_store.mark_as_read(notification_id)
    if notification is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "NOTIFICATION_NOT_FOUND",
                    "message": f"Notification with id {notification_id} does not exist",
                }
            },
        )
    return {"notification": notification_to_wire(notification)}
