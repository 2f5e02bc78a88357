"""任务查询路由

GET /api/tasks/{task_id}: 任务快照 + 最近的活动记录
GET /api/tasks/{task_id}/activities: 活动记录，按时间倒序

字段更新只走 WebSocket 的 task-update，这里只读。
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from starlette.responses import JSONResponse
from workspin.core.config import ACTIVITY_PAGE_SIZE
from workspin.core.models import Activity

from ..deps import get_store_group

router = APIRouter()


def _task_not_found(task_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": {
                "code": "TASK_NOT_FOUND",
                "message": f"Task with id {task_id} does not exist",
            }
        },
    )


def activity_to_wire(activity: Activity) -> dict[str, Any]:
    """序列化活动记录（camelCase）"""
    return {
        "id": activity.activity_id,
        "projectId": activity.project_id,
        "taskId": activity.task_id,
        "subtaskId": activity.subtask_id,
        "userId": activity.user_id,
        "actionType": activity.action_type.value,
        "field": activity.field,
        "previousValue": activity.previous_value,
        "newValue": activity.new_value,
        "message": activity.message.model_dump(by_alias=True),
        "timestamp": activity.timestamp.isoformat(),
    }


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    store_group=Depends(get_store_group),
):
    """查询任务快照，附带最近的活动记录"""
    task = await store_group.task_store.get_task(task_id)
    if task is None:
        return _task_not_found(task_id)

    activities = await store_group.activity_store.list_activities_for_task(
        task_id, limit=ACTIVITY_PAGE_SIZE
    )
    return {
        "task": task.to_wire(),
        "activities": [activity_to_wire(a) for a in activities],
    }


@router.get("/api/tasks/{task_id}/activities")
async def list_task_activities(
    task_id: str,
    limit: int = Query(default=ACTIVITY_PAGE_SIZE, ge=1, le=200, description="返回条数"),
    store_group=Depends(get_store_group),
):
    """查询任务的活动记录，按时间倒序"""
    task = await store_group.task_store.get_task(task_id)
    if task is None:
        return _task_not_found(task_id)

    activities = await store_group.activity_store.list_activities_for_task(task_id, limit=limit)
    return {"activities": [activity_to_wire(a) for a in activities]}
