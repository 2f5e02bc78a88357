"""ActivityStore SQLite 实现

活动表 append-only：只允许插入，不允许更新或删除。
"""

import asyncio
import json
from datetime import datetime

import aiosqlite

from ..models.activity import Activity, ActivityMessage
from ..models.enums import ActionType
from .transaction import atomic


class SqliteActivityStore:
    """ActivityStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, write_lock: asyncio.Lock) -> None:
        self._conn = conn
        self._write_lock = write_lock

    async def append_activity(self, activity: Activity) -> None:
        """追加活动记录（append-only）"""
        async with atomic(self._conn, self._write_lock) as conn:
            await conn.execute(
                """
                INSERT INTO activities (activity_id, project_id, task_id, subtask_id,
                                        user_id, action_type, field, previous_value,
                                        new_value, message, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    activity.activity_id,
                    activity.project_id,
                    activity.task_id,
                    activity.subtask_id,
                    activity.user_id,
                    activity.action_type.value,
                    activity.field,
                    json.dumps(activity.previous_value, ensure_ascii=False, default=str),
                    json.dumps(activity.new_value, ensure_ascii=False, default=str),
                    activity.message.model_dump_json(),
                    activity.timestamp.isoformat(),
                ),
            )

    async def list_activities_for_task(self, task_id: str, limit: int = 20) -> list[Activity]:
        """查询指定任务的活动记录，按时间倒序"""
        cursor = await self._conn.execute(
            """
            SELECT * FROM activities
            WHERE task_id = ?
            ORDER BY timestamp DESC, activity_id DESC
            LIMIT ?
            """,
            (task_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_activity(row) for row in rows]

    async def list_activities_for_project(self, project_id: str, limit: int = 20) -> list[Activity]:
        """查询指定项目的活动记录，按时间倒序"""
        cursor = await self._conn.execute(
            """
            SELECT * FROM activities
            WHERE project_id = ?
            ORDER BY timestamp DESC, activity_id DESC
            LIMIT ?
            """,
            (project_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_activity(row) for row in rows]

    @staticmethod
    def _row_to_activity(row: aiosqlite.Row) -> Activity:
        """将数据库行转换为 Activity 模型"""
        return Activity(
            activity_id=row["activity_id"],
            project_id=row["project_id"],
            task_id=row["task_id"],
            subtask_id=row["subtask_id"],
            user_id=row["user_id"],
            action_type=ActionType(row["action_type"]),
            field=row["field"],
            previous_value=json.loads(row["previous_value"]) if row["previous_value"] else None,
            new_value=json.loads(row["new_value"]) if row["new_value"] else None,
            message=ActivityMessage.model_validate_json(row["message"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
        )
