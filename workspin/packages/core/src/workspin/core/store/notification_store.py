"""NotificationStore SQLite 实现"""

import asyncio
from datetime import datetime

import aiosqlite

from ..models.enums import NotificationType
from ..models.notification import Notification
from .transaction import atomic


class SqliteNotificationStore:
    """NotificationStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, write_lock: asyncio.Lock) -> None:
        self._conn = conn
        self._write_lock = write_lock

    async def create_notification(self, notification: Notification) -> None:
        """创建通知记录"""
        async with atomic(self._conn, self._write_lock) as conn:
            await conn.execute(
                """
                INSERT INTO notifications (notification_id, user_id, type, project_id,
                                           channel_id, tab_id, task_id, created_by, title,
                                           message, context_path, is_read, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    notification.notification_id,
                    notification.user_id,
                    notification.type.value,
                    notification.project_id,
                    notification.channel_id,
                    notification.tab_id,
                    notification.task_id,
                    notification.created_by,
                    notification.title,
                    notification.message,
                    notification.context_path,
                    int(notification.is_read),
                    notification.timestamp.isoformat(),
                ),
            )

    async def list_notifications_for_user(
        self,
        user_id: str,
        type: str | None = None,
        limit: int = 20,
    ) -> list[Notification]:
        """查询用户的通知，支持按类型筛选，按时间倒序"""
        if type:
            cursor = await self._conn.execute(
                """
                SELECT * FROM notifications
                WHERE user_id = ? AND type = ?
                ORDER BY timestamp DESC, notification_id DESC
                LIMIT ?
                """,
                (user_id, type, limit),
            )
        else:
            cursor = await self._conn.execute(
                """
                SELECT * FROM notifications
                WHERE user_id = ?
                ORDER BY timestamp DESC, notification_id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
        rows = await cursor.fetchall()
        return [self._row_to_notification(row) for row in rows]

    async def mark_as_read(self, notification_id: str) -> Notification | None:
        """标记通知为已读，返回更新后的通知"""
        async with atomic(self._conn, self._write_lock) as conn:
            cursor = await conn.execute(
                "UPDATE notifications SET is_read = 1 WHERE notification_id = ? RETURNING *",
                (notification_id,),
            )
            rows = await cursor.fetchall()
        if not rows:
            return None
        return self._row_to_notification(rows[0])

    @staticmethod
    def _row_to_notification(row: aiosqlite.Row) -> Notification:
        """将数据库行转换为 Notification 模型"""
        return Notification(
            notification_id=row["notification_id"],
            user_id=row["user_id"],
            type=NotificationType(row["type"]),
            project_id=row["project_id"],
            channel_id=row["channel_id"],
            tab_id=row["tab_id"],
            task_id=row["task_id"],
            created_by=row["created_by"],
            title=row["title"],
            message=row["message"],
            context_path=row["context_path"],
            is_read=bool(row["is_read"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
        )
