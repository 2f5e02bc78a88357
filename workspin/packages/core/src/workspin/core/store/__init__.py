"""Workspin Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .activity_store import SqliteActivityStore
from .notification_store import SqliteNotificationStore
from .sqlite_init import init_db, verify_wal_mode
from .task_store import SqliteTaskStore
from .transaction import atomic
from .workspace_store import SqliteWorkspaceStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接和写锁"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.write_lock = asyncio.Lock()
        self.task_store = SqliteTaskStore(conn, self.write_lock)
        self.workspace_store = SqliteWorkspaceStore(conn, self.write_lock)
        self.activity_store = SqliteActivityStore(conn, self.write_lock)
        self.notification_store = SqliteNotificationStore(conn, self.write_lock)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径（":memory:" 用于测试）

    Returns:
        StoreGroup 实例
    """
    if db_path != ":memory:":
        # 确保数据库目录存在
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteWorkspaceStore",
    "SqliteActivityStore",
    "SqliteNotificationStore",
    "init_db",
    "verify_wal_mode",
    "atomic",
]
