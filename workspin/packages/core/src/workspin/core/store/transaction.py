"""写事务封装

所有写操作共用同一个 aiosqlite 连接。写入在进程内写锁下执行并立即提交，
避免一个协程的 rollback 丢弃另一个协程尚未提交的语句。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite


@asynccontextmanager
async def atomic(
    conn: aiosqlite.Connection,
    write_lock: asyncio.Lock,
) -> AsyncIterator[aiosqlite.Connection]:
    """在写锁内执行一组语句并原子提交

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        write_lock: 进程内写锁

    Raises:
        Exception: 如果事务提交失败，自动回滚后原样抛出
    """
    async with write_lock:
        try:
            yield conn
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
