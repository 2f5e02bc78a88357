"""WorkspaceStore SQLite 实现 -- users / channels / channel_tabs / projects

这些文档以整体 JSON 存储，协调器只做按 ID 查找。
"""

import asyncio

import aiosqlite

from ..models.workspace import Channel, ChannelTab, Project, User
from .transaction import atomic


class SqliteWorkspaceStore:
    """WorkspaceStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, write_lock: asyncio.Lock) -> None:
        self._conn = conn
        self._write_lock = write_lock

    async def _put(self, sql: str, params: tuple) -> None:
        async with atomic(self._conn, self._write_lock) as conn:
            await conn.execute(sql, params)

    async def _get_doc(self, table: str, key: str, value: str) -> str | None:
        cursor = await self._conn.execute(
            f"SELECT doc FROM {table} WHERE {key} = ?",
            (value,),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def save_user(self, user: User) -> None:
        """写入或覆盖用户文档"""
        await self._put(
            "INSERT OR REPLACE INTO users (user_id, doc) VALUES (?, ?)",
            (user.user_id, user.model_dump_json()),
        )

    async def get_user(self, user_id: str) -> User | None:
        doc = await self._get_doc("users", "user_id", user_id)
        return User.model_validate_json(doc) if doc else None

    async def save_channel(self, channel: Channel) -> None:
        """写入或覆盖频道文档"""
        await self._put(
            "INSERT OR REPLACE INTO channels (channel_id, doc) VALUES (?, ?)",
            (channel.channel_id, channel.model_dump_json()),
        )

    async def get_channel(self, channel_id: str) -> Channel | None:
        doc = await self._get_doc("channels", "channel_id", channel_id)
        return Channel.model_validate_json(doc) if doc else None

    async def save_tab(self, tab: ChannelTab) -> None:
        """写入或覆盖标签页文档"""
        await self._put(
            "INSERT OR REPLACE INTO channel_tabs (tab_id, channel_id, doc) VALUES (?, ?, ?)",
            (tab.tab_id, tab.channel_id, tab.model_dump_json()),
        )

    async def get_tab(self, tab_id: str) -> ChannelTab | None:
        doc = await self._get_doc("channel_tabs", "tab_id", tab_id)
        return ChannelTab.model_validate_json(doc) if doc else None

    async def list_tabs_for_user(self, user_id: str) -> list[ChannelTab]:
        """查询用户作为成员的所有标签页（用于客户端 join-user-tabs）"""
        cursor = await self._conn.execute(
            """
            SELECT doc FROM channel_tabs
            WHERE EXISTS (
                SELECT 1 FROM json_each(channel_tabs.doc, '$.members') WHERE value = ?
            )
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [ChannelTab.model_validate_json(row[0]) for row in rows]

    async def save_project(self, project: Project) -> None:
        """写入或覆盖项目文档"""
        await self._put(
            "INSERT OR REPLACE INTO projects (project_id, tab_id, doc) VALUES (?, ?, ?)",
            (project.project_id, project.tab_id, project.model_dump_json()),
        )

    async def get_project(self, project_id: str) -> Project | None:
        doc = await self._get_doc("projects", "project_id", project_id)
        return Project.model_validate_json(doc) if doc else None
