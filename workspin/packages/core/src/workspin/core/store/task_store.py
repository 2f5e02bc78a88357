"""TaskStore SQLite 实现

update_task_field 是协调器唯一的持久化写入：
一条 UPDATE ... RETURNING 语句同时写字段、updated_at 和 version + 1，
保证版本递增在存储层原子完成，不依赖进程内的字段锁。
"""

import asyncio
import json
from datetime import datetime
from typing import Any

import aiosqlite

from ..models.task import JSON_COLUMNS, TASK_FIELD_COLUMNS, Task, column_adapter
from .transaction import atomic

_INSERT_COLUMNS = (
    "task_id",
    "title",
    "description",
    "project_id",
    "created_by",
    "assigned_to",
    "status",
    "priority",
    "due_date",
    "tags",
    "stroke_color",
    "type",
    "custom_fields",
    "attachments",
    "extra",
    "version",
    "is_active",
    "created_at",
    "updated_at",
)


def _encode_column(column: str, value: Any) -> Any:
    """按模型字段类型校验后编码为 SQLite 存储形式"""
    adapter = column_adapter(column)
    plain = adapter.dump_python(adapter.validate_python(value), mode="json")
    if column in JSON_COLUMNS or column == "extra":
        return json.dumps(plain, ensure_ascii=False)
    if column == "is_active":
        return int(bool(plain))
    return plain


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, write_lock: asyncio.Lock) -> None:
        self._conn = conn
        self._write_lock = write_lock

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        values = [_encode_column(column, getattr(task, column)) for column in _INSERT_COLUMNS]
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        async with atomic(self._conn, self._write_lock) as conn:
            await conn.execute(
                f"INSERT INTO tasks ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders})",
                values,
            )

    async def get_task(self, task_id: str, active_only: bool = True) -> Task | None:
        """根据 task_id 查询任务，默认忽略已停用的任务"""
        sql = "SELECT * FROM tasks WHERE task_id = ?"
        if active_only:
            sql += " AND is_active = 1"
        cursor = await self._conn.execute(sql, (task_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def update_task_field(
        self,
        task_id: str,
        field: str,
        value: Any,
        updated_at: datetime,
    ) -> Task | None:
        """原子更新单个字段并递增 version

        Args:
            task_id: 任务 ID
            field: 协议字段名；未映射到固定列的字段写入 extra 文档
            value: 已规整的字段值
            updated_at: 更新时间

        Returns:
            更新后的 Task；任务不存在或已停用时返回 None
        """
        column = TASK_FIELD_COLUMNS.get(field)
        if column is not None:
            set_clause = f"{column} = ?"
            params: list[Any] = [_encode_column(column, value)]
        else:
            set_clause = "extra = json_set(extra, ?, json(?))"
            params = [f"$.{field}", json.dumps(value, ensure_ascii=False, default=str)]

        params.extend([updated_at.isoformat(), task_id])
        async with atomic(self._conn, self._write_lock) as conn:
            cursor = await conn.execute(
                f"""
                UPDATE tasks
                SET {set_clause}, updated_at = ?, version = version + 1
                WHERE task_id = ? AND is_active = 1
                RETURNING *
                """,
                params,
            )
            rows = await cursor.fetchall()
        if not rows:
            return None
        return self._row_to_task(rows[0])

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row["task_id"],
            title=row["title"],
            description=row["description"],
            project_id=row["project_id"],
            created_by=row["created_by"],
            assigned_to=json.loads(row["assigned_to"]),
            status=row["status"],
            priority=row["priority"],
            due_date=row["due_date"],
            tags=json.loads(row["tags"]),
            stroke_color=row["stroke_color"],
            type=row["type"],
            custom_fields=json.loads(row["custom_fields"]),
            attachments=json.loads(row["attachments"]),
            extra=json.loads(row["extra"]),
            version=row["version"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
