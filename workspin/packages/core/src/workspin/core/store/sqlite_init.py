"""SQLite 数据库初始化

PRAGMA 配置 + 文档表 DDL + 索引创建。
列表/嵌套字段以 JSON 文本存储，按文档语义整体读写。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id        TEXT PRIMARY KEY,
    title          TEXT NOT NULL,
    description    TEXT NOT NULL DEFAULT '',
    project_id     TEXT NOT NULL,
    created_by     TEXT NOT NULL,
    assigned_to    TEXT NOT NULL DEFAULT '[]',
    status         TEXT NOT NULL DEFAULT 'todo',
    priority       TEXT NOT NULL DEFAULT 'medium',
    due_date       TEXT,
    tags           TEXT NOT NULL DEFAULT '[]',
    stroke_color   TEXT NOT NULL DEFAULT '#6C63FF',
    type           TEXT NOT NULL DEFAULT 'task',
    custom_fields  TEXT NOT NULL DEFAULT '[]',
    attachments    TEXT NOT NULL DEFAULT '[]',
    extra          TEXT NOT NULL DEFAULT '{}',
    version        INTEGER NOT NULL DEFAULT 0,
    is_active      INTEGER NOT NULL DEFAULT 1,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_by ON tasks(created_by);",
]

# 协作空间文档表：主键 + 整个文档的 JSON
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id  TEXT PRIMARY KEY,
    doc      TEXT NOT NULL
);
"""

_CHANNELS_DDL = """
CREATE TABLE IF NOT EXISTS channels (
    channel_id  TEXT PRIMARY KEY,
    doc         TEXT NOT NULL
);
"""

_CHANNEL_TABS_DDL = """
CREATE TABLE IF NOT EXISTS channel_tabs (
    tab_id      TEXT PRIMARY KEY,
    channel_id  TEXT NOT NULL,
    doc         TEXT NOT NULL
);
"""

_PROJECTS_DDL = """
CREATE TABLE IF NOT EXISTS projects (
    project_id  TEXT PRIMARY KEY,
    tab_id      TEXT NOT NULL,
    doc         TEXT NOT NULL
);
"""

# activities 表 DDL（append-only）
_ACTIVITIES_DDL = """
CREATE TABLE IF NOT EXISTS activities (
    activity_id     TEXT PRIMARY KEY,
    project_id      TEXT NOT NULL,
    task_id         TEXT,
    subtask_id      TEXT,
    user_id         TEXT NOT NULL,
    action_type     TEXT NOT NULL,
    field           TEXT,
    previous_value  TEXT,
    new_value       TEXT,
    message         TEXT NOT NULL DEFAULT '{}',
    timestamp       TEXT NOT NULL
);
"""

_ACTIVITIES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_activities_task_ts ON activities(task_id, timestamp DESC);",
    "CREATE INDEX IF NOT EXISTS idx_activities_project_ts ON activities(project_id, timestamp DESC);",
]

# notifications 表 DDL
_NOTIFICATIONS_DDL = """
CREATE TABLE IF NOT EXISTS notifications (
    notification_id  TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    type             TEXT NOT NULL,
    project_id       TEXT,
    channel_id       TEXT,
    tab_id           TEXT,
    task_id          TEXT,
    created_by       TEXT NOT NULL,
    title            TEXT NOT NULL,
    message          TEXT NOT NULL,
    context_path     TEXT NOT NULL DEFAULT '',
    is_read          INTEGER NOT NULL DEFAULT 0,
    timestamp        TEXT NOT NULL
);
"""

_NOTIFICATIONS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_notifications_user_ts ON notifications(user_id, timestamp DESC);",
]

_ALL_DDL = [
    _TASKS_DDL,
    _USERS_DDL,
    _CHANNELS_DDL,
    _CHANNEL_TABS_DDL,
    _PROJECTS_DDL,
    _ACTIVITIES_DDL,
    _NOTIFICATIONS_DDL,
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    for ddl in _ALL_DDL:
        await conn.execute(ddl)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _ACTIVITIES_INDEXES + _NOTIFICATIONS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
