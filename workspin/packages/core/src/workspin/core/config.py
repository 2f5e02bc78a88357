"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、更新锁超时、会话队列长度、SSE 心跳等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("WORKSPIN_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "WORKSPIN_DB_PATH",
        str(_get_base_dir() / "sqlite" / "workspin.db"),
    )


def get_lock_stale_seconds() -> float:
    """字段更新锁的过期窗口（秒），超过此时间的锁由清扫任务强制释放"""
    return float(os.environ.get("WORKSPIN_LOCK_STALE_SECONDS", "30"))


def get_lock_sweep_interval() -> float:
    """锁清扫任务的执行间隔（秒）"""
    return float(os.environ.get("WORKSPIN_LOCK_SWEEP_INTERVAL", "10"))


# 每个 WebSocket 会话的出站队列长度（队列满时丢弃该会话的消息）
SESSION_QUEUE_SIZE: int = int(
    os.environ.get("WORKSPIN_SESSION_QUEUE_SIZE", "100")
)

# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("WORKSPIN_SSE_HEARTBEAT_INTERVAL", "15")
)

# 活动记录分页默认条数
ACTIVITY_PAGE_SIZE: int = int(
    os.environ.get("WORKSPIN_ACTIVITY_PAGE_SIZE", "20")
)

# 通知列表分页默认条数
NOTIFICATION_PAGE_SIZE: int = 20

# 任务默认描边颜色
DEFAULT_STROKE_COLOR: str = "#6C63FF"


def get_log_format() -> str:
    """日志渲染模式：dev（默认）或 json"""
    return os.environ.get("WORKSPIN_LOG_FORMAT", "dev").lower()


def get_log_level() -> str:
    """根日志级别"""
    return os.environ.get("WORKSPIN_LOG_LEVEL", "INFO").upper()


def is_logfire_enabled() -> bool:
    """是否启用 Logfire APM（LOGFIRE_SEND_TO_LOGFIRE=true）"""
    return os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() == "true"
