"""structlog 配置模块

dev 模式：控制台可读输出；json 模式：一行一条结构化 JSON。
structlog 与标准库 logging 共用同一个 ProcessorFormatter，
uvicorn / aiosqlite 的日志也走相同的渲染链。
Logfire APM：LOGFIRE_SEND_TO_LOGFIRE 控制，未启用或初始化失败时只保留本地日志。
"""

import logging

import structlog
from fastapi import FastAPI
from workspin.core.config import get_log_format, get_log_level, is_logfire_enabled

# 第三方库日志降噪
_QUIET_LOGGERS: dict[str, int] = {
    "aiosqlite": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging() -> None:
    """初始化 structlog + 标准库 logging

    WORKSPIN_LOG_FORMAT: "dev"（默认）/ "json"
    WORKSPIN_LOG_LEVEL: 根日志级别，默认 INFO
    """
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(get_log_format()),
            foreign_pre_chain=shared,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, get_log_level(), logging.INFO))

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def setup_logfire(app: FastAPI) -> bool:
    """可选初始化 Logfire

    Returns:
        Logfire 是否已启用
    """
    if not is_logfire_enabled():
        return False
    try:
        import logfire

        logfire.configure()
        logfire.instrument_fastapi(app)
    except Exception as e:
        # Logfire 初始化失败不影响实时协作服务
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            message="Logfire 初始化失败，降级为纯本地日志",
        )
        return False
    return True
