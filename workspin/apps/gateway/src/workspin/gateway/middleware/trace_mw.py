"""TraceMiddleware -- 任务级 trace_id

请求路径指向某个任务（/api/tasks/{task_id}...）时绑定 trace_id=trace-{task_id}，
同一任务的 HTTP 查询日志可以与协调器日志关联。
"""

import re

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_TASK_PATH = re.compile(r"^/api/tasks/([^/]+)")


def trace_id_for_path(path: str) -> str | None:
    match = _TASK_PATH.match(path)
    if match is None:
        return None
    return f"trace-{match.group(1)}"


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        trace_id = trace_id_for_path(request.url.path)
        if trace_id:
            structlog.contextvars.bind_contextvars(trace_id=trace_id)
        return await call_next(request)
