"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、更新锁表、在线会话数。
"""

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. update_locks: 锁表已初始化，以及当前持有的锁数量
    3. sessions: 在线 WebSocket 会话数
    """
    checks = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        store_group = request.app.state.store_group
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        log.warning("ready_check_failed", check="sqlite", error=str(e))
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    # 2. 更新锁表
    locks = getattr(request.app.state, "update_locks", None)
    if locks is not None:
        checks["update_locks"] = "ok"
        checks["held_locks"] = len(locks)
    else:
        checks["update_locks"] = "error: not initialized"
        all_ok = False

    # 3. 在线会话
    hub = getattr(request.app.state, "room_hub", None)
    checks["sessions"] = hub.session_count if hub is not None else 0

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
