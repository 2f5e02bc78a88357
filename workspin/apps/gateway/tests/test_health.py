"""健康检查测试

测试内容：
1. GET /health 返回 200 + ok
2. GET /ready 正常时返回 200 + checks 结构
3. GET /ready SQLite 不可用时返回 503
"""

from httpx import ASGITransport, AsyncClient
from workspin.core.store import create_store_group


class TestHealthCheck:
    """健康检查"""

    async def test_health_returns_200(self, client: AsyncClient):
        """GET /health 永远返回 200"""
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    async def test_ready_returns_200(self, client: AsyncClient, locks, hub):
        """GET /ready 正常时返回 200 + checks 结构"""
        locks.try_claim("t1", "title", "u1")
        hub.connect("s1")

        resp = await client.get("/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        checks = data["checks"]
        assert checks["sqlite"] == "ok"
        assert checks["update_locks"] == "ok"
        assert checks["held_locks"] == 1
        assert checks["sessions"] == 1

    async def test_ready_sqlite_failure(self, app, tmp_path):
        """GET /ready SQLite 不可用时返回 503"""
        broken = await create_store_group(str(tmp_path / "broken.db"))
        await broken.close()
        app.state.store_group = broken

        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            resp = await ac.get("/ready")
            assert resp.status_code == 503
            data = resp.json()
            assert data["status"] == "not_ready"
            assert data["checks"]["sqlite"].startswith("error")
