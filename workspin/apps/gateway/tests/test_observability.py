"""可观测性与生命周期测试

测试内容：
1. HTTP 请求含 X-Request-ID 响应头（可沿用客户端传入值）
2. trace_id 从任务路径推导
3. structlog / Logfire 配置
4. lifespan 启动与关闭
"""

import logging
import os

import structlog
from httpx import AsyncClient
from starlette.testclient import TestClient
from workspin.gateway.middleware.logging_config import setup_logfire, setup_logging
from workspin.gateway.middleware.trace_mw import trace_id_for_path


class TestRequestId:
    """请求级日志"""

    async def test_request_id_in_response_header(self, client: AsyncClient):
        """每个请求响应包含 X-Request-ID"""
        resp = await client.get("/health")
        assert resp.status_code == 200
        # ULID 格式：26 字符
        assert len(resp.headers["x-request-id"]) == 26

    async def test_request_ids_are_unique(self, client: AsyncClient):
        """不同请求有不同的 request_id"""
        ids = set()
        for _ in range(3):
            resp = await client.get("/health")
            ids.add(resp.headers["x-request-id"])
        assert len(ids) == 3

    async def test_incoming_request_id_is_echoed(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "req-abc"})
        assert resp.headers["x-request-id"] == "req-abc"


class TestTraceId:
    def test_task_paths(self):
        assert trace_id_for_path("/api/tasks/01ABC") == "trace-01ABC"
        assert trace_id_for_path("/api/tasks/01ABC/activities") == "trace-01ABC"

    def test_other_paths(self):
        assert trace_id_for_path("/health") is None
        assert trace_id_for_path("/api/users/u1/notifications") is None


class TestLoggingSetup:
    """structlog 配置"""

    def test_json_format_installs_single_root_handler(self, monkeypatch):
        monkeypatch.setenv("WORKSPIN_LOG_FORMAT", "json")
        monkeypatch.setenv("WORKSPIN_LOG_LEVEL", "DEBUG")

        setup_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("aiosqlite").level == logging.WARNING

    def test_logfire_disabled(self, monkeypatch):
        monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
        from fastapi import FastAPI

        assert setup_logfire(FastAPI()) is False


class TestLifespan:
    """完整 lifespan"""

    def test_startup_and_shutdown(self, seeded_db):
        db_path, workspace = seeded_db
        os.environ["WORKSPIN_DB_PATH"] = str(db_path)
        os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"
        try:
            from workspin.gateway.main import create_app

            app = create_app()
            with TestClient(app) as client:
                assert app.state.store_group is not None
                assert app.state.update_locks._sweeper is not None

                resp = client.get("/ready")
                assert resp.status_code == 200
                assert resp.json()["checks"]["sqlite"] == "ok"

                resp = client.get(f"/api/tasks/{workspace.task.task_id}")
                assert resp.status_code == 200
                assert resp.json()["task"]["title"] == "Ship the release"

            assert app.state.update_locks._sweeper is None
            assert len(app.state.update_locks) == 0
        finally:
            os.environ.pop("WORKSPIN_DB_PATH", None)
            os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)
