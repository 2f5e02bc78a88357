"""实时协作端到端集成测试

两个客户端通过 /ws 协同编辑同一任务 -> 版本推进 -> 活动与通知落库 -> HTTP 查询可见
"""

from starlette.testclient import TestClient


def _receive_event(ws, event: str, limit: int = 10) -> dict:
    seen = []
    for _ in range(limit):
        message = ws.receive_json()
        if message["event"] == event:
            return message["data"]
        seen.append(message["event"])
    raise AssertionError(f"{event} not received, got {seen}")


def _barrier(ws) -> None:
    ws.send_json({"event": "sync", "data": {}})
    _receive_event(ws, "error")


def _update(ws, task_id, field, value, user_id, version=None) -> None:
    data = {"taskId": task_id, "field": field, "value": value, "userId": user_id}
    if version is not None:
        data["version"] = version
    ws.send_json({"event": "task-update", "data": data})


class TestCollaborationEndToEnd:
    """多人实时编辑全链路"""

    def test_two_editors_then_http_views(self, integration_env):
        _, workspace = integration_env
        task_id = workspace.task.task_id

        from workspin.gateway.main import create_app

        with TestClient(create_app()) as client:
            with client.websocket_connect("/ws") as carol, client.websocket_connect("/ws") as mia:
                carol.receive_json()
                mia.receive_json()
                for ws in (carol, mia):
                    ws.send_json({"event": "join-task", "data": {"taskId": task_id}})
                    _barrier(ws)

                # 1. Carol 修改状态
                _update(carol, task_id, "status", "in_progress", "u-creator", version=0)
                first = _receive_event(mia, "task-update-response")
                assert first["version"] == 1
                assert first["activity"]["message"]["forOthers"].startswith("Carol changed the status")
                _receive_event(carol, "task-update-response")

                # 2. Mia 基于 version 1 分配负责人
                _update(mia, task_id, "assignedTo", ["u-assignee", "U1"], "u-member", version=1)
                second = _receive_event(carol, "task-update-response")
                assert second["version"] == 2
                assert second["previousValue"] == ["u-assignee"]
                _receive_event(mia, "task-update-response")

                # 3. Carol 仍持有 version 0，被拒绝且只有她收到
                _update(carol, task_id, "title", "Stale rename", "u-creator", version=0)
                stale = _receive_event(carol, "task-update-response")
                assert stale["success"] is False
                assert stale["currentVersion"] == 2
                assert stale["providedVersion"] == 0

            detail = client.get(f"/api/tasks/{task_id}").json()
            assert detail["task"]["version"] == 2
            assert detail["task"]["title"] == "Ship the release"
            assert [a["field"] for a in detail["activities"]] == ["assignedTo", "status"]

            mentions = client.get("/api/users/U1/notifications", params={"type": "MENTION"}).json()
            (mention,) = mentions["notifications"]
            assert mention["message"] == 'Mia assigned you to task "Ship the release"'
            assert client.get("/api/users/u-assignee/notifications").json()["notifications"] == []

            creator_inbox = client.get("/api/users/u-creator/notifications").json()["notifications"]
            assert [n["type"] for n in creator_inbox] == ["WORK_IN_PROGRESS"]

            ready = client.get("/ready").json()
            assert ready["checks"]["held_locks"] == 0

    def test_state_survives_restart(self, integration_env):
        """进程重启后任务版本与活动记录完整"""
        _, workspace = integration_env
        task_id = workspace.task.task_id

        from workspin.gateway.main import create_app

        with TestClient(create_app()) as client:
            with client.websocket_connect("/ws") as ws:
                ws.receive_json()
                _update(ws, task_id, "priority", "high", "u-creator")
                assert _receive_event(ws, "task-update-response")["version"] == 1

        with TestClient(create_app()) as client:
            detail = client.get(f"/api/tasks/{task_id}").json()
            assert detail["task"]["priority"] == "high"
            assert detail["task"]["version"] == 1
            assert len(detail["activities"]) == 1

            with client.websocket_connect("/ws") as ws:
                ws.receive_json()
                _update(ws, task_id, "priority", "low", "u-creator", version=1)
                assert _receive_event(ws, "task-update-response")["version"] == 2
