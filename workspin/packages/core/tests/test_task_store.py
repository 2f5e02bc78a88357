"""TaskStore 单元测试

测试内容：
1. 创建/查询往返（含 JSON 列）
2. update_task_field 原子递增 version
3. 未映射字段写入 extra 文档
4. 不存在或已停用的任务
5. 不同字段并发写入时 version 不丢失
"""

import asyncio
from datetime import UTC, datetime, timedelta

from workspin.core.models import CustomField, TaskStatus


class TestTaskStore:
    """TaskStore 基本读写"""

    async def test_create_and_get_roundtrip(self, store_group, make_task):
        task = await make_task(
            tags=["backend", "urgent"],
            custom_fields=[CustomField(name="Env", type="dropdown", options=["dev", "prod"])],
            due_date=datetime(2025, 3, 15, tzinfo=UTC),
        )

        loaded = await store_group.task_store.get_task(task.task_id)
        assert loaded is not None
        assert loaded.title == task.title
        assert loaded.assigned_to == ["u-assignee"]
        assert loaded.tags == ["backend", "urgent"]
        assert loaded.custom_fields[0].options == ["dev", "prod"]
        assert loaded.due_date == datetime(2025, 3, 15, tzinfo=UTC)
        assert loaded.version == 0

    async def test_get_missing_task(self, store_group):
        assert await store_group.task_store.get_task("nope") is None

    async def test_update_increments_version(self, store_group, make_task):
        task = await make_task()
        later = task.updated_at + timedelta(minutes=5)

        updated = await store_group.task_store.update_task_field(
            task.task_id, "status", TaskStatus.IN_PROGRESS, later
        )

        assert updated.status == TaskStatus.IN_PROGRESS
        assert updated.version == 1
        assert updated.updated_at == later

        reloaded = await store_group.task_store.get_task(task.task_id)
        assert reloaded.status == TaskStatus.IN_PROGRESS
        assert reloaded.version == 1

    async def test_update_list_column(self, store_group, make_task):
        task = await make_task(assigned_to=[])
        updated = await store_group.task_store.update_task_field(
            task.task_id, "assignedTo", ["U1", "U2"], datetime.now(UTC)
        )
        assert updated.assigned_to == ["U1", "U2"]

    async def test_update_extra_field(self, store_group, make_task):
        task = await make_task()
        now = datetime.now(UTC)

        await store_group.task_store.update_task_field(task.task_id, "sprint", {"points": 3}, now)
        updated = await store_group.task_store.update_task_field(task.task_id, "estimate", 8, now)

        assert updated.extra == {"sprint": {"points": 3}, "estimate": 8}
        assert updated.get_field("sprint") == {"points": 3}
        assert updated.version == 2

    async def test_update_missing_task_returns_none(self, store_group):
        result = await store_group.task_store.update_task_field(
            "nope", "title", "x", datetime.now(UTC)
        )
        assert result is None

    async def test_inactive_task_hidden_and_not_updatable(self, store_group, make_task):
        task = await make_task(is_active=False)

        assert await store_group.task_store.get_task(task.task_id) is None
        assert await store_group.task_store.get_task(task.task_id, active_only=False) is not None
        result = await store_group.task_store.update_task_field(
            task.task_id, "title", "x", datetime.now(UTC)
        )
        assert result is None


class TestVersionAtomicity:
    """version 在存储层原子递增"""

    async def test_concurrent_updates_to_different_fields(self, store_group, make_task):
        task = await make_task(version=3)
        now = datetime.now(UTC)

        await asyncio.gather(
            store_group.task_store.update_task_field(task.task_id, "title", "New", now),
            store_group.task_store.update_task_field(task.task_id, "priority", "high", now),
            store_group.task_store.update_task_field(task.task_id, "tags", ["x"], now),
            store_group.task_store.update_task_field(task.task_id, "description", "d", now),
        )

        final = await store_group.task_store.get_task(task.task_id)
        assert final.version == 7
        assert final.title == "New"
        assert final.priority == "high"
        assert final.tags == ["x"]
        assert final.description == "d"
