"""字段校验与值规整单元测试"""

from datetime import UTC, date, datetime, timedelta

import pytest
from workspin.core.models import CustomField, TaskStatus
from workspin.core.validation import (
    coerce_value,
    is_writable_field,
    parse_due_date,
    validate_field,
)


class TestValidateField:
    """validate_field 形状校验"""

    @pytest.mark.parametrize(
        ("field", "value", "expected"),
        [
            ("status", "todo", True),
            ("status", "in_progress", True),
            ("status", "done", False),
            ("status", 1, False),
            ("priority", "high", True),
            ("priority", "urgent", False),
            ("assignedTo", [], True),
            ("assignedTo", ("U1", "U2"), True),
            ("assignedTo", "U1", False),
            ("dueDate", None, True),
            ("dueDate", "15-03-2025", True),
            ("dueDate", date(2025, 3, 15), True),
            ("dueDate", 20250315, False),
            ("title", "New title", True),
            ("title", 42, False),
            ("description", "", True),
            ("description", None, False),
            ("tags", ["a"], True),
            ("tags", "a", False),
        ],
    )
    def test_known_fields(self, field, value, expected):
        assert validate_field(field, value) is expected

    def test_unknown_field_is_accepted(self):
        assert validate_field("sprint", object()) is True
        assert validate_field("customFields", "anything") is True


class TestWritableField:
    """簿记字段不可写，extra 字段名需是合法标识符"""

    def test_bookkeeping_fields_rejected(self):
        for field in ("version", "updatedAt", "createdAt", "taskId", "extra", "_id"):
            assert not is_writable_field(field)

    def test_known_and_extra_fields(self):
        assert is_writable_field("title")
        assert is_writable_field("customFields")
        assert is_writable_field("sprint_number")

    def test_extra_field_name_must_be_identifier(self):
        assert not is_writable_field("bad-name")
        assert not is_writable_field("$.path")
        assert not is_writable_field("")


class TestParseDueDate:
    """截止日期解析"""

    def test_dd_mm_yyyy(self):
        assert parse_due_date("15-03-2025") == datetime(2025, 3, 15, tzinfo=UTC)

    def test_iso_string_keeps_offset(self):
        parsed = parse_due_date("2025-03-15T10:30:00+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_naive_string_treated_as_utc(self):
        assert parse_due_date("2025-03-15") == datetime(2025, 3, 15, tzinfo=UTC)

    def test_date_value(self):
        assert parse_due_date(date(2025, 3, 15)) == datetime(2025, 3, 15, tzinfo=UTC)

    def test_empty_means_no_date(self):
        assert parse_due_date("") is None
        assert parse_due_date(None) is None

    def test_unparseable_raises(self):
        with pytest.raises(ValueError):
            parse_due_date("not a date")

    def test_impossible_day_raises(self):
        with pytest.raises(ValueError):
            parse_due_date("31-02-2025")


class TestCoerceValue:
    """持久化前规整"""

    def test_due_date_parsed(self):
        assert coerce_value("dueDate", "01-12-2025") == datetime(2025, 12, 1, tzinfo=UTC)

    def test_assignees_normalized_to_strings(self):
        assert coerce_value("assignedTo", ["U1", 7]) == ["U1", "7"]

    def test_status_becomes_enum(self):
        assert coerce_value("status", "completed") == TaskStatus.COMPLETED

    def test_custom_fields_validated(self):
        value = coerce_value("customFields", [{"name": "Env", "type": "text", "value": "prod"}])
        assert value == [CustomField(name="Env", type="text", value="prod")]

    def test_custom_fields_option_limit(self):
        with pytest.raises(ValueError, match="maximum 3 options"):
            coerce_value(
                "customFields",
                [{"name": "Env", "type": "dropdown", "options": ["a", "b", "c", "d"]}],
            )

    def test_column_type_mismatch_raises(self):
        with pytest.raises(ValueError):
            coerce_value("isActive", "sometimes")

    def test_extra_field_passes_through(self):
        value = {"points": 3}
        assert coerce_value("sprint", value) is value
