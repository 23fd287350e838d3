"""Tests for trigger registration."""

import pytest

from cosmoslite.exceptions import InvalidTriggerError
from cosmoslite.query.triggers import TriggerOperation, TriggerRegistry, TriggerType


@pytest.fixture
def registry():
    return TriggerRegistry()


class TestTriggerRegistry:
    """Test suite for TriggerRegistry."""

    def test_add_is_case_insensitive(self, registry):
        registry.add("CREATE", "Pre", "t1")
        assert registry.ids(TriggerOperation.CREATE, TriggerType.PRE) == ["t1"]

    def test_add_enum_values(self, registry):
        registry.add(TriggerOperation.DELETE, TriggerType.POST, "t1")
        assert registry.headers_for("delete") == {"x-ms-documentdb-post-trigger-include": "t1"}

    def test_invalid_operation(self, registry):
        with pytest.raises(InvalidTriggerError) as exc_info:
            registry.add("upsert", "pre", "t1")
        assert str(exc_info.value) == 'Trigger: Invalid operation "upsert"'
        assert exc_info.value.value == "upsert"

    def test_invalid_type(self, registry):
        with pytest.raises(InvalidTriggerError, match="type"):
            registry.add("create", "during", "t1")

    def test_headers_keep_registration_order(self, registry):
        registry.add("create", "pre", "a")
        registry.add("create", "pre", "b")
        assert registry.headers_for("create") == {"x-ms-documentdb-pre-trigger-include": "a,b"}

    def test_all_applies_to_every_write(self, registry):
        registry.add("all", "post", "audit")
        registry.add("replace", "post", "reindex")

        assert registry.headers_for("replace") == {"x-ms-documentdb-post-trigger-include": "reindex,audit"}
        assert registry.headers_for("delete") == {"x-ms-documentdb-post-trigger-include": "audit"}

    def test_no_triggers(self, registry):
        assert registry.headers_for("create") == {}

    def test_ids_returns_copy(self, registry):
        registry.add("create", "pre", "a")
        registry.ids(TriggerOperation.CREATE, TriggerType.PRE).append("b")
        assert registry.ids(TriggerOperation.CREATE, TriggerType.PRE) == ["a"]
