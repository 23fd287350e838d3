"""Tests for partition key path resolution."""

from types import SimpleNamespace

import pytest

from cosmoslite.exceptions import PartitionKeyNotFoundError, ValidationError
from cosmoslite.query.partition import PartitionKeyPath, field_of


class TestPartitionKeyPath:
    """Test suite for PartitionKeyPath."""

    @pytest.mark.parametrize("path,segments", [
        ("/tenant", ["tenant"]),
        ("tenant", ["tenant"]),
        ("/address/city/", ["address", "city"]),
    ])
    def test_segments(self, path, segments):
        assert PartitionKeyPath(path).segments == segments

    def test_empty_path(self):
        with pytest.raises(ValidationError):
            PartitionKeyPath("/")

    def test_resolve_flat(self):
        assert PartitionKeyPath("/tenant").resolve({"tenant": "t1"}) == "t1"

    def test_resolve_flat_keeps_objects(self):
        """Single-segment keys never unwrap ``scalar``."""
        value = {"scalar": "x"}
        assert PartitionKeyPath("/tenant").resolve({"tenant": value}) == value

    def test_resolve_nested(self):
        assert PartitionKeyPath("/address/city").resolve({"address": {"city": "Oslo"}}) == "Oslo"

    def test_resolve_nested_scalar(self):
        doc = SimpleNamespace(address=SimpleNamespace(city=SimpleNamespace(scalar="Rome")))
        assert PartitionKeyPath("/address/city").resolve(doc) == "Rome"

    def test_resolve_falsy_value(self):
        assert PartitionKeyPath("/n").resolve({"n": 0}) == 0

    def test_missing_segment(self):
        with pytest.raises(PartitionKeyNotFoundError) as exc_info:
            PartitionKeyPath("/address/city").resolve({"address": {"zip": "0150"}})

        assert exc_info.value.segment == "city"
        assert exc_info.value.partition_key_path == "/address/city"

    def test_query_path(self):
        path = PartitionKeyPath("/address/city")
        assert path.query_path() == "c.address.city"
        assert path.query_path() == "c.address.city"
        assert path.query_path("u") == "u.address.city"

    def test_str(self):
        assert str(PartitionKeyPath("address/city")) == "/address/city"
        assert PartitionKeyPath("/address/city").root == "address"


class TestFieldOf:
    """Test suite for field_of."""

    def test_mapping_and_attributes(self):
        assert field_of({"a": 1}, "a") == 1
        assert field_of(SimpleNamespace(a=2), "a") == 2

    def test_default(self):
        assert field_of({}, "a", None) is None
        assert field_of(None, "a", "d") == "d"

    def test_missing_without_default(self):
        with pytest.raises(KeyError):
            field_of({}, "a")
