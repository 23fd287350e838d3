"""
Partition key paths.

A partition key is a '/'-delimited path into a document, e.g. ``/tenant`` or
``/address/city``. The path is nested when it has more than one segment
after trimming leading and trailing slashes.
"""

from collections.abc import Mapping
from typing import Any, List

from cosmoslite.exceptions import PartitionKeyNotFoundError, ValidationError

_MISSING = object()
_ABSENT = object()


def field_of(document: Any, name: str, default: Any = _MISSING) -> Any:
    """
    Read one field from a mapping or an attribute-style object.

    Args:
        document: dict-like document, namespace or model instance
        name: Field name
        default: Returned when the field is absent; raises KeyError if omitted

    Returns:
        Field value
    """
    if isinstance(document, Mapping):
        if name in document:
            return document[name]
    elif document is not None and hasattr(document, name):
        return getattr(document, name)

    if default is _MISSING:
        raise KeyError(name)
    return default


class PartitionKeyPath:
    """Parsed partition key path with a bounded walk over its segments."""

    def __init__(self, path: str):
        """
        Parse a partition key path.

        Args:
            path: Path such as "/tenant", "tenant" or "/address/city"

        Raises:
            ValidationError: If the path has no segments
        """
        self.path = path
        self.segments: List[str] = [s for s in path.strip("/").split("/") if s]
        if not self.segments:
            raise ValidationError(f"Invalid partition key path: '{path}'")

    @property
    def is_nested(self) -> bool:
        return len(self.segments) > 1

    @property
    def root(self) -> str:
        """Top-level document field holding the partition key."""
        return self.segments[0]

    def resolve(self, document: Any) -> Any:
        """
        Find the partition key value inside a document.

        A single-segment path reads the document's own field. A nested path
        walks one segment at a time; when the terminal value is an object
        carrying a ``scalar`` field, that field is the partition value.

        Args:
            document: Mapping or attribute-style document

        Returns:
            Partition key value

        Raises:
            PartitionKeyNotFoundError: If a segment is absent from the document
        """
        current = document
        for segment in self.segments:
            current = field_of(current, segment, _ABSENT)
            if current is _ABSENT:
                raise PartitionKeyNotFoundError(
                    f"Partition key path '{self.path}' not found in document (missing '{segment}')",
                    partition_key_path=self.path,
                    segment=segment,
                )

        if self.is_nested:
            scalar = field_of(current, "scalar", _ABSENT)
            if scalar is not _ABSENT:
                return scalar
        return current

    def query_path(self, alias: str = "c") -> str:
        """
        Property reference for use in query text, e.g. ``c.address.city``.

        Stateless: repeated calls on the same path return the same value.
        """
        return ".".join([alias] + self.segments)

    def __str__(self) -> str:
        return "/" + "/".join(self.segments)
