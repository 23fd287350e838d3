"""Query module initialization."""

from .builder import QueryBuilder
from .partition import PartitionKeyPath
from .triggers import TriggerOperation, TriggerRegistry, TriggerType

__all__ = [
    "QueryBuilder",
    "PartitionKeyPath",
    "TriggerOperation",
    "TriggerRegistry",
    "TriggerType",
]
