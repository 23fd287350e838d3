"""
Trigger registration for document writes.

Server-side triggers run only when a write request names them in
``x-ms-documentdb-<type>-trigger-include`` headers.
"""

import logging
from enum import Enum
from typing import Dict, List, Tuple, Union

from cosmoslite.exceptions import InvalidTriggerError

logger = logging.getLogger(__name__)


class TriggerOperation(str, Enum):
    """Write operation a trigger is attached to; ALL applies to every write."""
    ALL = "all"
    CREATE = "create"
    REPLACE = "replace"
    DELETE = "delete"


class TriggerType(str, Enum):
    """When the trigger runs relative to the write."""
    PRE = "pre"
    POST = "post"


def _coerce(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        raise InvalidTriggerError(f'Trigger: Invalid {label} "{value}"', value=str(value))


class TriggerRegistry:
    """Ordered trigger ids per (operation, type)."""

    def __init__(self):
        self._triggers: Dict[Tuple[TriggerOperation, TriggerType], List[str]] = {}

    def add(
        self,
        operation: Union[TriggerOperation, str],
        trigger_type: Union[TriggerType, str],
        trigger_id: str,
    ) -> None:
        """
        Register a trigger id.

        Args:
            operation: all, create, replace or delete (case-insensitive)
            trigger_type: pre or post (case-insensitive)
            trigger_id: Trigger resource id

        Raises:
            InvalidTriggerError: If operation or type is unknown
        """
        op = _coerce(TriggerOperation, operation, "operation")
        kind = _coerce(TriggerType, trigger_type, "type")
        self._triggers.setdefault((op, kind), []).append(trigger_id)
        logger.debug(f"Registered {kind.value}-trigger '{trigger_id}' for {op.value}")

    def ids(self, operation: TriggerOperation, trigger_type: TriggerType) -> List[str]:
        return list(self._triggers.get((operation, trigger_type), []))

    def headers_for(self, operation: Union[TriggerOperation, str]) -> Dict[str, str]:
        """
        Build trigger include headers for one write operation.

        The operation's own ids come first, followed by the ids registered
        for ALL.

        Args:
            operation: create, replace or delete

        Returns:
            Headers such as {"x-ms-documentdb-pre-trigger-include": "t1,t2"}
        """
        op = _coerce(TriggerOperation, operation, "operation")
        headers: Dict[str, str] = {}
        for kind in TriggerType:
            ids = self.ids(op, kind)
            if op is not TriggerOperation.ALL:
                ids += self.ids(TriggerOperation.ALL, kind)
            if ids:
                headers[f"x-ms-documentdb-{kind.value}-trigger-include"] = ",".join(ids)
        return headers
