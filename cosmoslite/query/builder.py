"""
Fluent query builder over one collection.

    builder = QueryBuilder(collection)
    builder.select(["id", "name"]).where("c.type = @type").params({"@type": "user"})
    users = builder.find_all(cross_partition=True).to_array("id")

The builder is mutable: configuration methods change it in place and return
it for chaining. Terminal operations (``find_all``, ``find``, ``save``,
``delete``, ``delete_all``) reset the stored result before they run and
replace it with their own pages, so the shaping methods (``to_object``,
``to_array``, ``to_json``, ``get_value``) always read the last execution.

Author: Cosmoslite Team
Date: 2026-02-06
"""

import json
import logging
from collections.abc import Mapping
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel

from cosmoslite.exceptions import DocumentError, ValidationError
from cosmoslite.models import ResultEnvelope
from cosmoslite.query.partition import PartitionKeyPath, field_of
from cosmoslite.query.triggers import TriggerOperation, TriggerRegistry, TriggerType

if TYPE_CHECKING:
    from cosmoslite.client.cosmos import CosmosCollection

logger = logging.getLogger(__name__)


def quote_literal(value: Any) -> str:
    """Render a value as a single-quoted query string literal."""
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def _encode_document(value: Any) -> Any:
    if isinstance(value, SimpleNamespace):
        return vars(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _as_namespace(d: Dict[str, Any]) -> SimpleNamespace:
    return SimpleNamespace(**d)


class QueryBuilder:
    """
    Query definition bound to a collection handle.

    Attributes:
        collection: Collection every execution is scoped to
        triggers: Trigger ids attached to create/replace/delete requests
    """

    def __init__(self, collection: Optional["CosmosCollection"] = None):
        self.collection = collection
        self.triggers = TriggerRegistry()
        self._partition_key: Optional[PartitionKeyPath] = None
        self._partition_value: Optional[Any] = None
        self._fields = ""
        self._from = "c"
        self._joins: List[str] = []
        self._where: List[str] = []
        self._order: Optional[str] = None
        self._limit: Optional[int] = None
        self._params: Dict[str, Any] = {}
        self._response: Optional[List[str]] = None
        self._multiple_results = False

    @classmethod
    def instance(cls) -> "QueryBuilder":
        return cls()

    def set_collection(self, collection: "CosmosCollection") -> "QueryBuilder":
        self.collection = collection
        return self

    # Configuration

    def select(self, fields: Union[str, Iterable[str]]) -> "QueryBuilder":
        """
        Set the projection.

        Args:
            fields: Raw projection text, or field names rendered as
                ``c["a"], c["b"]``
        """
        if not isinstance(fields, str):
            fields = ", ".join(f'{self._from}["{f}"]' for f in fields)
        self._fields = fields
        return self

    def from_(self, alias: str) -> "QueryBuilder":
        self._from = alias
        return self

    def join(self, join: str) -> "QueryBuilder":
        self._joins.append(join.strip())
        return self

    def where(self, where: str) -> "QueryBuilder":
        """AND a condition onto the filter; empty conditions are ignored."""
        if where and where.strip():
            self._where.append(where.strip())
        return self

    def where_starts_with(self, field: str, value: Any) -> "QueryBuilder":
        return self.where(f"STARTSWITH({field}, {quote_literal(value)})")

    def where_ends_with(self, field: str, value: Any) -> "QueryBuilder":
        return self.where(f"ENDSWITH({field}, {quote_literal(value)})")

    def where_contains(self, field: str, value: Any) -> "QueryBuilder":
        return self.where(f"CONTAINS({field}, {quote_literal(value)})")

    def where_in(self, field: str, values: Iterable[Any]) -> "QueryBuilder":
        values = list(values or [])
        if not values:
            return self
        return self.where(f"{field} IN({', '.join(quote_literal(v) for v in values)})")

    def where_not_in(self, field: str, values: Iterable[Any]) -> "QueryBuilder":
        values = list(values or [])
        if not values:
            return self
        return self.where(f"{field} NOT IN({', '.join(quote_literal(v) for v in values)})")

    def order(self, order: str) -> "QueryBuilder":
        self._order = order
        return self

    def limit(self, limit: int) -> "QueryBuilder":
        self._limit = int(limit)
        return self

    def params(self, params: Mapping) -> "QueryBuilder":
        """Set named parameters, e.g. ``{"@type": "user", "@age": 30}``."""
        self._params = dict(params)
        return self

    @property
    def where_clause(self) -> str:
        return " and ".join(self._where)

    def build_query(self, top: Optional[int] = None, fields: Optional[str] = None) -> str:
        """
        Assemble the query text.

        Args:
            top: TOP value, None for no TOP clause
            fields: Projection override, defaults to the configured fields or ``*``

        Returns:
            ``SELECT [TOP n] <fields> FROM <alias> [joins] [WHERE ...] [ORDER BY ...]``
        """
        parts = ["SELECT"]
        if top is not None:
            parts.append(f"TOP {top}")
        parts.append(fields or self._fields or "*")
        parts += ["FROM", self._from]
        parts += self._joins
        if self._where:
            parts.append(f"WHERE {self.where_clause}")
        if self._order:
            parts.append(f"ORDER BY {self._order}")
        return " ".join(parts)

    # Queries

    def find_all(self, cross_partition: bool = False) -> "QueryBuilder":
        """Run the query honoring ``limit``; results are read in multi-result mode."""
        return self._run(self._limit, True, cross_partition)

    def find(self, cross_partition: bool = False) -> "QueryBuilder":
        """Run the query with ``TOP 1``; results are read in single-result mode."""
        return self._run(1, False, cross_partition)

    def _run(
        self,
        top: Optional[int],
        multiple: bool,
        cross_partition: bool,
        fields: Optional[str] = None,
    ) -> "QueryBuilder":
        collection = self._bound_collection()
        self._response = None
        self._multiple_results = multiple

        query = self.build_query(top, fields)
        logger.debug(f"Executing query: {query}")
        self._response = collection.query(
            query,
            self._params,
            cross_partition=cross_partition,
            partition_value=self._partition_value,
        )
        return self

    # Partition key

    def set_partition_key(self, path: str) -> "QueryBuilder":
        """Partition key path of the collection, e.g. "/tenant" or "/address/city"."""
        self._partition_key = PartitionKeyPath(path)
        return self

    def get_partition_key(self) -> Optional[str]:
        return self._partition_key.path if self._partition_key else None

    def set_partition_value(self, value: Optional[Any]) -> "QueryBuilder":
        """Pin subsequent queries to one partition; None clears it."""
        self._partition_value = value
        return self

    def get_partition_value(self) -> Optional[Any]:
        return self._partition_value

    @staticmethod
    def is_nested(partition_key: str) -> bool:
        return "/" in partition_key.strip("/")

    def partition_query_path(self, alias: Optional[str] = None) -> Optional[str]:
        """Partition key as a query property reference, e.g. ``c.address.city``."""
        if self._partition_key is None:
            return None
        return self._partition_key.query_path(alias or self._from)

    def find_partition_value(self, document: Any) -> Any:
        """
        Resolve the partition key value of a document.

        Raises:
            ValidationError: If no partition key is configured
            PartitionKeyNotFoundError: If the path is absent from the document
        """
        if self._partition_key is None:
            raise ValidationError("No partition key configured")
        return self._partition_key.resolve(document)

    # Writes

    def save(self, document: Any) -> Optional[str]:
        """
        Create or replace a document.

        A document carrying ``_rid`` replaces that resource; anything else is
        created.

        Args:
            document: dict, attribute-style object or pydantic model

        Returns:
            The resource id reported by the service, or None

        Raises:
            DocumentError: If the response body reports ``code`` and ``message``
        """
        collection = self._bound_collection()
        self._response = None
        self._multiple_results = False

        if isinstance(document, BaseModel):
            document = _encode_document(document)
        rid = field_of(document, "_rid", None)
        partition_value = self.find_partition_value(document) if self._partition_key else None
        payload = json.dumps(document, default=_encode_document)

        if rid:
            result = collection.replace_document(
                rid, payload, partition_value, self.triggers_as_headers(TriggerOperation.REPLACE)
            )
        else:
            result = collection.create_document(
                payload, partition_value, self.triggers_as_headers(TriggerOperation.CREATE)
            )
        self._response = [result]

        res = json.loads(result) if result else None
        if isinstance(res, dict):
            if "code" in res and "message" in res:
                raise DocumentError(res["code"], res["message"])
            return res.get("_rid")
        return None

    def delete(self, cross_partition: bool = False) -> bool:
        """
        Delete the first document matching the current filter.

        Returns:
            True if a document was found and deleted
        """
        collection = self._bound_collection()
        document = self._run(1, False, cross_partition, self._delete_projection()).to_object()
        self._response = []

        if not document:
            return False

        self._response = [self._delete_document(collection, document)]
        return True

    def delete_all(self, cross_partition: bool = False) -> bool:
        """
        Delete every document matching the current filter, one request each.

        The delete responses become the result. Always returns True, also
        when nothing matched.
        """
        collection = self._bound_collection()
        documents = self._run(self._limit, True, cross_partition, self._delete_projection()).to_object()

        self._response = [self._delete_document(collection, document) for document in documents]
        logger.info(f"Deleted {len(self._response)} documents")
        return True

    def _delete_projection(self) -> str:
        if self._fields:
            return self._fields
        projection = f"{self._from}._rid"
        if self._partition_key is not None:
            projection += f", {self._from}.{self._partition_key.root}"
        return projection

    def _delete_document(self, collection: "CosmosCollection", document: Any) -> str:
        partition_value = self.find_partition_value(document) if self._partition_key else None
        return collection.delete_document(
            field_of(document, "_rid"),
            partition_value,
            self.triggers_as_headers(TriggerOperation.DELETE),
        )

    # Triggers

    def add_trigger(
        self,
        operation: Union[TriggerOperation, str],
        trigger_type: Union[TriggerType, str],
        trigger_id: str,
    ) -> "QueryBuilder":
        """
        Attach a server-side trigger to writes.

        Raises:
            InvalidTriggerError: If operation is not all/create/delete/replace
                or type is not pre/post
        """
        self.triggers.add(operation, trigger_type, trigger_id)
        return self

    def triggers_as_headers(self, operation: Union[TriggerOperation, str]) -> Dict[str, str]:
        return self.triggers.headers_for(operation)

    # Result shaping

    def to_json(self) -> str:
        """All pages folded into one ``{_rid, _count, Documents}`` envelope."""
        return ResultEnvelope.from_pages(self._response or []).to_wire()

    def to_object(self, key_field: Optional[str] = None) -> Any:
        """
        Documents with attribute access.

        Returns:
            Multi-result mode: list of documents, or a dict keyed by
            ``key_field`` (a repeated key keeps the later document).
            Single-result mode: the first document or None.
        """
        return self._shape(self._documents(_as_namespace), key_field)

    def to_array(self, key_field: Optional[str] = None) -> Any:
        """Same as ``to_object`` with documents as plain nested dicts."""
        return self._shape(self._documents(None), key_field)

    def get_value(self, field: str, default: Any = None) -> Any:
        """Read a field of the first result, or ``default`` if absent or null."""
        documents = self._documents(_as_namespace)
        document = documents[0] if documents else None
        value = field_of(document, field, None)
        return default if value is None else value

    def _shape(self, documents: List[Any], key_field: Optional[str]) -> Any:
        if not self._multiple_results:
            return documents[0] if documents else None
        if key_field is not None:
            return {
                field_of(doc, key_field): doc
                for doc in documents
                if field_of(doc, key_field, None) is not None
            }
        return documents

    def _documents(self, object_hook) -> List[Any]:
        results: List[Any] = []
        for page in self._response or []:
            if not page:
                continue
            res = json.loads(page, object_hook=object_hook)
            documents = field_of(res, "Documents", None)
            if documents is not None:
                results.extend(documents)
            else:
                results.append(res)
        return results

    def _bound_collection(self) -> "CosmosCollection":
        if self.collection is None:
            raise ValidationError("QueryBuilder is not bound to a collection")
        return self.collection
