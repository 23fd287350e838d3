"""
Cosmos DB client models.

Pydantic models for the request descriptors and response envelopes exchanged
with the Azure Cosmos DB REST API.

Author: Cosmoslite Team
Date: 2026-02-03
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryParameter(BaseModel):
    """Named query parameter.

    Attributes:
        name: Parameter name as referenced in the query text (e.g. "@type")
        value: Parameter value, strings and numbers keep their JSON type
    """

    name: str
    value: Any = None


class QueryDescriptor(BaseModel):
    """One logical query, consumed once per execution.

    Attributes:
        query: SQL query text
        parameters: Ordered named parameters
        partition_value: Pins the query to one partition when set
        cross_partition: Allows the query to fan out across partitions
    """

    query: str
    parameters: List[QueryParameter] = Field(default_factory=list)
    partition_value: Optional[Any] = None
    cross_partition: bool = False

    @field_validator("parameters", mode="before")
    @classmethod
    def validate_parameters(cls, v: Any) -> Any:
        """Accept a mapping or (name, value) pairs as well as models.

        Args:
            v: Parameters in any supported shape

        Returns:
            List of parameter dicts or models
        """
        if v is None:
            return []
        if isinstance(v, dict):
            return [{"name": name, "value": value} for name, value in v.items()]
        return [
            {"name": p[0], "value": p[1]} if isinstance(p, (tuple, list)) else p
            for p in v
        ]

    def to_body(self) -> str:
        """Render the ``application/query+json`` request body."""
        return json.dumps({
            "query": self.query,
            "parameters": [p.model_dump() for p in self.parameters],
        })


class TransportResponse(BaseModel):
    """One HTTP round trip.

    Attributes:
        status_code: HTTP status code
        body: Raw response body
        headers: Response headers with lower-cased names
    """

    status_code: int = 200
    body: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("headers", mode="before")
    @classmethod
    def lower_header_names(cls, v: Any) -> Dict[str, str]:
        return {str(k).lower(): str(val) for k, val in dict(v or {}).items()}

    @property
    def continuation(self) -> Optional[str]:
        """Continuation token, or None when this was the last page."""
        return self.headers.get("x-ms-continuation") or None

    def decode(self) -> Any:
        return json.loads(self.body) if self.body else None


class ResultEnvelope(BaseModel):
    """Documents aggregated across all pages of one logical query.

    Attributes:
        _rid: Resource ID of the collection
        _count: Sum of the counts reported by every page
        documents: Concatenated documents of every page
    """

    rid: str = Field(default="", alias="_rid")
    count: int = Field(default=0, alias="_count")
    documents: List[Any] = Field(default_factory=list, alias="Documents")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_pages(cls, pages: List[str]) -> "ResultEnvelope":
        """Fold raw page bodies into one envelope.

        The count is summed from each page's ``_count`` and never recomputed
        from the document list; delete-shaped pages report no documents.
        Empty bodies (e.g. 204 No Content) are skipped.
        """
        envelope = cls()
        for page in pages:
            res = json.loads(page) if page else None
            if not isinstance(res, dict):
                continue
            envelope.rid = res.get("_rid", envelope.rid)
            envelope.count += int(res.get("_count", 0) or 0)
            envelope.documents.extend(res.get("Documents") or [])
        return envelope

    def to_wire(self) -> str:
        return json.dumps(self.model_dump(by_alias=True))


class PartitionKeyRange(BaseModel):
    """Server-defined slice of a collection's partition key space."""

    id: str
    min_inclusive: str = Field(default="", alias="minInclusive")
    max_exclusive: str = Field(default="", alias="maxExclusive")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class PartitionKeyRangeList(BaseModel):
    """List of partition key ranges.

    Attributes:
        _rid: Resource ID of the collection
        ranges: Partition key ranges
        _count: Count of ranges
    """

    rid: str = Field(default="", alias="_rid")
    ranges: List[PartitionKeyRange] = Field(default_factory=list, alias="PartitionKeyRanges")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)

    def full_range(self) -> str:
        """Header value addressing every range: ``<rid>,<id>,<id>...``."""
        return ",".join([self.rid] + [r.id for r in self.ranges])


class ResourceRef(BaseModel):
    """Minimal listed resource (database or collection)."""

    id: str
    rid: str = Field(default="", alias="_rid")
    self_link: str = Field(default="", alias="_self")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class DatabaseListResult(BaseModel):
    """List of databases.

    Attributes:
        _rid: Resource ID
        databases: List of databases
        _count: Count of databases
    """

    rid: str = Field(default="", alias="_rid")
    databases: List[ResourceRef] = Field(default_factory=list, alias="Databases")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)

    def find(self, name: str) -> Optional[ResourceRef]:
        return next((db for db in self.databases if db.id == name), None)


class CollectionListResult(BaseModel):
    """List of collections.

    Attributes:
        _rid: Resource ID
        document_collections: List of collections
        _count: Count of collections
    """

    rid: str = Field(default="", alias="_rid")
    document_collections: List[ResourceRef] = Field(default_factory=list, alias="DocumentCollections")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)

    def find(self, name: str) -> Optional[ResourceRef]:
        return next((c for c in self.document_collections if c.id == name), None)


class PartitionKeyDefinition(BaseModel):
    """Partition key definition for a new collection.

    Attributes:
        paths: List of partition key paths (e.g., ["/userId"])
        kind: Partition key kind (Hash or Range)
    """

    paths: List[str]
    kind: str = "Hash"

    @field_validator("paths", mode="before")
    @classmethod
    def validate_paths(cls, v: List[str]) -> List[str]:
        """Validate partition key paths.

        Args:
            v: Partition key paths

        Returns:
            Paths, each with a leading slash

        Raises:
            ValueError: If paths are empty
        """
        if not v:
            raise ValueError("Partition key paths cannot be empty")
        return [p if p.startswith("/") else f"/{p}" for p in v]


class CreateCollectionRequest(BaseModel):
    """Request to create a collection."""

    id: str
    partition_key: Optional[PartitionKeyDefinition] = Field(default=None, alias="partitionKey")

    model_config = ConfigDict(populate_by_name=True)

    def to_body(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True))
