"""Client module initialization."""

from .cosmos import CosmosClient, CosmosCollection, CosmosDatabase
from .executor import PagedQueryExecutor
from .resources import ResourceClient, ResourceKind
from .transport import TransportClient

__all__ = [
    "CosmosClient",
    "CosmosDatabase",
    "CosmosCollection",
    "PagedQueryExecutor",
    "ResourceClient",
    "ResourceKind",
    "TransportClient",
]
