"""
Cosmoslite: a small synchronous client for the Azure Cosmos DB SQL REST API.

Master-key request signing, paged query execution with the cross-partition
gateway fallback, a fluent query builder and thin resource operations.
"""

__version__ = "0.1.0"

from .client.cosmos import CosmosClient, CosmosCollection, CosmosDatabase
from .query.builder import QueryBuilder

__all__ = ["CosmosClient", "CosmosDatabase", "CosmosCollection", "QueryBuilder", "__version__"]
