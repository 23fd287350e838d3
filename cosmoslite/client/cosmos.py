"""
Cosmos DB client and resource handles.

``CosmosClient`` wires signer, transport, executor and resource client
together and hands out ``CosmosDatabase`` / ``CosmosCollection`` handles
addressed by resource id (_rid).

Author: Cosmoslite Team
Date: 2026-02-06
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from cosmoslite.auth.masterkey import MasterKeyCredentials, MasterKeySigner
from cosmoslite.client.executor import PagedQueryExecutor
from cosmoslite.client.resources import ResourceClient
from cosmoslite.client.transport import TransportClient
from cosmoslite.core.config_manager import CosmosConfig, HttpConfig
from cosmoslite.models import (
    CollectionListResult,
    CreateCollectionRequest,
    DatabaseListResult,
    PartitionKeyDefinition,
    PartitionKeyRangeList,
    QueryDescriptor,
)
from cosmoslite.query.builder import QueryBuilder

logger = logging.getLogger(__name__)


class CosmosClient:
    """
    Entry point for one Cosmos DB account.

    The client and everything it owns are read-only after construction and
    may be shared by any number of query builders.
    """

    def __init__(
        self,
        endpoint: str,
        master_key: str,
        http_options: Optional[Dict[str, Any]] = None,
        http_client: Optional[httpx.Client] = None,
        user_agent: Optional[str] = None,
        clock=None,
    ):
        """
        Initialize the client.

        Args:
            endpoint: Account endpoint, e.g. https://myaccount.documents.azure.com:443
            master_key: Base64-encoded primary or secondary key
            http_options: Keyword arguments for ``httpx.Client`` (timeout, proxy, verify...)
            http_client: Pre-built ``httpx.Client``, overrides ``http_options``
            user_agent: User-Agent header value
            clock: Current-time callable for the signer
        """
        self.credentials = MasterKeyCredentials(endpoint=endpoint.rstrip("/"), master_key=master_key)
        signer_kwargs = {"user_agent": user_agent} if user_agent else {}
        self.signer = MasterKeySigner(self.credentials, clock=clock, **signer_kwargs)
        self.transport = TransportClient(self.credentials.endpoint, http_options, client=http_client)
        self.executor = PagedQueryExecutor(self.transport, self.signer)
        self.resources = ResourceClient(self.transport, self.signer)

    @classmethod
    def from_config(cls, config: CosmosConfig, http_client: Optional[httpx.Client] = None) -> "CosmosClient":
        """Build a client from a loaded configuration."""
        http: HttpConfig = config.http
        return cls(
            config.endpoint,
            config.master_key,
            http_options=http.client_options(),
            http_client=http_client,
            user_agent=http.user_agent,
        )

    def get_info(self) -> str:
        return self.resources.get_info()

    def list_databases(self) -> DatabaseListResult:
        return DatabaseListResult.model_validate_json(self.resources.list_databases())

    def select_db(self, name: str, create: bool = False) -> Optional["CosmosDatabase"]:
        """
        Look up a database by id.

        Args:
            name: Database id
            create: Create the database when it does not exist

        Returns:
            CosmosDatabase addressed by _rid, or None if not found
        """
        found = self.list_databases().find(name)
        if found is not None:
            return CosmosDatabase(self, found.rid)

        if not create:
            logger.info(f"Database '{name}' not found")
            return None

        created = json.loads(self.resources.create_database(json.dumps({"id": name})))
        logger.info(f"Created database '{name}'")
        rid = created.get("_rid")
        return CosmosDatabase(self, rid) if rid else None

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "CosmosClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class CosmosDatabase:
    """Handle on one database."""

    def __init__(self, client: CosmosClient, database_id: str):
        self.client = client
        self.database_id = database_id

    def list_collections(self) -> CollectionListResult:
        return CollectionListResult.model_validate_json(
            self.client.resources.list_collections(self.database_id)
        )

    def select_collection(self, name: str) -> Optional["CosmosCollection"]:
        """
        Look up a collection by id.

        Returns:
            CosmosCollection addressed by _rid, or None if not found
        """
        found = self.list_collections().find(name)
        if found is None:
            logger.info(f"Collection '{name}' not found in database {self.database_id}")
            return None
        return CosmosCollection(self.client, self.database_id, found.rid)

    def create_collection(self, name: str, partition_key: Optional[str] = None) -> Optional["CosmosCollection"]:
        """
        Create a collection.

        Args:
            name: Collection id
            partition_key: Partition key path, e.g. "/tenant" (Hash kind)

        Returns:
            CosmosCollection addressed by _rid, or None if the service returned no _rid
        """
        request = CreateCollectionRequest(
            id=name,
            partitionKey=PartitionKeyDefinition(paths=[partition_key]) if partition_key else None,
        )
        created = json.loads(self.client.resources.create_collection(self.database_id, request.to_body()))
        rid = created.get("_rid")
        return CosmosCollection(self.client, self.database_id, rid) if rid else None


class CosmosCollection:
    """Handle on one collection: queries, documents and server-side scripts."""

    def __init__(self, client: CosmosClient, database_id: str, collection_id: str):
        self.client = client
        self.database_id = database_id
        self.collection_id = collection_id

    def query_builder(self) -> QueryBuilder:
        return QueryBuilder(self)

    def query(
        self,
        query: str,
        params: Optional[Mapping[str, Any]] = None,
        cross_partition: bool = False,
        partition_value: Optional[Any] = None,
    ) -> List[str]:
        """
        Run a SQL query to completion.

        Args:
            query: Query text
            params: Named parameters, e.g. {"@type": "user"}
            cross_partition: Allow fan-out across partitions
            partition_value: Pin the query to one partition

        Returns:
            Raw page bodies
        """
        descriptor = QueryDescriptor(
            query=query,
            parameters=dict(params or {}),
            partition_value=partition_value,
            cross_partition=cross_partition,
        )
        return self.client.executor.run(self.database_id, self.collection_id, descriptor)

    def get_pk_ranges(self) -> PartitionKeyRangeList:
        return self.client.executor.get_partition_key_ranges(self.database_id, self.collection_id)

    def get_pk_full_range(self) -> str:
        return self.client.executor.get_partition_key_full_range(self.database_id, self.collection_id)

    # Documents

    def create_document(self, json_body: str, partition_key=None, headers: Optional[Dict[str, str]] = None) -> str:
        return self.client.resources.create_document(
            self.database_id, self.collection_id, json_body, partition_key, headers
        )

    def replace_document(
        self,
        document_id: str,
        json_body: str,
        partition_key=None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        return self.client.resources.replace_document(
            self.database_id, self.collection_id, document_id, json_body, partition_key, headers
        )

    def delete_document(self, document_id: str, partition_key=None, headers: Optional[Dict[str, str]] = None) -> str:
        """Delete a document by resource id (_rid)."""
        return self.client.resources.delete_document(
            self.database_id, self.collection_id, document_id, partition_key, headers
        )

    # Stored procedures

    def list_stored_procedures(self) -> str:
        return self.client.resources.list_stored_procedures(self.database_id, self.collection_id)

    def execute_stored_procedure(self, sproc_id: str, json_params: str) -> str:
        return self.client.resources.execute_stored_procedure(
            self.database_id, self.collection_id, sproc_id, json_params
        )

    def create_stored_procedure(self, json_body: str) -> str:
        return self.client.resources.create_stored_procedure(self.database_id, self.collection_id, json_body)

    def replace_stored_procedure(self, sproc_id: str, json_body: str) -> str:
        return self.client.resources.replace_stored_procedure(
            self.database_id, self.collection_id, sproc_id, json_body
        )

    def delete_stored_procedure(self, sproc_id: str) -> str:
        return self.client.resources.delete_stored_procedure(self.database_id, self.collection_id, sproc_id)

    # User-defined functions

    def list_user_defined_functions(self) -> str:
        return self.client.resources.list_user_defined_functions(self.database_id, self.collection_id)

    def create_user_defined_function(self, json_body: str) -> str:
        return self.client.resources.create_user_defined_function(self.database_id, self.collection_id, json_body)

    def replace_user_defined_function(self, udf_id: str, json_body: str) -> str:
        return self.client.resources.replace_user_defined_function(
            self.database_id, self.collection_id, udf_id, json_body
        )

    def delete_user_defined_function(self, udf_id: str) -> str:
        return self.client.resources.delete_user_defined_function(self.database_id, self.collection_id, udf_id)

    # Triggers

    def list_triggers(self) -> str:
        return self.client.resources.list_triggers(self.database_id, self.collection_id)

    def create_trigger(self, json_body: str) -> str:
        return self.client.resources.create_trigger(self.database_id, self.collection_id, json_body)

    def replace_trigger(self, trigger_id: str, json_body: str) -> str:
        return self.client.resources.replace_trigger(self.database_id, self.collection_id, trigger_id, json_body)

    def delete_trigger(self, trigger_id: str) -> str:
        return self.client.resources.delete_trigger(self.database_id, self.collection_id, trigger_id)
