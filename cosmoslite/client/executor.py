"""
Paged query execution.

Drives one logical SQL query to completion. The service paginates any
response above its payload limit regardless of ``x-ms-max-item-count``, and
its gateway may refuse certain cross-partition queries outright; both are
handled here so callers always see one logical result.

Author: Cosmoslite Team
Date: 2026-02-04
"""

import json
import logging
from typing import Dict, List

from cosmoslite.auth.masterkey import MasterKeySigner
from cosmoslite.client.transport import TransportClient
from cosmoslite.core.logging_config import log_with_context
from cosmoslite.exceptions import RemoteError
from cosmoslite.models import PartitionKeyRangeList, QueryDescriptor

logger = logging.getLogger(__name__)

GATEWAY_CROSS_PARTITION_MESSAGE = "cross partition query can not be directly served by the gateway"


def partition_key_header(value) -> str:
    """Render the ``x-ms-documentdb-partitionkey`` value: ``["<value>"]``."""
    return json.dumps([str(value)])


class PagedQueryExecutor:
    """
    Runs queries against a collection's documents feed.

    Pagination and the partition-range retry are sequential; a retried query
    costs at most twice the pages of a plain one.
    """

    def __init__(self, transport: TransportClient, signer: MasterKeySigner):
        """
        Initialize the executor.

        Args:
            transport: Transport used for every page request
            signer: Signs each request afresh
        """
        self.transport = transport
        self.signer = signer

    def run(self, database_id: str, collection_id: str, descriptor: QueryDescriptor) -> List[str]:
        """
        Execute a query and return every raw page body, in order.

        Args:
            database_id: Database id or _rid
            collection_id: Collection id or _rid
            descriptor: Query text, parameters and partition options

        Returns:
            Raw page bodies, one per HTTP round trip

        Raises:
            RemoteError: Any service error other than the recoverable
                cross-partition gateway error, or any error of the retry
            TransportError: On network failure
        """
        headers = self._query_headers(descriptor)

        try:
            return self._paginate(database_id, collection_id, descriptor, headers)
        except RemoteError as e:
            if not self._is_gateway_cross_partition_error(e, descriptor):
                raise

            full_range = self.get_partition_key_full_range(database_id, collection_id)
            log_with_context(
                logger,
                logging.INFO,
                "Gateway refused cross partition query, retrying with explicit partition key ranges",
                collection=collection_id,
                partition_key_range_id=full_range,
            )
            headers["x-ms-documentdb-partitionkeyrangeid"] = full_range
            return self._paginate(database_id, collection_id, descriptor, headers)

    def get_partition_key_ranges(self, database_id: str, collection_id: str) -> PartitionKeyRangeList:
        """
        List the partition key ranges of a collection.

        Args:
            database_id: Database id or _rid
            collection_id: Collection id or _rid

        Returns:
            PartitionKeyRangeList
        """
        headers = self.signer.sign("GET", "pkranges", collection_id)
        headers["x-ms-max-item-count"] = "-1"
        response = self.transport.send(
            f"/dbs/{database_id}/colls/{collection_id}/pkranges", "GET", headers
        )
        return PartitionKeyRangeList.model_validate_json(response.body)

    def get_partition_key_full_range(self, database_id: str, collection_id: str) -> str:
        """``<collection rid>,<range id>,<range id>...`` addressing every partition."""
        return self.get_partition_key_ranges(database_id, collection_id).full_range()

    def _paginate(
        self,
        database_id: str,
        collection_id: str,
        descriptor: QueryDescriptor,
        headers: Dict[str, str],
    ) -> List[str]:
        path = f"/dbs/{database_id}/colls/{collection_id}/docs"
        body = descriptor.to_body()
        pages: List[str] = []
        continuation = None

        while True:
            request_headers = {**headers, **self.signer.sign("POST", "docs", collection_id)}
            if continuation:
                request_headers["x-ms-continuation"] = continuation

            response = self.transport.send(path, "POST", request_headers, body)
            pages.append(response.body)

            continuation = response.continuation
            logger.debug(f"Fetched page {len(pages)} of query on {path} (more: {bool(continuation)})")
            if not continuation:
                return pages

    @staticmethod
    def _query_headers(descriptor: QueryDescriptor) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/query+json",
            "x-ms-max-item-count": "-1",
            "x-ms-documentdb-isquery": "True",
        }
        if descriptor.cross_partition:
            headers["x-ms-documentdb-query-enablecrosspartition"] = "True"
        if descriptor.partition_value is not None and descriptor.partition_value != "":
            headers["x-ms-documentdb-partitionkey"] = partition_key_header(descriptor.partition_value)
        return headers

    @staticmethod
    def _is_gateway_cross_partition_error(error: RemoteError, descriptor: QueryDescriptor) -> bool:
        return (
            error.is_client_error
            and descriptor.cross_partition
            and error.code == "BadRequest"
            and GATEWAY_CROSS_PARTITION_MESSAGE in (error.message or "")
        )
