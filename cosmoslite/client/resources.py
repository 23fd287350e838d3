"""
Uniform resource operations.

Every Cosmos DB resource kind (databases, collections, documents, users,
permissions, offers, stored procedures, user-defined functions, triggers,
attachments) is reached through the same signed verb + path + body call.
``ResourceClient.invoke`` is that call; the named methods are thin wrappers
kept for readability at call sites.

Author: Cosmoslite Team
Date: 2026-02-05
"""

import logging
from enum import Enum
from typing import Dict, Optional, Union
from urllib.parse import quote_plus

from cosmoslite.auth.masterkey import MasterKeySigner
from cosmoslite.client.executor import partition_key_header
from cosmoslite.client.transport import TransportClient
from cosmoslite.exceptions import ValidationError

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Resource types as named in paths and signatures."""
    DATABASES = "dbs"
    COLLECTIONS = "colls"
    DOCUMENTS = "docs"
    USERS = "users"
    PERMISSIONS = "permissions"
    OFFERS = "offers"
    STORED_PROCEDURES = "sprocs"
    USER_DEFINED_FUNCTIONS = "udfs"
    TRIGGERS = "triggers"
    ATTACHMENTS = "attachments"
    PARTITION_KEY_RANGES = "pkranges"


# Feed path of each kind; "{db}", "{coll}" and "{owner}" are filled in by invoke
PATH_TEMPLATES: Dict[ResourceKind, str] = {
    ResourceKind.DATABASES: "/dbs",
    ResourceKind.COLLECTIONS: "/dbs/{db}/colls",
    ResourceKind.DOCUMENTS: "/dbs/{db}/colls/{coll}/docs",
    ResourceKind.USERS: "/dbs/{db}/users",
    ResourceKind.PERMISSIONS: "/dbs/{db}/users/{owner}/permissions",
    ResourceKind.OFFERS: "/offers",
    ResourceKind.STORED_PROCEDURES: "/dbs/{db}/colls/{coll}/sprocs",
    ResourceKind.USER_DEFINED_FUNCTIONS: "/dbs/{db}/colls/{coll}/udfs",
    ResourceKind.TRIGGERS: "/dbs/{db}/colls/{coll}/triggers",
    ResourceKind.ATTACHMENTS: "/dbs/{db}/colls/{coll}/docs/{owner}/attachments",
    ResourceKind.PARTITION_KEY_RANGES: "/dbs/{db}/colls/{coll}/pkranges",
}


class ResourceClient:
    """
    Signed one-shot calls for every resource kind.

    Feed operations (list, create) are signed with the owning resource's id;
    item operations (get, replace, delete, execute) with the item's own id.
    """

    def __init__(self, transport: TransportClient, signer: MasterKeySigner):
        self.transport = transport
        self.signer = signer

    def invoke(
        self,
        database_id: Optional[str],
        collection_id: Optional[str],
        resource_kind: Union[ResourceKind, str],
        verb: str,
        resource_id: Optional[str] = None,
        body: Optional[Union[str, bytes]] = None,
        headers: Optional[Dict[str, str]] = None,
        owner_id: Optional[str] = None,
    ) -> str:
        """
        Send one signed request and return the raw response body.

        Args:
            database_id: Database id or _rid (unused for dbs/offers feeds)
            collection_id: Collection id or _rid for collection-scoped kinds
            resource_kind: Kind of resource addressed
            verb: HTTP method
            resource_id: Item id, None to address the feed
            body: Request body
            headers: Extra request headers; signed headers take precedence
            owner_id: Document id for attachments, user id for permissions

        Returns:
            Raw response body

        Raises:
            ValidationError: If the path cannot be built from the given ids
            RemoteError: On a non-2xx response
            TransportError: On network failure
        """
        kind = ResourceKind(resource_kind)
        path = self.build_path(kind, database_id, collection_id, resource_id, owner_id)
        signing_id = resource_id or self._owner_of(kind, database_id, collection_id, owner_id)

        request_headers = {**(headers or {}), **self.signer.sign(verb, kind.value, signing_id)}
        logger.debug(f"Invoking {verb} {kind.value} at {path}")
        return self.transport.send(path, verb, request_headers, body).body

    @staticmethod
    def build_path(
        kind: ResourceKind,
        database_id: Optional[str] = None,
        collection_id: Optional[str] = None,
        resource_id: Optional[str] = None,
        owner_id: Optional[str] = None,
    ) -> str:
        """
        Build the request path for a kind, optionally down to one item.

        Raises:
            ValidationError: If a required parent id is missing
        """
        template = PATH_TEMPLATES[kind]
        required = {"{db}": database_id, "{coll}": collection_id, "{owner}": owner_id}
        for placeholder, value in required.items():
            if placeholder in template:
                if not value:
                    raise ValidationError(
                        f"Missing {placeholder.strip('{}')} id for resource kind '{kind.value}'"
                    )
                template = template.replace(placeholder, value)
        return f"{template}/{resource_id}" if resource_id else template

    @staticmethod
    def _owner_of(
        kind: ResourceKind,
        database_id: Optional[str],
        collection_id: Optional[str],
        owner_id: Optional[str],
    ) -> str:
        if kind in (ResourceKind.DATABASES, ResourceKind.OFFERS):
            return ""
        if kind in (ResourceKind.ATTACHMENTS, ResourceKind.PERMISSIONS):
            return owner_id or ""
        if kind in (ResourceKind.COLLECTIONS, ResourceKind.USERS):
            return database_id or ""
        return collection_id or ""

    # Account

    def get_info(self) -> str:
        """Database account properties (GET on the endpoint root)."""
        headers = self.signer.sign("GET", "", "")
        return self.transport.send("/", "GET", headers).body

    # Databases

    def list_databases(self) -> str:
        return self.invoke(None, None, ResourceKind.DATABASES, "GET")

    def get_database(self, database_id: str) -> str:
        return self.invoke(None, None, ResourceKind.DATABASES, "GET", database_id)

    def create_database(self, json_body: str) -> str:
        return self.invoke(None, None, ResourceKind.DATABASES, "POST", body=json_body)

    def replace_database(self, database_id: str, json_body: str) -> str:
        return self.invoke(None, None, ResourceKind.DATABASES, "PUT", database_id, json_body)

    def delete_database(self, database_id: str) -> str:
        return self.invoke(None, None, ResourceKind.DATABASES, "DELETE", database_id)

    # Users and permissions

    def list_users(self, database_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.USERS, "GET")

    def get_user(self, database_id: str, user_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.USERS, "GET", user_id)

    def create_user(self, database_id: str, json_body: str) -> str:
        return self.invoke(database_id, None, ResourceKind.USERS, "POST", body=json_body)

    def replace_user(self, database_id: str, user_id: str, json_body: str) -> str:
        return self.invoke(database_id, None, ResourceKind.USERS, "PUT", user_id, json_body)

    def delete_user(self, database_id: str, user_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.USERS, "DELETE", user_id)

    def list_permissions(self, database_id: str, user_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.PERMISSIONS, "GET", owner_id=user_id)

    def get_permission(self, database_id: str, user_id: str, permission_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.PERMISSIONS, "GET", permission_id, owner_id=user_id)

    def create_permission(self, database_id: str, user_id: str, json_body: str) -> str:
        return self.invoke(database_id, None, ResourceKind.PERMISSIONS, "POST", body=json_body, owner_id=user_id)

    def replace_permission(self, database_id: str, user_id: str, permission_id: str, json_body: str) -> str:
        return self.invoke(
            database_id, None, ResourceKind.PERMISSIONS, "PUT", permission_id, json_body, owner_id=user_id
        )

    def delete_permission(self, database_id: str, user_id: str, permission_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.PERMISSIONS, "DELETE", permission_id, owner_id=user_id)

    # Collections

    def list_collections(self, database_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.COLLECTIONS, "GET")

    def get_collection(self, database_id: str, collection_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.COLLECTIONS, "GET", collection_id)

    def create_collection(self, database_id: str, json_body: str) -> str:
        return self.invoke(database_id, None, ResourceKind.COLLECTIONS, "POST", body=json_body)

    def delete_collection(self, database_id: str, collection_id: str) -> str:
        return self.invoke(database_id, None, ResourceKind.COLLECTIONS, "DELETE", collection_id)

    # Documents

    def list_documents(self, database_id: str, collection_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.DOCUMENTS, "GET")

    def get_document(self, database_id: str, collection_id: str, document_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.DOCUMENTS, "GET", document_id)

    def create_document(
        self,
        database_id: str,
        collection_id: str,
        json_body: str,
        partition_key=None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Create a document.

        Args:
            database_id: Database id or _rid
            collection_id: Collection id or _rid
            json_body: Serialized document
            partition_key: Partition key value of the document
            headers: Extra headers, typically trigger includes
        """
        return self.invoke(
            database_id, collection_id, ResourceKind.DOCUMENTS, "POST",
            body=json_body, headers=_with_partition_key(headers, partition_key),
        )

    def replace_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        json_body: str,
        partition_key=None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        return self.invoke(
            database_id, collection_id, ResourceKind.DOCUMENTS, "PUT", document_id,
            json_body, headers=_with_partition_key(headers, partition_key),
        )

    def delete_document(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        partition_key=None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        return self.invoke(
            database_id, collection_id, ResourceKind.DOCUMENTS, "DELETE", document_id,
            headers=_with_partition_key(headers, partition_key),
        )

    # Attachments

    def list_attachments(self, database_id: str, collection_id: str, document_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.ATTACHMENTS, "GET", owner_id=document_id)

    def get_attachment(self, database_id: str, collection_id: str, document_id: str, attachment_id: str) -> str:
        return self.invoke(
            database_id, collection_id, ResourceKind.ATTACHMENTS, "GET", attachment_id, owner_id=document_id
        )

    def create_attachment(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        content_type: str,
        filename: str,
        media: bytes,
    ) -> str:
        """Upload raw media as an attachment; the filename travels in the Slug header."""
        headers = {"Content-Type": content_type, "Slug": quote_plus(filename)}
        return self.invoke(
            database_id, collection_id, ResourceKind.ATTACHMENTS, "POST",
            body=media, headers=headers, owner_id=document_id,
        )

    def replace_attachment(
        self,
        database_id: str,
        collection_id: str,
        document_id: str,
        attachment_id: str,
        content_type: str,
        filename: str,
        media: bytes,
    ) -> str:
        headers = {"Content-Type": content_type, "Slug": quote_plus(filename)}
        return self.invoke(
            database_id, collection_id, ResourceKind.ATTACHMENTS, "PUT", attachment_id,
            media, headers=headers, owner_id=document_id,
        )

    def delete_attachment(self, database_id: str, collection_id: str, document_id: str, attachment_id: str) -> str:
        return self.invoke(
            database_id, collection_id, ResourceKind.ATTACHMENTS, "DELETE", attachment_id, owner_id=document_id
        )

    # Offers

    def list_offers(self) -> str:
        return self.invoke(None, None, ResourceKind.OFFERS, "GET")

    def get_offer(self, offer_id: str) -> str:
        return self.invoke(None, None, ResourceKind.OFFERS, "GET", offer_id)

    def replace_offer(self, offer_id: str, json_body: str) -> str:
        return self.invoke(None, None, ResourceKind.OFFERS, "PUT", offer_id, json_body)

    def query_offers(self, query_json: str) -> str:
        headers = {"Content-Type": "application/query+json", "x-ms-documentdb-isquery": "True"}
        return self.invoke(None, None, ResourceKind.OFFERS, "POST", body=query_json, headers=headers)

    # Stored procedures

    def list_stored_procedures(self, database_id: str, collection_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.STORED_PROCEDURES, "GET")

    def create_stored_procedure(self, database_id: str, collection_id: str, json_body: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.STORED_PROCEDURES, "POST", body=json_body)

    def replace_stored_procedure(self, database_id: str, collection_id: str, sproc_id: str, json_body: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.STORED_PROCEDURES, "PUT", sproc_id, json_body)

    def delete_stored_procedure(self, database_id: str, collection_id: str, sproc_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.STORED_PROCEDURES, "DELETE", sproc_id)

    def execute_stored_procedure(self, database_id: str, collection_id: str, sproc_id: str, json_params: str) -> str:
        """Execute a stored procedure; ``json_params`` is the JSON array of arguments."""
        return self.invoke(database_id, collection_id, ResourceKind.STORED_PROCEDURES, "POST", sproc_id, json_params)

    # User-defined functions

    def list_user_defined_functions(self, database_id: str, collection_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.USER_DEFINED_FUNCTIONS, "GET")

    def create_user_defined_function(self, database_id: str, collection_id: str, json_body: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.USER_DEFINED_FUNCTIONS, "POST", body=json_body)

    def replace_user_defined_function(self, database_id: str, collection_id: str, udf_id: str, json_body: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.USER_DEFINED_FUNCTIONS, "PUT", udf_id, json_body)

    def delete_user_defined_function(self, database_id: str, collection_id: str, udf_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.USER_DEFINED_FUNCTIONS, "DELETE", udf_id)

    # Triggers

    def list_triggers(self, database_id: str, collection_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.TRIGGERS, "GET")

    def create_trigger(self, database_id: str, collection_id: str, json_body: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.TRIGGERS, "POST", body=json_body)

    def replace_trigger(self, database_id: str, collection_id: str, trigger_id: str, json_body: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.TRIGGERS, "PUT", trigger_id, json_body)

    def delete_trigger(self, database_id: str, collection_id: str, trigger_id: str) -> str:
        return self.invoke(database_id, collection_id, ResourceKind.TRIGGERS, "DELETE", trigger_id)


def _with_partition_key(headers: Optional[Dict[str, str]], partition_key) -> Dict[str, str]:
    merged = dict(headers or {})
    if partition_key is not None and partition_key != "":
        merged["x-ms-documentdb-partitionkey"] = partition_key_header(partition_key)
    return merged
