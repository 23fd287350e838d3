"""Tests for uniform resource operations."""

import base64
import json
from datetime import datetime, timezone
from urllib.parse import unquote_plus

import httpx
import pytest

from cosmoslite.auth.masterkey import MasterKeyCredentials, MasterKeySigner, build_string_to_sign, compute_signature
from cosmoslite.client.resources import ResourceClient, ResourceKind
from cosmoslite.client.transport import TransportClient
from cosmoslite.exceptions import RemoteError, ValidationError


ENDPOINT = "https://acct.documents.azure.com:443"
MASTER_KEY = base64.b64encode(b"resource-test-key").decode()
FIXED_NOW = datetime(2025, 12, 4, 10, 28, 0, tzinfo=timezone.utc)
SIGNED_DATE = "Thu, 04 Dec 2025 10:30:00 GMT"


class Recorder:
    """MockTransport handler answering every request with one canned response."""

    def __init__(self, status=200, body='{"_rid": "r1"}'):
        self.status = status
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, text=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def resources(recorder):
    signer = MasterKeySigner(MasterKeyCredentials(ENDPOINT, MASTER_KEY), clock=lambda: FIXED_NOW)
    transport = TransportClient(ENDPOINT, client=httpx.Client(transport=httpx.MockTransport(recorder)))
    return ResourceClient(transport, signer)


def signed_with(request: httpx.Request, verb: str, resource_type: str, resource_id: str) -> bool:
    text = build_string_to_sign(verb, resource_type, resource_id, SIGNED_DATE)
    expected = compute_signature(text, base64.b64decode(MASTER_KEY))
    return unquote_plus(request.headers["authorization"]).endswith(f"sig={expected}")


class TestBuildPath:
    """Test path construction."""

    @pytest.mark.parametrize("kind,kwargs,expected", [
        (ResourceKind.DATABASES, {}, "/dbs"),
        (ResourceKind.DATABASES, {"resource_id": "db1"}, "/dbs/db1"),
        (ResourceKind.COLLECTIONS, {"database_id": "db1"}, "/dbs/db1/colls"),
        (ResourceKind.DOCUMENTS, {"database_id": "db1", "collection_id": "c1", "resource_id": "d1"},
         "/dbs/db1/colls/c1/docs/d1"),
        (ResourceKind.PERMISSIONS, {"database_id": "db1", "owner_id": "u1"}, "/dbs/db1/users/u1/permissions"),
        (ResourceKind.ATTACHMENTS, {"database_id": "db1", "collection_id": "c1", "owner_id": "d1"},
         "/dbs/db1/colls/c1/docs/d1/attachments"),
        (ResourceKind.OFFERS, {"resource_id": "o1"}, "/offers/o1"),
        (ResourceKind.PARTITION_KEY_RANGES, {"database_id": "db1", "collection_id": "c1"},
         "/dbs/db1/colls/c1/pkranges"),
    ])
    def test_paths(self, kind, kwargs, expected):
        assert ResourceClient.build_path(kind, **kwargs) == expected

    def test_missing_parent_id(self):
        """Collection-scoped kinds require a collection id."""
        with pytest.raises(ValidationError, match="coll"):
            ResourceClient.build_path(ResourceKind.DOCUMENTS, database_id="db1")


class TestInvoke:
    """Test signed invocation."""

    def test_feed_signed_with_owner(self, resources, recorder):
        """Listing collections signs with the database id."""
        body = resources.list_collections("db1")

        assert body == '{"_rid": "r1"}'
        assert recorder.last.method == "GET"
        assert recorder.last.url.path == "/dbs/db1/colls"
        assert signed_with(recorder.last, "GET", "colls", "db1")

    def test_item_signed_with_own_id(self, resources, recorder):
        """Item operations sign with the item's id."""
        resources.get_collection("db1", "c1")

        assert recorder.last.url.path == "/dbs/db1/colls/c1"
        assert signed_with(recorder.last, "GET", "colls", "c1")

    def test_database_feed_signed_with_empty_id(self, resources, recorder):
        resources.list_databases()
        assert recorder.last.url.path == "/dbs"
        assert signed_with(recorder.last, "GET", "dbs", "")

    def test_accepts_kind_name(self, resources, recorder):
        """Kinds may be given by their wire name."""
        resources.invoke("db1", None, "users", "GET")
        assert recorder.last.url.path == "/dbs/db1/users"

    def test_signed_headers_win_over_extra_headers(self, resources, recorder):
        """Callers cannot override the signature headers."""
        resources.invoke(None, None, ResourceKind.DATABASES, "GET", headers={"x-ms-date": "bogus", "x-custom": "1"})

        assert recorder.last.headers["x-ms-date"] == SIGNED_DATE
        assert recorder.last.headers["x-custom"] == "1"

    def test_error_propagates(self, recorder, resources):
        recorder.status = 409
        recorder.body = json.dumps({"code": "Conflict", "message": "Entity with the specified id already exists"})

        with pytest.raises(RemoteError) as exc_info:
            resources.create_database('{"id": "db1"}')
        assert exc_info.value.code == "Conflict"


class TestDocuments:
    """Test document wrappers."""

    def test_create_document_with_partition_key(self, resources, recorder):
        resources.create_document("db1", "c1", '{"id": "d1"}', "tenant-1", {"x-ms-documentdb-pre-trigger-include": "t1"})

        request = recorder.last
        assert request.method == "POST"
        assert request.url.path == "/dbs/db1/colls/c1/docs"
        assert request.content == b'{"id": "d1"}'
        assert request.headers["x-ms-documentdb-partitionkey"] == '["tenant-1"]'
        assert request.headers["x-ms-documentdb-pre-trigger-include"] == "t1"
        assert signed_with(request, "POST", "docs", "c1")

    def test_replace_document(self, resources, recorder):
        resources.replace_document("db1", "c1", "d1", '{"id": "d1"}')

        assert recorder.last.method == "PUT"
        assert recorder.last.url.path == "/dbs/db1/colls/c1/docs/d1"
        assert "x-ms-documentdb-partitionkey" not in recorder.last.headers
        assert signed_with(recorder.last, "PUT", "docs", "d1")

    def test_delete_document(self, resources, recorder):
        recorder.status = 204
        recorder.body = ""

        assert resources.delete_document("db1", "c1", "d1", 7) == ""
        assert recorder.last.method == "DELETE"
        assert recorder.last.headers["x-ms-documentdb-partitionkey"] == '["7"]'

    def test_empty_partition_key_sends_no_header(self, resources, recorder):
        resources.create_document("db1", "c1", '{"id": "d1", "tenant": ""}', "")

        assert "x-ms-documentdb-partitionkey" not in recorder.last.headers


class TestOtherResources:
    """Test attachments, offers, scripts and account info."""

    def test_create_attachment_sets_slug(self, resources, recorder):
        resources.create_attachment("db1", "c1", "d1", "image/png", "my photo.png", b"\x89PNG")

        request = recorder.last
        assert request.url.path == "/dbs/db1/colls/c1/docs/d1/attachments"
        assert request.headers["Slug"] == "my+photo.png"
        assert request.headers["Content-Type"] == "image/png"
        assert request.content == b"\x89PNG"
        assert signed_with(request, "POST", "attachments", "d1")

    def test_list_permissions(self, resources, recorder):
        resources.list_permissions("db1", "u1")
        assert recorder.last.url.path == "/dbs/db1/users/u1/permissions"
        assert signed_with(recorder.last, "GET", "permissions", "u1")

    def test_query_offers(self, resources, recorder):
        resources.query_offers('{"query": "SELECT * FROM root"}')

        assert recorder.last.method == "POST"
        assert recorder.last.url.path == "/offers"
        assert recorder.last.headers["x-ms-documentdb-isquery"] == "True"

    def test_execute_stored_procedure(self, resources, recorder):
        resources.execute_stored_procedure("db1", "c1", "sp1", '["a", 1]')

        assert recorder.last.method == "POST"
        assert recorder.last.url.path == "/dbs/db1/colls/c1/sprocs/sp1"
        assert recorder.last.content == b'["a", 1]'
        assert signed_with(recorder.last, "POST", "sprocs", "sp1")

    def test_trigger_and_udf_feeds(self, resources, recorder):
        resources.create_trigger("db1", "c1", '{"id": "t1"}')
        assert recorder.last.url.path == "/dbs/db1/colls/c1/triggers"

        resources.delete_user_defined_function("db1", "c1", "u1")
        assert recorder.last.method == "DELETE"
        assert recorder.last.url.path == "/dbs/db1/colls/c1/udfs/u1"

    def test_get_info(self, resources, recorder):
        resources.get_info()
        assert recorder.last.url.path == "/"
        assert signed_with(recorder.last, "GET", "", "")
