"""Tests for CosmosClient and the database/collection handles."""

import base64
import json

import httpx
import pytest

from cosmoslite.client.cosmos import CosmosClient, CosmosCollection, CosmosDatabase
from cosmoslite.core.config_manager import CosmosConfig
from cosmoslite.query.builder import QueryBuilder


ENDPOINT = "https://acct.documents.azure.com:443"
MASTER_KEY = base64.b64encode(b"cosmos-client-key").decode()

DATABASES = {
    "_rid": "",
    "Databases": [{"id": "shop", "_rid": "dbrid==", "_self": "dbs/dbrid==/"}],
    "_count": 1,
}
COLLECTIONS = {
    "_rid": "dbrid==",
    "DocumentCollections": [{"id": "orders", "_rid": "collrid=", "_self": "dbs/dbrid==/colls/collrid=/"}],
    "_count": 1,
}


class FakeAccount:
    """Routes requests by (method, path) to canned JSON responses."""

    def __init__(self):
        self.routes = {
            ("GET", "/dbs"): (200, DATABASES),
            ("GET", "/dbs/dbrid==/colls"): (200, COLLECTIONS),
        }
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, payload = self.routes.get((request.method, request.url.path), (404, {"code": "NotFound", "message": "Resource Not Found"}))
        return httpx.Response(status, text=json.dumps(payload) if payload is not None else "")


@pytest.fixture
def account():
    return FakeAccount()


@pytest.fixture
def client(account):
    http_client = httpx.Client(transport=httpx.MockTransport(account))
    with CosmosClient(ENDPOINT, MASTER_KEY, http_client=http_client) as cosmos:
        yield cosmos


class TestCosmosClient:
    """Test suite for CosmosClient."""

    def test_select_db_by_id(self, client):
        """Databases are looked up by id and addressed by _rid."""
        db = client.select_db("shop")

        assert isinstance(db, CosmosDatabase)
        assert db.database_id == "dbrid=="

    def test_select_missing_db(self, client, account):
        """A missing database is None and nothing is created."""
        assert client.select_db("nope") is None
        assert all(r.method == "GET" for r in account.requests)

    def test_select_db_create(self, client, account):
        """create=True creates a missing database."""
        account.routes[("POST", "/dbs")] = (201, {"id": "new", "_rid": "newrid=="})

        db = client.select_db("new", create=True)

        assert db.database_id == "newrid=="
        assert json.loads(account.requests[-1].content) == {"id": "new"}

    def test_get_info(self, client, account):
        account.routes[("GET", "/")] = (200, {"id": "acct"})
        assert json.loads(client.get_info()) == {"id": "acct"}

    def test_from_config(self):
        """Clients can be built from a loaded configuration."""
        config = CosmosConfig(endpoint=ENDPOINT + "/", master_key=MASTER_KEY, http={"user_agent": "app/1.0"})
        cosmos = CosmosClient.from_config(config, http_client=httpx.Client(transport=httpx.MockTransport(FakeAccount())))
        try:
            assert cosmos.credentials.endpoint == ENDPOINT
            assert cosmos.signer.user_agent == "app/1.0"
        finally:
            cosmos.close()


class TestCosmosDatabase:
    """Test suite for CosmosDatabase."""

    def test_select_collection(self, client):
        coll = client.select_db("shop").select_collection("orders")

        assert isinstance(coll, CosmosCollection)
        assert coll.database_id == "dbrid=="
        assert coll.collection_id == "collrid="

    def test_select_missing_collection(self, client):
        assert client.select_db("shop").select_collection("nope") is None

    def test_create_collection_with_partition_key(self, client, account):
        """The partition key is sent as a Hash definition."""
        account.routes[("POST", "/dbs/dbrid==/colls")] = (201, {"id": "events", "_rid": "evrid="})

        coll = client.select_db("shop").create_collection("events", "tenant")

        assert coll.collection_id == "evrid="
        assert json.loads(account.requests[-1].content) == {
            "id": "events",
            "partitionKey": {"paths": ["/tenant"], "kind": "Hash"},
        }

    def test_create_collection_without_partition_key(self, client, account):
        account.routes[("POST", "/dbs/dbrid==/colls")] = (201, {"id": "events", "_rid": "evrid="})

        client.select_db("shop").create_collection("events")

        assert json.loads(account.requests[-1].content) == {"id": "events"}


class TestCosmosCollection:
    """Test suite for CosmosCollection."""

    @pytest.fixture
    def collection(self, client):
        return client.select_db("shop").select_collection("orders")

    def test_query(self, collection, account):
        account.routes[("POST", "/dbs/dbrid==/colls/collrid=/docs")] = (
            200, {"_rid": "collrid=", "Documents": [{"id": "o1"}], "_count": 1},
        )

        pages = collection.query("SELECT * FROM c WHERE c.id = @id", {"@id": "o1"}, partition_value="p1")

        assert json.loads(pages[0])["Documents"] == [{"id": "o1"}]
        request = account.requests[-1]
        assert request.headers["x-ms-documentdb-partitionkey"] == '["p1"]'
        assert json.loads(request.content)["parameters"] == [{"name": "@id", "value": "o1"}]

    def test_pk_full_range(self, collection, account):
        account.routes[("GET", "/dbs/dbrid==/colls/collrid=/pkranges")] = (
            200, {"_rid": "collrid=", "PartitionKeyRanges": [{"id": "0"}], "_count": 1},
        )
        assert collection.get_pk_full_range() == "collrid=,0"
        assert [r.id for r in collection.get_pk_ranges().ranges] == ["0"]

    def test_document_crud(self, collection, account):
        docs = "/dbs/dbrid==/colls/collrid=/docs"
        account.routes[("POST", docs)] = (201, {"id": "o1", "_rid": "docrid"})
        account.routes[("PUT", f"{docs}/docrid")] = (200, {"id": "o1", "_rid": "docrid"})
        account.routes[("DELETE", f"{docs}/docrid")] = (204, None)

        assert json.loads(collection.create_document('{"id": "o1"}', "p1"))["_rid"] == "docrid"
        assert json.loads(collection.replace_document("docrid", '{"id": "o1"}', "p1"))["_rid"] == "docrid"
        assert collection.delete_document("docrid", "p1") == ""
        assert [r.method for r in account.requests[-3:]] == ["POST", "PUT", "DELETE"]

    def test_stored_procedures(self, collection, account):
        account.routes[("POST", "/dbs/dbrid==/colls/collrid=/sprocs/sp1")] = (200, {"result": 3})
        assert json.loads(collection.execute_stored_procedure("sp1", "[1, 2]")) == {"result": 3}

    def test_query_builder_is_bound(self, collection):
        builder = collection.query_builder()
        assert isinstance(builder, QueryBuilder)
        assert builder.collection is collection
