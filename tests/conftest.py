import mongomock
import pytest
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

import main
from admin_store import AdminStore
from database import Gateway


class BrokenDatabase:
    """Every collection access fails the way a dropped connection does."""

    def __getitem__(self, name):
        raise PyMongoError("connection refused")


class FlakyGateway(Gateway):
    """Gateway whose updates fail for chosen ids."""

    def __init__(self, database, fail_ids=()):
        super().__init__(database)
        self.fail_ids = set(fail_ids)
        self.update_calls = []

    def update(self, entity, id, fields):
        self.update_calls.append((entity, id, dict(fields)))
        if id in self.fail_ids:
            return False
        return super().update(entity, id, fields)


@pytest.fixture
def mongo():
    return mongomock.MongoClient()["showcase_test"]


@pytest.fixture
def gateway(mongo):
    gw = Gateway(mongo)
    gw.initialize_defaults()
    return gw


@pytest.fixture
def broken_gateway():
    return Gateway(BrokenDatabase())


@pytest.fixture
def add_product(gateway):
    def _add(name="Widget", category="Electronics", subcategory="Laptops", **fields):
        record = gateway.insert("products", {
            "name": name,
            "image_url": "https://img.example.com/p.png",
            "mrp": 1000,
            "selling_price": 800,
            "category": category,
            "subcategory": subcategory,
            "code": fields.pop("code", f"CODE-{name.upper()}"),
            "affiliate_url": "https://shop.example.com/" + name.lower(),
            "clicks": 0,
            **fields,
        })
        assert record is not None
        return record
    return _add


@pytest.fixture
def category_id(gateway):
    def _id(name):
        return gateway.find_one("categories", {"name": name})["id"]
    return _id


@pytest.fixture
def load_store(gateway):
    return lambda: AdminStore.load(gateway)


@pytest.fixture
def client(gateway):
    main.app.dependency_overrides[main.get_gateway] = lambda: gateway
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setenv("ADMIN_SECRET", "test-secret")
    token = main.sign_token({"sub": "admin", "role": "admin"}, "test-secret")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def flaky_gateway(mongo, gateway):
    return lambda fail_ids=(): FlakyGateway(mongo, fail_ids)
