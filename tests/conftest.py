from __future__ import annotations

import pytest
from pymongo import MongoClient
from testcontainers.community.mongodb import MongoDbContainer


@pytest.fixture(scope="session")
def mongo_url() -> str:
    with MongoDbContainer("mongo:7.0") as mongo:
        yield mongo.get_connection_url()


@pytest.fixture()
def mongo_client(mongo_url: str):
    client = MongoClient(mongo_url, tz_aware=True)
    yield client
    client.close()


@pytest.fixture()
def fresh_db_name(mongo_client, request) -> str:
    # One database per test so seeded records never leak between tests.
    name = f"nrts-test-{request.node.name}"[:60].replace("[", "-").replace("]", "")
    mongo_client.drop_database(name)
    yield name
    mongo_client.drop_database(name)
