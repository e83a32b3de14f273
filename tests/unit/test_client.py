from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from pydynamo import Client, Config, Table, TableExistsError, TagVocabulary, partition_key
from pydynamo.mocks import FakeDynamoDBClient
from pydynamo.testkit import client_error, fake_client


@dataclass
class Todo:
    ID: str = partition_key(default="")

    def table_name(self) -> str:
        return "todos"


class _Session:
    def __init__(self) -> None:
        self.created: list[tuple[str, dict[str, Any]]] = []
        self.service = FakeDynamoDBClient()

    def client(self, service_name: str, **kwargs: Any) -> FakeDynamoDBClient:
        self.created.append((service_name, kwargs))
        return self.service


def test_client_builds_service_from_session_with_timeouts() -> None:
    session = _Session()

    client = Client(Config(timeout=3.0), session=session)

    assert client.service is session.service
    name, kwargs = session.created[0]
    assert name == "dynamodb"
    assert kwargs["config"].connect_timeout == 3.0
    assert kwargs["config"].read_timeout == 3.0


def test_from_session_uses_default_config() -> None:
    session = _Session()

    client = Client.from_session(session)

    assert client.service is session.service
    assert client.config.timeout == 10.0
    assert client.tags == TagVocabulary()


def test_explicit_service_skips_session() -> None:
    session = _Session()
    fake = FakeDynamoDBClient()

    client = Client(service=fake, session=session)

    assert client.service is fake
    assert session.created == []


def test_table_accepts_names_and_table_items() -> None:
    client, _ = fake_client()

    by_name = client.table("todo")
    by_record = client.table(Todo())

    assert isinstance(by_name, Table) and by_name.name == "todo"
    assert by_record.name == "todos"
    assert by_record.client is client

    with pytest.raises(TypeError):
        client.table(42)


def test_context_uses_config_timeout() -> None:
    client, _ = fake_client(Config(timeout=2.5))

    ctx = client.context()

    assert ctx.remaining() is not None
    assert 0 < ctx.remaining() <= 2.5


def test_create_table_maps_resource_in_use() -> None:
    client, fake = fake_client()
    fake.expect("create_table", error=client_error("ResourceInUseException", "Table already exists: todos"))

    with pytest.raises(TableExistsError) as excinfo:
        client.create_table("todos", Todo())

    assert excinfo.value.operation == "create table"
    assert "failed to create table: ResourceInUseException" in str(excinfo.value)


def test_create_table_with_context_and_billing_mode() -> None:
    client, fake = fake_client(Config(billing_mode="PAY_PER_REQUEST"))
    fake.expect("create_table", {"TableName": "todos", "BillingMode": "PAY_PER_REQUEST"})

    ctx = client.context()
    client.create_table_with_context(ctx, "todos", Todo)

    assert fake.recorded[0].context is ctx
    assert "ProvisionedThroughput" not in fake.calls[0][1]
