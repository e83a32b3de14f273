from __future__ import annotations

from botocore.exceptions import ClientError

from .client import Client
from .config import Config
from .mocks import ANY, FakeDynamoDBClient, RecordedCall


def fake_client(config: Config | None = None) -> tuple[Client, FakeDynamoDBClient]:
    fake = FakeDynamoDBClient()
    return Client(config, service=fake), fake


def client_error(code: str, message: str = "", operation: str = "DynamoDB") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


__all__ = [
    "ANY",
    "FakeDynamoDBClient",
    "RecordedCall",
    "client_error",
    "fake_client",
]
