from __future__ import annotations

import os
import uuid
from dataclasses import dataclass

import boto3
import pytest

from pydynamo import (
    Client,
    ConditionFailedError,
    Config,
    ExpressionBuilder,
    NotFoundError,
    TableExistsError,
    dynamo_field,
    partition_key,
    sort_key,
)
from pydynamo.runtime import create_boto3_config, create_dynamodb_client

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.environ.get("DYNAMODB_ENDPOINT"), reason="DYNAMODB_ENDPOINT not set"),
]


def _client(config: Config) -> Client:
    session = boto3.session.Session(
        region_name=os.environ.get("AWS_REGION", "us-east-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
    )
    service = create_dynamodb_client(
        session=session,
        config=create_boto3_config(config.timeout),
        endpoint_url=os.environ["DYNAMODB_ENDPOINT"],
    )
    return Client(config, service=service)


@dataclass
class Note:
    owner: str = partition_key(default="")
    at: int = sort_key(default=0)
    body: str = dynamo_field(default="")
    views: int = dynamo_field(default=0)


def test_table_crud_round_trip_and_conditions() -> None:
    table_name = f"pydynamo_notes_{uuid.uuid4().hex[:12]}"
    client = _client(Config(billing_mode="PAY_PER_REQUEST"))

    client.create_table(table_name, Note)
    client.service.get_waiter("table_exists").wait(TableName=table_name)
    try:
        with pytest.raises(TableExistsError):
            client.create_table(table_name, Note)

        table = client.table(table_name)
        note = Note(owner="ann", at=1, body="hello")

        table.put_item().bind(note).use_expr(ExpressionBuilder().condition_not_exists("owner").build()).execute()

        with pytest.raises(ConditionFailedError):
            table.put_item().bind(note).use_expr(
                ExpressionBuilder().condition_not_exists("owner").build()
            ).execute()

        assert table.get(Note(owner="ann", at=1)) == note

        attrs = (
            table.update_item()
            .bind(Note(owner="ann", at=1))
            .use_expr(ExpressionBuilder().add("views", 1).condition("body", "=", "hello").build())
            .return_values("ALL_NEW")
            .execute()
        )
        assert attrs is not None and attrs["views"] == 1

        projected = (
            table.get_item()
            .bind(Note(owner="ann", at=1))
            .use_expr(ExpressionBuilder().projection("views").build())
            .execute({})
        )
        assert projected == {"views": 1}

        table.delete_item().bind_key(Note(owner="ann", at=1)).execute()

        with pytest.raises(NotFoundError):
            table.get(Note(owner="ann", at=1))
    finally:
        client.service.delete_table(TableName=table_name)
