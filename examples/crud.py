from __future__ import annotations

import logging
import os
import sys
import uuid
from dataclasses import dataclass

import boto3

from pydynamo import Client, Config, ExpressionBuilder, PydynamoError, dynamo_field

TABLE_NAME = f"pydynamo_example_{uuid.uuid4().hex[:12]}"


@dataclass
class Todo:
    ID: str = dynamo_field(key="paritionkey", default="")
    Item: str = dynamo_field(default="")
    Done: bool = dynamo_field(default=False)

    def table_name(self) -> str:
        return TABLE_NAME


def _session() -> boto3.session.Session:
    return boto3.session.Session(
        region_name=os.environ.get("AWS_REGION", "ap-southeast-1"),
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", "dummy"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", "dummy"),
    )


def main() -> None:
    logging.basicConfig(level=logging.DEBUG if os.environ.get("PYDYNAMO_DEBUG") else logging.INFO)

    endpoint = os.environ.get("DYNAMODB_ENDPOINT", "http://localhost:8000")
    service = _session().client("dynamodb", endpoint_url=endpoint)
    client = Client(Config(billing_mode="PAY_PER_REQUEST"), service=service)

    client.create_table(TABLE_NAME, Todo)
    service.get_waiter("table_exists").wait(TableName=TABLE_NAME)

    try:
        todo = Todo(ID="3", Item="Nonsense")
        client.table(todo).put(todo)

        got = Todo(ID="3")
        client.table(got).get(got, got)
        print("get:", got)

        client.table(todo).update_item().bind(todo).use_expr(ExpressionBuilder().set("Done", True).build()).execute()
        print("after update:", client.table(todo).get(Todo(ID="3")))
    finally:
        service.delete_table(TableName=TABLE_NAME)


if __name__ == "__main__":
    try:
        main()
    except PydynamoError as err:
        print(err, file=sys.stderr)
        sys.exit(1)
