from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config import DEFAULT_CONFIG, Config, TagVocabulary
from .errors import ConfigError
from .introspect import attribute_type
from .model import describe


@dataclass(frozen=True)
class TableSchema:
    partition_key: str
    partition_key_type: str
    sort_key: str | None = None
    sort_key_type: str | None = None

    def attribute_definitions(self) -> list[dict[str, str]]:
        defs = [{"AttributeName": self.partition_key, "AttributeType": self.partition_key_type}]
        if self.sort_key is not None and self.sort_key_type is not None:
            defs.append({"AttributeName": self.sort_key, "AttributeType": self.sort_key_type})
        return defs

    def key_schema(self) -> list[dict[str, str]]:
        keys = [{"AttributeName": self.partition_key, "KeyType": "HASH"}]
        if self.sort_key is not None:
            keys.append({"AttributeName": self.sort_key, "KeyType": "RANGE"})
        return keys


class SchemaEncoder:
    def __init__(self, tags: TagVocabulary | None = None) -> None:
        self.tags = tags or TagVocabulary()

    def encode(self, record: Any) -> TableSchema:
        keys = describe(record, self.tags).key_fields(self.tags)

        schema = TableSchema(
            partition_key=keys.partition.attribute_name,
            partition_key_type=attribute_type(keys.partition.kind, keys.partition.name),
        )
        if keys.sort is None:
            return schema
        return TableSchema(
            partition_key=schema.partition_key,
            partition_key_type=schema.partition_key_type,
            sort_key=keys.sort.attribute_name,
            sort_key_type=attribute_type(keys.sort.kind, keys.sort.name),
        )


def build_create_table_request(
    table_name: str,
    record: Any,
    *,
    config: Config = DEFAULT_CONFIG,
) -> dict[str, Any]:
    if not table_name or not table_name.strip():
        raise ConfigError("table_name is required")

    schema = SchemaEncoder(config.tags).encode(record)

    req: dict[str, Any] = {
        "TableName": table_name,
        "AttributeDefinitions": schema.attribute_definitions(),
        "KeySchema": schema.key_schema(),
    }
    if config.billing_mode == "PAY_PER_REQUEST":
        req["BillingMode"] = "PAY_PER_REQUEST"
    else:
        req["ProvisionedThroughput"] = {
            "ReadCapacityUnits": config.read_capacity_units,
            "WriteCapacityUnits": config.write_capacity_units,
        }
    return req
