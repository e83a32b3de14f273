from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import pytest

from pydynamo import (
    BindError,
    EmptyStringError,
    KeyEncoder,
    NoPartitionKeyError,
    ScalarKind,
    SchemaEncoder,
    TagVocabulary,
    UnsupportedScalarError,
    dynamo_field,
    encode_scalar,
    marshal_key,
    partition_key,
    sort_key,
)


@dataclass
class Todo:
    ID: str = partition_key(default="")
    Item: str = dynamo_field(default="")


@dataclass
class Reading:
    sensor: str = partition_key(name="Sensor", default="")
    at: int = sort_key(name="At", default=0)
    value: float = dynamo_field(default=0.0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, {"NULL": True}),
        (True, {"BOOL": True}),
        (False, {"BOOL": False}),
        ("abc", {"S": "abc"}),
        (b"\x01\x02", {"B": b"\x01\x02"}),
        (bytearray(b"ab"), {"B": b"ab"}),
        (memoryview(b"ab"), {"B": b"ab"}),
        (0, {"N": "0"}),
        (-42, {"N": "-42"}),
        (2**70, {"N": "1180591620717411303424"}),
        (1.5, {"N": "1.5"}),
        (2.0, {"N": "2"}),
        (0.1, {"N": "0.1"}),
        (1e-7, {"N": "0.0000001"}),
        (1e20, {"N": "100000000000000000000"}),
        (-0.25, {"N": "-0.25"}),
        (Decimal("1.500"), {"N": "1.5"}),
        (Decimal("1E+3"), {"N": "1000"}),
        (Decimal("-0.010"), {"N": "-0.01"}),
    ],
)
def test_encode_scalar(value: object, expected: dict[str, object]) -> None:
    assert encode_scalar(value) == expected


def test_encode_scalar_float32_uses_shortest_single_precision_form() -> None:
    assert encode_scalar(0.1, ScalarKind.FLOAT32) == {"N": "0.1"}
    assert encode_scalar(16777217.0, ScalarKind.FLOAT32) == {"N": "16777216"}
    assert encode_scalar(3.14159265358979, ScalarKind.FLOAT32) == {"N": "3.1415927"}

    with pytest.raises(UnsupportedScalarError):
        encode_scalar(1e39, ScalarKind.FLOAT32)


@pytest.mark.parametrize("value", ["", b"", bytearray()])
def test_encode_scalar_rejects_empty_strings(value: object) -> None:
    with pytest.raises(EmptyStringError) as excinfo:
        encode_scalar(value, field="ID")
    assert excinfo.value.field == "ID"


@pytest.mark.parametrize("value", [float("nan"), float("inf"), Decimal("NaN"), Decimal("-Infinity"), {}, [1], object()])
def test_encode_scalar_rejects_unsupported_values(value: object) -> None:
    with pytest.raises(UnsupportedScalarError):
        encode_scalar(value)


def test_key_encoder_encodes_partition_only() -> None:
    assert KeyEncoder().encode(Todo(ID="1", Item="ignored")) == {"ID": {"S": "1"}}


def test_key_encoder_encodes_partition_and_sort_with_attribute_names() -> None:
    key = marshal_key(Reading(sensor="s-1", at=-7, value=2.5))
    assert key == {"Sensor": {"S": "s-1"}, "At": {"N": "-7"}}


def test_key_encoder_matches_schema_key_names() -> None:
    for record in (Todo(ID="1"), Reading(sensor="s", at=1)):
        key = KeyEncoder().encode(record)
        schema = SchemaEncoder().encode(record)
        assert set(key) == {k["AttributeName"] for k in schema.key_schema()}


def test_key_encoder_rejects_empty_partition_and_sort_keys() -> None:
    with pytest.raises(EmptyStringError):
        KeyEncoder().encode(Todo())

    @dataclass
    class Pair:
        pk: str = partition_key(default="a")
        sk: str = sort_key(default="")

    with pytest.raises(EmptyStringError) as excinfo:
        KeyEncoder().encode(Pair())
    assert excinfo.value.field == "sk"


def test_key_encoder_raises_when_sort_key_cannot_be_encoded() -> None:
    @dataclass
    class Pair:
        pk: str = partition_key(default="a")
        sk: object = sort_key(default_factory=object)

    with pytest.raises(UnsupportedScalarError):
        KeyEncoder().encode(Pair())


def test_key_encoder_passes_prepared_key_maps_through() -> None:
    prepared = {"ID": {"S": "1"}, "SK": {"N": "2"}}
    assert KeyEncoder().encode(prepared) == prepared
    assert KeyEncoder().encode({"ID": "1"}) == {"ID": {"S": "1"}}

    with pytest.raises(BindError):
        KeyEncoder().encode(42)


def test_key_encoder_honours_vocabulary() -> None:
    @dataclass
    class Custom:
        pk: str = dynamo_field(key="hash", tag_name="ddb", default="x")

    tags = TagVocabulary(tag_name="ddb", partition_key="hash", sort_key="range")
    assert KeyEncoder(tags).encode(Custom()) == {"pk": {"S": "x"}}

    with pytest.raises(NoPartitionKeyError):
        KeyEncoder().encode(Custom())
