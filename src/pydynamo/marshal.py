from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import fields, replace
from decimal import Decimal
from typing import Any, TypeVar, cast, get_args, get_origin

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from .errors import BindError
from .introspect import elem_of_type, elem_of_value, is_record_instance, is_record_type
from .model import RecordDescription

T = TypeVar("T")

WIRE_TYPES = frozenset({"S", "N", "B", "BOOL", "NULL", "M", "L", "SS", "NS", "BS"})

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def is_wire_value(value: Any) -> bool:
    return isinstance(value, Mapping) and len(value) == 1 and next(iter(value)) in WIRE_TYPES


def marshal_map(value: Any) -> dict[str, Any]:
    value = elem_of_value(value)
    if is_record_instance(value):
        return {name: _serialize(name, v) for name, v in _record_items(value).items()}

    if isinstance(value, Mapping):
        out: dict[str, Any] = {}
        for name, v in value.items():
            if not isinstance(name, str):
                raise BindError(f"attribute names must be strings, got {type(name).__name__}")
            out[name] = dict(v) if is_wire_value(v) else _serialize(name, v)
        return out

    raise BindError(f"cannot marshal {type(value).__name__}: expected a dataclass instance or a mapping")


def marshal_value(value: Any) -> dict[str, Any]:
    return _serialize("value", value)


def unmarshal_map(item: Mapping[str, Any], out: Any = None) -> Any:
    try:
        decoded = {name: _plain(_deserializer.deserialize(av)) for name, av in item.items()}
    except (TypeError, ValueError, KeyError) as err:
        raise BindError(f"cannot unmarshal item: {err}") from err

    out = elem_of_value(out)
    if out is None:
        return decoded
    if is_record_type(out):
        return _build_record(out, decoded)
    if is_record_instance(out):
        return _fill_record(out, decoded)
    if isinstance(out, MutableMapping):
        out.update(decoded)
        return out

    raise BindError(f"cannot unmarshal into {type(out).__name__}")


def _record_items(record: Any) -> dict[str, Any]:
    description = RecordDescription.from_dataclass(type(record))
    return {f.attribute_name: getattr(record, f.name) for f in description.fields}


def _serialize(name: str, value: Any) -> dict[str, Any]:
    try:
        return cast(dict[str, Any], _serializer.serialize(_to_dynamo(value)))
    except (TypeError, ValueError, ArithmeticError) as err:
        raise BindError(f"cannot marshal {name}: {err}") from err


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    if is_record_instance(value):
        return {k: _to_dynamo(v) for k, v in _record_items(value).items()}
    if isinstance(value, Mapping):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return {_to_dynamo(v) for v in value}
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, Binary):
        return bytes(value.value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, set):
        return {_plain(v) for v in value}
    return value


def _coerce(value: Any, annotation: Any) -> Any:
    if value is None:
        return None

    annotation = elem_of_type(annotation)
    if annotation is int and isinstance(value, Decimal):
        return int(value)
    if annotation is float and isinstance(value, Decimal):
        return float(value)
    if is_record_type(annotation) and isinstance(value, dict):
        return _build_record(annotation, value)

    origin = get_origin(annotation)
    if origin in (set, frozenset) and isinstance(value, set):
        (elem_type,) = get_args(annotation) or (Any,)
        return origin(_coerce(v, elem_type) for v in value)
    if origin in (list, tuple) and isinstance(value, list):
        args = get_args(annotation)
        elem_type = args[0] if args else Any
        return origin(_coerce(v, elem_type) for v in value)

    return value


def _decoded_fields(record_type: type, decoded: Mapping[str, Any]) -> dict[str, Any]:
    description = RecordDescription.from_dataclass(record_type)
    init_names = {f.name for f in fields(cast(Any, record_type)) if f.init}
    values: dict[str, Any] = {}
    for f in description.fields:
        if f.name not in init_names or f.attribute_name not in decoded:
            continue
        values[f.name] = _coerce(decoded[f.attribute_name], f.annotation)
    return values


def _build_record(record_type: type[T], decoded: Mapping[str, Any]) -> T:
    try:
        return record_type(**_decoded_fields(record_type, decoded))
    except TypeError as err:
        raise BindError(f"cannot unmarshal into {record_type.__name__}: {err}") from err


def _fill_record(record: T, decoded: Mapping[str, Any]) -> T:
    values = _decoded_fields(type(record), decoded)
    params = getattr(type(record), "__dataclass_params__", None)
    if params is not None and params.frozen:
        return replace(cast(Any, record), **values)
    for name, value in values.items():
        setattr(record, name, value)
    return record
