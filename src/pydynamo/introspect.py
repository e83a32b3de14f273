from __future__ import annotations

import types
import weakref
from contextvars import ContextVar
from dataclasses import is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar, Final, NewType, Union, get_args, get_origin

from .errors import UnsupportedScalarError

_MAX_DEPTH = 32


class ScalarKind(Enum):
    NONE = "none"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    INT = "int"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    OTHER = "other"


_NUMERIC_KINDS = frozenset(
    {ScalarKind.BOOL, ScalarKind.INT, ScalarKind.FLOAT32, ScalarKind.FLOAT64, ScalarKind.DECIMAL}
)


def elem_of_value(value: Any) -> Any:
    """Peel references and proxies off a value until a concrete object is reached.

    Weak references are dereferenced (a dead reference yields ``None``),
    context variables yield their current value and proxies following the
    ``__wrapped__`` convention yield the wrapped object.
    """
    for _ in range(_MAX_DEPTH):
        if isinstance(value, weakref.ReferenceType):
            value = value()
            continue
        if isinstance(value, ContextVar):
            value = value.get(None)
            continue
        if _is_proxy(value):
            value = value.__wrapped__
            continue
        return value
    raise UnsupportedScalarError(None, "indirection nested too deeply")


def elem_of_type(annotation: Any) -> Any:
    """Peel Optional/Annotated/NewType/type[]/ClassVar/Final layers off an annotation."""
    for _ in range(_MAX_DEPTH):
        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin is Annotated:
            annotation = annotation.__origin__
            continue
        if origin in (Union, types.UnionType):
            non_none = [a for a in args if a is not type(None)]  # noqa: E721
            if len(non_none) == 1 and len(args) == 2:
                annotation = non_none[0]
                continue
            return annotation
        if origin in (type, ClassVar, Final) and args:
            annotation = args[0]
            continue
        if isinstance(annotation, NewType):
            annotation = annotation.__supertype__
            continue
        return annotation
    raise UnsupportedScalarError(None, "annotation nested too deeply")


def is_record(value: Any) -> bool:
    from .model import RecordDescription

    return isinstance(value, RecordDescription) or is_dataclass(value)


def is_record_type(value: Any) -> bool:
    return isinstance(value, type) and is_dataclass(value)


def is_record_instance(value: Any) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def scalar_kind(annotation: Any) -> ScalarKind:
    annotation = elem_of_type(annotation)
    if annotation is None or annotation is type(None):
        return ScalarKind.NONE
    if not isinstance(annotation, type) or get_origin(annotation) is not None:
        return ScalarKind.OTHER
    if issubclass(annotation, bool):
        return ScalarKind.BOOL
    if issubclass(annotation, str):
        return ScalarKind.STRING
    if issubclass(annotation, (bytes, bytearray, memoryview)):
        return ScalarKind.BYTES
    if issubclass(annotation, int):
        return ScalarKind.INT
    if issubclass(annotation, float):
        return ScalarKind.FLOAT64
    if issubclass(annotation, Decimal):
        return ScalarKind.DECIMAL
    return ScalarKind.OTHER


def kind_of_value(value: Any) -> ScalarKind:
    if value is None:
        return ScalarKind.NONE
    return scalar_kind(type(value))


def attribute_type(kind: ScalarKind, field: str | None = None) -> str:
    if kind is ScalarKind.STRING:
        return "S"
    if kind is ScalarKind.BYTES:
        return "B"
    if kind in _NUMERIC_KINDS:
        return "N"
    raise UnsupportedScalarError(field, kind.value)


def _is_proxy(value: Any) -> bool:
    # Decorated callables also carry __wrapped__; only plain proxy objects are peeled.
    if callable(value) or is_dataclass(value):
        return False
    return hasattr(value, "__wrapped__")
