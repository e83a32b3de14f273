from __future__ import annotations

import math
import struct
from decimal import Decimal
from typing import Any

from .config import TagVocabulary
from .errors import EmptyStringError, UnsupportedScalarError
from .introspect import ScalarKind, elem_of_value, is_record_instance, kind_of_value
from .marshal import marshal_map
from .model import FieldDescription, describe


def encode_scalar(value: Any, kind: ScalarKind | None = None, *, field: str | None = None) -> dict[str, Any]:
    """Encode one key value as a tagged scalar.

    ``kind`` is the declared kind of the field; it only matters for floats,
    where ``ScalarKind.FLOAT32`` selects the shortest decimal that survives a
    round trip at 32-bit precision.
    """
    value = elem_of_value(value)
    actual = kind_of_value(value)

    if actual is ScalarKind.NONE:
        return {"NULL": True}
    if actual is ScalarKind.BOOL:
        return {"BOOL": bool(value)}
    if actual is ScalarKind.STRING:
        if len(value) == 0:
            raise EmptyStringError(field)
        return {"S": str(value)}
    if actual is ScalarKind.BYTES:
        if len(value) == 0:
            raise EmptyStringError(field)
        return {"B": bytes(value)}
    if actual is ScalarKind.INT:
        return {"N": str(int(value))}
    if actual is ScalarKind.FLOAT64:
        if not math.isfinite(value):
            raise UnsupportedScalarError(field, repr(value))
        if kind is ScalarKind.FLOAT32:
            return {"N": _format_float32(float(value), field)}
        return {"N": _positional(Decimal(repr(float(value))))}
    if actual is ScalarKind.DECIMAL:
        if not value.is_finite():
            raise UnsupportedScalarError(field, str(value))
        return {"N": _positional(value)}

    raise UnsupportedScalarError(field, type(value).__name__)


class KeyEncoder:
    def __init__(self, tags: TagVocabulary | None = None) -> None:
        self.tags = tags or TagVocabulary()

    def encode(self, value: Any) -> dict[str, Any]:
        value = elem_of_value(value)
        if not is_record_instance(value):
            return marshal_map(value)

        keys = describe(value, self.tags).key_fields(self.tags)
        out = {keys.partition.attribute_name: self._encode_field(value, keys.partition)}
        if keys.sort is not None:
            out[keys.sort.attribute_name] = self._encode_field(value, keys.sort)
        return out

    def _encode_field(self, record: Any, field: FieldDescription) -> dict[str, Any]:
        return encode_scalar(getattr(record, field.name), field.kind, field=field.name)


def marshal_key(value: Any, tags: TagVocabulary | None = None) -> dict[str, Any]:
    return KeyEncoder(tags).encode(value)


def _positional(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _format_float32(value: float, field: str | None) -> str:
    try:
        target = _to_float32(value)
    except OverflowError as err:
        raise UnsupportedScalarError(field, f"{value!r} overflows float32") from err

    for digits in range(1, 10):
        text = f"{target:.{digits}g}"
        if _to_float32(float(text)) == target:
            return _positional(Decimal(text))
    return _positional(Decimal(repr(target)))


def _to_float32(value: float) -> float:
    return float(struct.unpack("f", struct.pack("f", value))[0])
