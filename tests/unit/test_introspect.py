from __future__ import annotations

import functools
import weakref
from contextvars import ContextVar
from dataclasses import dataclass
from decimal import Decimal
from typing import Annotated, ClassVar, Final, NewType, Optional

import pytest

from pydynamo import ScalarKind, UnsupportedScalarError
from pydynamo.introspect import (
    attribute_type,
    elem_of_type,
    elem_of_value,
    is_record,
    is_record_instance,
    is_record_type,
    kind_of_value,
    scalar_kind,
)
from pydynamo.model import RecordDescription

UserID = NewType("UserID", str)


@dataclass
class Box:
    value: str = ""


class _Proxy:
    def __init__(self, wrapped: object) -> None:
        self.__wrapped__ = wrapped


def test_elem_of_value_peels_references() -> None:
    box = Box("x")
    var: ContextVar[Box] = ContextVar("box")
    var.set(box)

    assert elem_of_value(box) is box
    assert elem_of_value(weakref.ref(box)) is box
    assert elem_of_value(var) is box
    assert elem_of_value(_Proxy(_Proxy(box))) is box
    assert elem_of_value(None) is None


def test_elem_of_value_leaves_decorated_functions_alone() -> None:
    @functools.lru_cache
    def cached() -> int:
        return 1

    assert elem_of_value(cached) is cached


def test_elem_of_value_dead_reference_is_none() -> None:
    ref = weakref.ref(Box())
    assert elem_of_value(ref) is None


def test_elem_of_value_rejects_cycles() -> None:
    proxy = _Proxy(None)
    proxy.__wrapped__ = proxy
    with pytest.raises(UnsupportedScalarError):
        elem_of_value(proxy)


def test_elem_of_type_peels_wrappers() -> None:
    assert elem_of_type(Optional[int]) is int
    assert elem_of_type(int | None) is int
    assert elem_of_type(Annotated[str, "doc"]) is str
    assert elem_of_type(type[Box]) is Box
    assert elem_of_type(ClassVar[int]) is int
    assert elem_of_type(Final[bytes]) is bytes
    assert elem_of_type(UserID) is str
    assert elem_of_type(Optional[Annotated[UserID, "doc"]]) is str
    assert elem_of_type(int | str | None) == (int | str | None)


@pytest.mark.parametrize(
    ("annotation", "kind"),
    [
        (bool, ScalarKind.BOOL),
        (str, ScalarKind.STRING),
        (UserID, ScalarKind.STRING),
        (bytes, ScalarKind.BYTES),
        (bytearray, ScalarKind.BYTES),
        (memoryview, ScalarKind.BYTES),
        (int, ScalarKind.INT),
        (float, ScalarKind.FLOAT64),
        (Decimal, ScalarKind.DECIMAL),
        (None, ScalarKind.NONE),
        (type(None), ScalarKind.NONE),
        (list[str], ScalarKind.OTHER),
        (dict, ScalarKind.OTHER),
        (Box, ScalarKind.OTHER),
    ],
)
def test_scalar_kind(annotation: object, kind: ScalarKind) -> None:
    assert scalar_kind(annotation) is kind


def test_kind_of_value_checks_bool_before_int() -> None:
    assert kind_of_value(True) is ScalarKind.BOOL
    assert kind_of_value(1) is ScalarKind.INT
    assert kind_of_value(1.5) is ScalarKind.FLOAT64
    assert kind_of_value(None) is ScalarKind.NONE


def test_attribute_type_mapping() -> None:
    assert attribute_type(ScalarKind.STRING) == "S"
    assert attribute_type(ScalarKind.BYTES) == "B"
    for kind in (ScalarKind.BOOL, ScalarKind.INT, ScalarKind.FLOAT32, ScalarKind.FLOAT64, ScalarKind.DECIMAL):
        assert attribute_type(kind) == "N"

    for kind in (ScalarKind.NONE, ScalarKind.OTHER):
        with pytest.raises(UnsupportedScalarError) as excinfo:
            attribute_type(kind, "ID")
        assert excinfo.value.field == "ID"


def test_is_record() -> None:
    assert is_record(Box)
    assert is_record(Box("x"))
    assert is_record(RecordDescription("Empty", ()))
    assert not is_record({"value": "x"})


def test_is_record_type_and_instance() -> None:
    assert is_record_type(Box)
    assert not is_record_type(Box("x"))
    assert not is_record_type(dict)
    assert is_record_instance(Box("x"))
    assert not is_record_instance(Box)
    assert not is_record_instance(RecordDescription("Empty", ()).fields)
