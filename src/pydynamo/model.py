from __future__ import annotations

import inspect
import sys
import types
from dataclasses import MISSING, dataclass, field, fields
from functools import lru_cache
from typing import Any, NewType, cast, get_origin, get_type_hints, overload

from .config import DEFAULT_PARTITION_KEY, DEFAULT_SORT_KEY, DEFAULT_TAG_NAME, TagVocabulary
from .errors import (
    MultiplePartitionKeysError,
    MultipleSortKeysError,
    NoPartitionKeyError,
    NotARecordError,
)
from .introspect import ScalarKind, elem_of_type, elem_of_value, is_record_type, scalar_kind

OPTIONS_KEY = "pydynamo"


@dataclass(frozen=True)
class FieldDescription:
    name: str
    kind: ScalarKind
    tag: str | None = None
    attribute_name: str = ""
    annotation: Any = None

    def __post_init__(self) -> None:
        if not self.attribute_name:
            object.__setattr__(self, "attribute_name", self.name)


@dataclass(frozen=True)
class KeyFields:
    partition: FieldDescription
    sort: FieldDescription | None = None

    def names(self) -> tuple[str, ...]:
        if self.sort is None:
            return (self.partition.attribute_name,)
        return (self.partition.attribute_name, self.sort.attribute_name)


@dataclass(frozen=True)
class RecordDescription:
    """The static shape of a record: ordered fields with their scalar kinds and tags.

    Usually derived from a dataclass with :func:`describe`, but callers may
    build one explicitly::

        RecordDescription(
            "Todo",
            (
                FieldDescription("ID", ScalarKind.STRING, tag="paritionkey"),
                FieldDescription("Item", ScalarKind.STRING),
            ),
        )
    """

    name: str
    fields: tuple[FieldDescription, ...]
    record_type: type | None = None

    @classmethod
    def from_dataclass(cls, record_type: type, *, tag_name: str = DEFAULT_TAG_NAME) -> RecordDescription:
        if not is_record_type(record_type):
            raise NotARecordError(record_type)
        return _describe_dataclass(record_type, tag_name)

    def field(self, name: str) -> FieldDescription:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def key_fields(self, tags: TagVocabulary) -> KeyFields:
        partitions = [f for f in self.fields if tags.is_partition_key(f.tag)]
        sorts = [f for f in self.fields if tags.is_sort_key(f.tag)]

        if len(partitions) > 1:
            raise MultiplePartitionKeysError(self.name, tuple(f.name for f in partitions))
        if len(sorts) > 1:
            raise MultipleSortKeysError(self.name, tuple(f.name for f in sorts))
        if not partitions:
            raise NoPartitionKeyError(self.name)

        return KeyFields(partition=partitions[0], sort=sorts[0] if sorts else None)


@overload
def dynamo_field(
    *,
    key: str | None = None,
    tag_name: str = DEFAULT_TAG_NAME,
    name: str | None = None,
    kind: ScalarKind | None = None,
) -> Any: ...


@overload
def dynamo_field(
    *,
    key: str | None = None,
    tag_name: str = DEFAULT_TAG_NAME,
    name: str | None = None,
    kind: ScalarKind | None = None,
    default: Any,
) -> Any: ...


@overload
def dynamo_field(
    *,
    key: str | None = None,
    tag_name: str = DEFAULT_TAG_NAME,
    name: str | None = None,
    kind: ScalarKind | None = None,
    default_factory: Any,
) -> Any: ...


def dynamo_field(
    *,
    key: str | None = None,
    tag_name: str = DEFAULT_TAG_NAME,
    name: str | None = None,
    kind: ScalarKind | None = None,
    default: Any = MISSING,
    default_factory: Any = MISSING,
) -> Any:
    if default is not MISSING and default_factory is not MISSING:
        raise ValueError("dynamo_field: cannot set both default and default_factory")

    metadata: dict[str, Any] = {}
    if key is not None:
        metadata[tag_name] = key

    options: dict[str, Any] = {}
    if name is not None:
        options["name"] = name
    if kind is not None:
        options["kind"] = kind
    if options:
        metadata[OPTIONS_KEY] = options

    return field(default=default, default_factory=default_factory, metadata=metadata)


def partition_key(*, tags: TagVocabulary | None = None, **kwargs: Any) -> Any:
    if tags is None:
        return dynamo_field(key=DEFAULT_PARTITION_KEY, **kwargs)
    return dynamo_field(key=tags.partition_key, tag_name=tags.tag_name, **kwargs)


def sort_key(*, tags: TagVocabulary | None = None, **kwargs: Any) -> Any:
    if tags is None:
        return dynamo_field(key=DEFAULT_SORT_KEY, **kwargs)
    return dynamo_field(key=tags.sort_key, tag_name=tags.tag_name, **kwargs)


def describe(value: Any, tags: TagVocabulary | None = None) -> RecordDescription:
    tags = tags or TagVocabulary()
    value = elem_of_value(value)
    if isinstance(value, RecordDescription):
        return value

    if isinstance(value, type) or isinstance(value, NewType) or get_origin(value) is not None:
        target = value
    else:
        target = type(value)
    target = elem_of_type(target)

    if is_record_type(target):
        return _describe_dataclass(target, tags.tag_name)
    raise NotARecordError(value)


@lru_cache(maxsize=256)
def _describe_dataclass(record_type: type, tag_name: str) -> RecordDescription:
    hints = _field_hints(record_type)

    described: list[FieldDescription] = []
    for dc_field in fields(cast(Any, record_type)):
        options = cast(dict[str, Any], dc_field.metadata.get(OPTIONS_KEY, {}))
        annotation = hints.get(dc_field.name, dc_field.type)
        kind = cast(ScalarKind | None, options.get("kind")) or scalar_kind(annotation)
        tag = dc_field.metadata.get(tag_name)
        described.append(
            FieldDescription(
                name=dc_field.name,
                kind=kind,
                tag=str(tag) if tag is not None else None,
                attribute_name=str(options.get("name") or dc_field.name),
                annotation=annotation,
            )
        )

    return RecordDescription(name=record_type.__name__, fields=tuple(described), record_type=record_type)


def _field_hints(record_type: type) -> dict[str, Any]:
    try:
        return get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError):
        pass

    # Resolve field by field so one unresolvable annotation does not hide the others.
    hints: dict[str, Any] = {}
    for klass in reversed(record_type.__mro__):
        module = sys.modules.get(klass.__module__)
        globalns = dict(vars(module)) if module is not None else {}
        localns = dict(vars(klass))
        for name, annotation in inspect.get_annotations(klass).items():
            hints[name] = _resolve_annotation(name, annotation, globalns, localns)
    return hints


def _resolve_annotation(name: str, annotation: Any, globalns: dict[str, Any], localns: dict[str, Any]) -> Any:
    holder = types.SimpleNamespace(__annotations__={name: annotation})
    try:
        return get_type_hints(holder, globalns=globalns, localns=localns, include_extras=True)[name]
    except (NameError, TypeError, SyntaxError):
        return Any
