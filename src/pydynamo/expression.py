from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Self

from .errors import BindError, ExpressionError
from .marshal import marshal_value

CONDITION = "condition"
PROJECTION = "projection"
UPDATE = "update"

_PLACEHOLDER_UNSAFE = re.compile(r"[^A-Za-z0-9_]")

_COMPARISONS = {
    "=": "=",
    "EQ": "=",
    "!=": "<>",
    "<>": "<>",
    "NE": "<>",
    "<": "<",
    "LT": "<",
    "<=": "<=",
    "LE": "<=",
    ">": ">",
    "GT": ">",
    ">=": ">=",
    "GE": ">=",
}


@dataclass(frozen=True)
class Expression:
    condition: str | None = None
    projection: str | None = None
    update: str | None = None
    names: Mapping[str, str] = field(default_factory=dict)
    values: Mapping[str, Any] = field(default_factory=dict)
    refs: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def names_for(self, *parts: str) -> dict[str, str]:
        used = self._used(parts)
        return {k: v for k, v in self.names.items() if k in used}

    def values_for(self, *parts: str) -> dict[str, Any]:
        used = self._used(parts)
        return {k: v for k, v in self.values.items() if k in used}

    def _used(self, parts: Sequence[str]) -> set[str]:
        used: set[str] = set()
        for part in parts:
            used.update(self.refs.get(part, frozenset()))
        return used


class ExpressionBuilder:
    def __init__(self) -> None:
        self._conditions: list[tuple[str, str, str, Any]] = []
        self._updates: list[tuple[str, tuple[Any, ...]]] = []
        self._projection: list[str] = []

    def condition(self, field: str, operator: str, value: Any = None) -> Self:
        self._conditions.append(("AND", field, operator, value))
        return self

    def or_condition(self, field: str, operator: str, value: Any = None) -> Self:
        self._conditions.append(("OR", field, operator, value))
        return self

    def condition_exists(self, field: str) -> Self:
        return self.condition(field, "attribute_exists")

    def condition_not_exists(self, field: str) -> Self:
        return self.condition(field, "attribute_not_exists")

    def projection(self, *fields: str) -> Self:
        self._projection.extend(fields)
        return self

    def set(self, field: str, value: Any) -> Self:
        self._updates.append(("SET", (field, value)))
        return self

    def set_if_not_exists(self, field: str, value: Any) -> Self:
        self._updates.append(("SET_IF_NOT_EXISTS", (field, value)))
        return self

    def add(self, field: str, value: Any) -> Self:
        self._updates.append(("ADD", (field, value)))
        return self

    def remove(self, field: str) -> Self:
        self._updates.append(("REMOVE", (field,)))
        return self

    def delete(self, field: str, value: Any) -> Self:
        self._updates.append(("DELETE", (field, value)))
        return self

    def append_to_list(self, field: str, values: list[Any]) -> Self:
        self._updates.append(("APPEND_LIST", (field, list(values))))
        return self

    def build(self) -> Expression:
        if not (self._conditions or self._updates or self._projection):
            raise ExpressionError("expression is empty")

        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        refs: dict[str, set[str]] = {CONDITION: set(), PROJECTION: set(), UPDATE: set()}
        counters = {CONDITION: 0, UPDATE: 0}

        def name_ref(part: str, attr: str) -> str:
            if not attr:
                raise ExpressionError("attribute name must be non-empty")
            ref = "#" + _PLACEHOLDER_UNSAFE.sub("_", attr)
            suffix = 1
            while names.get(ref, attr) != attr:
                suffix += 1
                ref = f"#{_PLACEHOLDER_UNSAFE.sub('_', attr)}_{suffix}"
            names[ref] = attr
            refs[part].add(ref)
            return ref

        def value_ref(part: str, value: Any) -> str:
            counters[part] += 1
            ref = f":{part[0]}{counters[part]}"
            try:
                values[ref] = marshal_value(value)
            except BindError as err:
                raise ExpressionError(str(err)) from err
            refs[part].add(ref)
            return ref

        update = self._build_update(
            lambda attr: name_ref(UPDATE, attr), lambda value: value_ref(UPDATE, value)
        )
        condition = self._build_condition(
            lambda attr: name_ref(CONDITION, attr), lambda value: value_ref(CONDITION, value)
        )
        projection = ", ".join(name_ref(PROJECTION, attr) for attr in self._projection) or None

        return Expression(
            condition=condition,
            projection=projection,
            update=update,
            names=names,
            values=values,
            refs={part: frozenset(used) for part, used in refs.items()},
        )

    def _build_update(self, name_ref: Callable[[str], str], value_ref: Callable[[Any], str]) -> str | None:
        set_parts: list[str] = []
        remove_parts: list[str] = []
        add_parts: list[str] = []
        delete_parts: list[str] = []

        for kind, args in self._updates:
            if kind == "SET":
                attr, value = args
                set_parts.append(f"{name_ref(attr)} = {value_ref(value)}")
            elif kind == "SET_IF_NOT_EXISTS":
                attr, value = args
                ref = name_ref(attr)
                set_parts.append(f"{ref} = if_not_exists({ref}, {value_ref(value)})")
            elif kind == "REMOVE":
                (attr,) = args
                remove_parts.append(name_ref(attr))
            elif kind == "ADD":
                attr, value = args
                if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, set, frozenset)):
                    raise ExpressionError("ADD requires a numeric or set value")
                add_parts.append(f"{name_ref(attr)} {value_ref(value)}")
            elif kind == "DELETE":
                attr, value = args
                if not isinstance(value, (set, frozenset)):
                    raise ExpressionError("DELETE requires a set value")
                delete_parts.append(f"{name_ref(attr)} {value_ref(value)}")
            elif kind == "APPEND_LIST":
                attr, items = args
                ref = name_ref(attr)
                set_parts.append(f"{ref} = list_append({ref}, {value_ref(items)})")
            else:
                raise ExpressionError(f"unsupported update operation: {kind}")

        clauses: list[str] = []
        if set_parts:
            clauses.append("SET " + ", ".join(set_parts))
        if remove_parts:
            clauses.append("REMOVE " + ", ".join(remove_parts))
        if add_parts:
            clauses.append("ADD " + ", ".join(add_parts))
        if delete_parts:
            clauses.append("DELETE " + ", ".join(delete_parts))
        return " ".join(clauses) or None

    def _build_condition(
        self, name_ref: Callable[[str], str], value_ref: Callable[[Any], str]
    ) -> str | None:
        out: str | None = None
        for logic, attr, operator, value in self._conditions:
            term = _build_condition_term(name_ref(attr), operator, value, value_ref)
            out = term if out is None else f"{out} {logic} {term}"
        return out


def _build_condition_term(
    name_ref: str,
    operator: str,
    value: Any,
    value_ref: Callable[[Any], str],
) -> str:
    op = str(operator or "").strip().upper()

    def require_value() -> Any:
        if value is None:
            raise ExpressionError(f"{operator} requires one value")
        return value

    if op in {"ATTRIBUTE_EXISTS", "EXISTS"}:
        if value is not None:
            raise ExpressionError("EXISTS does not take a value")
        return f"attribute_exists({name_ref})"
    if op in {"ATTRIBUTE_NOT_EXISTS", "NOT_EXISTS"}:
        if value is not None:
            raise ExpressionError("NOT_EXISTS does not take a value")
        return f"attribute_not_exists({name_ref})"

    if op in _COMPARISONS:
        return f"{name_ref} {_COMPARISONS[op]} {value_ref(require_value())}"

    if op == "BETWEEN":
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ExpressionError("BETWEEN requires two values")
        return f"{name_ref} BETWEEN {value_ref(value[0])} AND {value_ref(value[1])}"
    if op == "IN":
        if not isinstance(value, Sequence) or isinstance(value, (str, bytes, bytearray)) or not value:
            raise ExpressionError("IN requires a sequence of values")
        if len(value) > 100:
            raise ExpressionError("IN supports maximum 100 values")
        return f"{name_ref} IN (" + ", ".join(value_ref(v) for v in value) + ")"
    if op == "BEGINS_WITH":
        return f"begins_with({name_ref}, {value_ref(require_value())})"
    if op == "CONTAINS":
        return f"contains({name_ref}, {value_ref(require_value())})"

    raise ExpressionError(f"unsupported condition operator: {operator}")
