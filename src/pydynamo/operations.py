from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Self

from .context import Context
from .encoding import KeyEncoder
from .errors import BuilderReusedError, NotFoundError, PydynamoError
from .expression import CONDITION, PROJECTION, UPDATE, Expression
from .introspect import elem_of_value, is_record_instance
from .marshal import marshal_map, unmarshal_map

if TYPE_CHECKING:
    from .client import Client

logger = logging.getLogger(__name__)


class Operation:
    """Single-use request builder: bind, optionally use_expr, then execute once.

    Errors raised while binding are kept on the builder and raised by
    ``execute`` without contacting the service.

    When the context passed to ``execute_with_context`` is cancelled or
    expires, the caller stops waiting and gets the context's error, but the
    request already handed to the service is not withdrawn: a put, update or
    delete may still be applied afterwards. The client's botocore timeouts
    bound how long such an abandoned call can keep running.
    """

    operation: ClassVar[str]
    method: ClassVar[str]
    expression_parts: ClassVar[tuple[str, ...]]

    def __init__(self, client: Client, table_name: str) -> None:
        self.client = client
        self.input: dict[str, Any] = {"TableName": table_name}
        self.error: PydynamoError | None = None
        self._dispatched = False

    def request(self) -> dict[str, Any]:
        return copy.deepcopy(self.input)

    def return_values(self, option: str) -> Self:
        self.input["ReturnValues"] = option
        return self

    def use_expr(self, expr: Expression) -> Self:
        self._set("ConditionExpression", expr.condition if CONDITION in self.expression_parts else None)
        self._set("ProjectionExpression", expr.projection if PROJECTION in self.expression_parts else None)
        self._set("UpdateExpression", expr.update if UPDATE in self.expression_parts else None)
        self._set("ExpressionAttributeNames", expr.names_for(*self.expression_parts) or None)
        self._set("ExpressionAttributeValues", expr.values_for(*self.expression_parts) or None)
        return self

    def _bind(self, target: str, encode: Callable[[Any], dict[str, Any]], value: Any) -> Self:
        try:
            encoded = encode(value)
        except PydynamoError as err:
            self.error = err
            return self
        self.error = None
        self.input[target] = encoded
        return self

    def _set(self, key: str, value: Any) -> None:
        if value is None:
            self.input.pop(key, None)
        else:
            self.input[key] = value

    def _dispatch(self, ctx: Context) -> Mapping[str, Any]:
        if self._dispatched:
            raise BuilderReusedError(self.operation)
        self._dispatched = True

        if self.error is not None:
            logger.debug("%s on %s not dispatched: %s", self.operation, self.input["TableName"], self.error)
            raise self.error

        return self.client.call(ctx, self.method, self.operation, self.input)

    def _attributes(self, resp: Mapping[str, Any]) -> dict[str, Any] | None:
        attrs = resp.get("Attributes")
        if not attrs:
            return None
        return unmarshal_map(attrs)


class PutItemOp(Operation):
    operation = "put item"
    method = "put_item"
    expression_parts = (CONDITION,)

    def bind(self, value: Any) -> Self:
        return self._bind("Item", marshal_map, value)

    def execute(self) -> dict[str, Any] | None:
        return self.execute_with_context(self.client.context())

    def execute_with_context(self, ctx: Context) -> dict[str, Any] | None:
        """Dispatch under ``ctx``; cancelling it stops the wait, not the request."""
        return self._attributes(self._dispatch(ctx))


class GetItemOp(Operation):
    operation = "get item"
    method = "get_item"
    expression_parts = (PROJECTION,)

    def __init__(self, client: Client, table_name: str) -> None:
        super().__init__(client, table_name)
        self._record_type: type | None = None

    def bind(self, value: Any) -> Self:
        self._record_type = None
        self._bind("Key", KeyEncoder(self.client.tags).encode, value)
        if self.error is None:
            target = elem_of_value(value)
            if is_record_instance(target):
                self._record_type = type(target)
        return self

    def consistent_read(self, enabled: bool = True) -> Self:
        self.input["ConsistentRead"] = enabled
        return self

    def execute(self, out: Any = None) -> Any:
        return self.execute_with_context(self.client.context(), out)

    def execute_with_context(self, ctx: Context, out: Any = None) -> Any:
        """Dispatch under ``ctx``; cancelling it stops the wait, not the request."""
        resp = self._dispatch(ctx)
        item = resp.get("Item")
        if not item:
            raise NotFoundError(f"nothing found in {self.input['TableName']}")
        return unmarshal_map(item, out if out is not None else self._record_type)


class UpdateItemOp(Operation):
    operation = "update item"
    method = "update_item"
    expression_parts = (UPDATE, CONDITION)

    def bind(self, value: Any) -> Self:
        return self._bind("Key", KeyEncoder(self.client.tags).encode, value)

    def execute(self) -> dict[str, Any] | None:
        return self.execute_with_context(self.client.context())

    def execute_with_context(self, ctx: Context) -> dict[str, Any] | None:
        """Dispatch under ``ctx``; cancelling it stops the wait, not the request."""
        return self._attributes(self._dispatch(ctx))


class DeleteItemOp(Operation):
    operation = "delete item"
    method = "delete_item"
    expression_parts = (CONDITION,)

    def bind(self, value: Any) -> Self:
        # Marshals the whole record into Key; use bind_key for records with non-key fields.
        return self._bind("Key", marshal_map, value)

    def bind_key(self, value: Any) -> Self:
        return self._bind("Key", KeyEncoder(self.client.tags).encode, value)

    def execute(self) -> dict[str, Any] | None:
        return self.execute_with_context(self.client.context())

    def execute_with_context(self, ctx: Context) -> dict[str, Any] | None:
        """Dispatch under ``ctx``; cancelling it stops the wait, not the request."""
        return self._attributes(self._dispatch(ctx))
