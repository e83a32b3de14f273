from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .context import Context
from .operations import DeleteItemOp, GetItemOp, PutItemOp, UpdateItemOp

if TYPE_CHECKING:
    from .client import Client


class Table:
    def __init__(self, client: Client, name: str) -> None:
        self.client = client
        self.name = name

    def __repr__(self) -> str:
        return f"Table({self.name!r})"

    def put_item(self) -> PutItemOp:
        return PutItemOp(self.client, self.name)

    def get_item(self) -> GetItemOp:
        return GetItemOp(self.client, self.name)

    def update_item(self) -> UpdateItemOp:
        return UpdateItemOp(self.client, self.name)

    def delete_item(self) -> DeleteItemOp:
        return DeleteItemOp(self.client, self.name)

    def put(self, record: Any) -> None:
        self.put_item().bind(record).execute()

    def put_with_context(self, ctx: Context, record: Any) -> None:
        self.put_item().bind(record).execute_with_context(ctx)

    def get(self, record: Any, out: Any = None) -> Any:
        return self.get_item().bind(record).execute(out)

    def get_with_context(self, ctx: Context, record: Any, out: Any = None) -> Any:
        return self.get_item().bind(record).execute_with_context(ctx, out)
