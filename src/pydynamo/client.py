from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from .aws_errors import map_service_error
from .config import DEFAULT_CONFIG, Config, TagVocabulary
from .context import Context, run_in_context, with_timeout
from .runtime import create_boto3_config, create_dynamodb_client
from .schema import build_create_table_request
from .table import Table

logger = logging.getLogger(__name__)


class Client:
    """Entry point: holds the DynamoDB service handle and the configuration.

    ``service`` is anything exposing the low-level boto3 DynamoDB client
    methods; tests pass a :class:`pydynamo.mocks.FakeDynamoDBClient`.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        service: Any | None = None,
        session: Any | None = None,
    ) -> None:
        self._config = config or DEFAULT_CONFIG
        if service is None:
            service = create_dynamodb_client(
                session=session,
                config=create_boto3_config(self._config.timeout),
            )
        self._service = service

    @classmethod
    def from_session(cls, session: Any, config: Config | None = None) -> Client:
        return cls(config, session=session)

    @property
    def service(self) -> Any:
        return self._service

    @property
    def config(self) -> Config:
        return self._config

    @property
    def tags(self) -> TagVocabulary:
        return self._config.tags

    def context(self) -> Context:
        return with_timeout(self._config.timeout)

    def table(self, name_or_record: Any) -> Table:
        if isinstance(name_or_record, str):
            name = name_or_record
        else:
            table_name = getattr(name_or_record, "table_name", None)
            if not callable(table_name):
                raise TypeError(f"expected a table name or a record with table_name(): {name_or_record!r}")
            name = table_name()
        return Table(self, name)

    def create_table(self, name: str, record: Any) -> None:
        self.create_table_with_context(self.context(), name, record)

    def create_table_with_context(self, ctx: Context, name: str, record: Any) -> None:
        req = build_create_table_request(name, record, config=self._config)
        self.call(ctx, "create_table", "create table", req)

    def call(self, ctx: Context, method: str, operation: str, request: Mapping[str, Any]) -> Mapping[str, Any]:
        fn = getattr(self._service, method)
        logger.debug("%s on %s", operation, request.get("TableName"))
        try:
            return run_in_context(ctx, fn, **request)
        except (ClientError, BotoCoreError) as err:
            logger.debug("%s on %s failed: %s", operation, request.get("TableName"), err)
            raise map_service_error(err, operation) from err
