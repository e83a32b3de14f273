from __future__ import annotations

from typing import Any, cast

import boto3
from botocore.config import Config as BotoConfig

from .config import DEFAULT_TIMEOUT_SECONDS


def create_boto3_config(timeout: float = DEFAULT_TIMEOUT_SECONDS, *, max_attempts: int = 1) -> BotoConfig:
    # One attempt by default: a call abandoned by its context then ends within
    # connect_timeout + read_timeout instead of after several retry rounds.
    return BotoConfig(
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )


def create_dynamodb_client(
    *,
    session: Any | None = None,
    config: BotoConfig | None = None,
    endpoint_url: str | None = None,
    region: str | None = None,
) -> Any:
    sess = session or boto3.session.Session(region_name=region)
    kwargs: dict[str, Any] = {"config": config or create_boto3_config()}
    if region:
        kwargs["region_name"] = region
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return cast(Any, sess).client("dynamodb", **kwargs)
