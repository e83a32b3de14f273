from __future__ import annotations

import json
import logging
import re
from importlib.resources import files

from .client import Client
from .config import DEFAULT_CONFIG, Config, TagVocabulary
from .context import Context, background, with_cancel, with_timeout
from .encoding import KeyEncoder, encode_scalar, marshal_key
from .errors import (
    BindError,
    BuilderReusedError,
    ConditionFailedError,
    ConfigError,
    DeadlineExceededError,
    EmptyStringError,
    EncoderError,
    ExpressionError,
    MultipleKeysError,
    MultiplePartitionKeysError,
    MultipleSortKeysError,
    NoPartitionKeyError,
    NotARecordError,
    NotFoundError,
    OperationCancelledError,
    PydynamoError,
    ServiceError,
    TableExistsError,
    UnsupportedScalarError,
)
from .expression import Expression, ExpressionBuilder
from .introspect import ScalarKind
from .marshal import marshal_map, unmarshal_map
from .model import FieldDescription, RecordDescription, describe, dynamo_field, partition_key, sort_key
from .operations import DeleteItemOp, GetItemOp, PutItemOp, UpdateItemOp
from .schema import SchemaEncoder, TableSchema, build_create_table_request
from .table import Table

logging.getLogger(__name__).addHandler(logging.NullHandler())


def _read_repo_version() -> str:
    try:
        data = json.loads(files(__package__).joinpath("version.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return "0.0.0"

    version = data.get("version")
    return version if isinstance(version, str) and version else "0.0.0"


def _normalize_repo_version(repo_version: str) -> str:
    match = re.match(r"^(\d+\.\d+\.\d+)-rc\.?([0-9]+)$", repo_version)
    if match:
        return f"{match.group(1)}rc{match.group(2)}"
    return repo_version


__repo_version__ = _read_repo_version()
__version__ = _normalize_repo_version(__repo_version__)


__all__ = [
    "BindError",
    "BuilderReusedError",
    "Client",
    "ConditionFailedError",
    "Config",
    "ConfigError",
    "Context",
    "DEFAULT_CONFIG",
    "DeadlineExceededError",
    "DeleteItemOp",
    "EmptyStringError",
    "EncoderError",
    "Expression",
    "ExpressionBuilder",
    "ExpressionError",
    "FieldDescription",
    "GetItemOp",
    "KeyEncoder",
    "MultipleKeysError",
    "MultiplePartitionKeysError",
    "MultipleSortKeysError",
    "NoPartitionKeyError",
    "NotARecordError",
    "NotFoundError",
    "OperationCancelledError",
    "PutItemOp",
    "PydynamoError",
    "RecordDescription",
    "ScalarKind",
    "SchemaEncoder",
    "ServiceError",
    "Table",
    "TableExistsError",
    "TableSchema",
    "TagVocabulary",
    "UnsupportedScalarError",
    "UpdateItemOp",
    "__repo_version__",
    "__version__",
    "background",
    "build_create_table_request",
    "describe",
    "dynamo_field",
    "encode_scalar",
    "marshal_key",
    "marshal_map",
    "partition_key",
    "sort_key",
    "unmarshal_map",
    "with_cancel",
    "with_timeout",
]
