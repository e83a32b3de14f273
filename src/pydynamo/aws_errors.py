from __future__ import annotations

from botocore.exceptions import ClientError

from .errors import ConditionFailedError, ServiceError, TableExistsError


def map_client_error(err: ClientError, operation: str) -> ServiceError:
    code = str(err.response.get("Error", {}).get("Code", ""))
    message = str(err.response.get("Error", {}).get("Message", ""))

    if code == "ConditionalCheckFailedException":
        return ConditionFailedError(operation=operation, code=code, message=message or "condition failed")
    if code == "ResourceInUseException" and operation == "create table":
        return TableExistsError(operation=operation, code=code, message=message or "table already exists")

    return ServiceError(operation=operation, code=code or "UnknownError", message=message or str(err))


def map_service_error(err: Exception, operation: str) -> ServiceError:
    if isinstance(err, ClientError):
        return map_client_error(err, operation)
    return ServiceError(operation=operation, code=type(err).__name__, message=str(err))
