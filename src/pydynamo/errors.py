from __future__ import annotations


class PydynamoError(Exception):
    pass


class ConfigError(PydynamoError, ValueError):
    pass


class NotARecordError(ConfigError):
    def __init__(self, value: object) -> None:
        super().__init__(f"not a record: {type(value).__name__}")
        self.value = value


class EncoderError(PydynamoError):
    pass


class NoPartitionKeyError(EncoderError):
    def __init__(self, record: str) -> None:
        super().__init__(f"encoder error: no partition key for {record}")
        self.record = record


class MultipleKeysError(EncoderError):
    role = "key"

    def __init__(self, record: str, fields: tuple[str, ...]) -> None:
        super().__init__(f"encoder error: multiple {self.role}s for {record}: {', '.join(fields)}")
        self.record = record
        self.fields = fields


class MultiplePartitionKeysError(MultipleKeysError):
    role = "partition key"


class MultipleSortKeysError(MultipleKeysError):
    role = "sort key"


class UnsupportedScalarError(EncoderError):
    def __init__(self, field: str | None, kind: str) -> None:
        where = f" for {field}" if field else ""
        super().__init__(f"encode error: unsupported type{where}: {kind}")
        self.field = field
        self.kind = kind


class EmptyStringError(EncoderError):
    def __init__(self, field: str | None) -> None:
        where = f" for {field}" if field else ""
        super().__init__(f"encode error: empty string{where}")
        self.field = field


class BindError(PydynamoError):
    pass


class ExpressionError(PydynamoError):
    pass


class BuilderReusedError(PydynamoError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} builder already executed")
        self.operation = operation


class NotFoundError(PydynamoError):
    pass


class ServiceError(PydynamoError):
    def __init__(self, *, operation: str, code: str, message: str) -> None:
        super().__init__(f"failed to {operation}: {code}: {message}")
        self.operation = operation
        self.code = code
        self.message = message


class ConditionFailedError(ServiceError):
    pass


class TableExistsError(ServiceError):
    pass


class OperationCancelledError(PydynamoError):
    pass


class DeadlineExceededError(OperationCancelledError, TimeoutError):
    pass
