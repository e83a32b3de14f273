from __future__ import annotations

from dataclasses import dataclass, field

from .errors import ConfigError

DEFAULT_TAG_NAME = "dynamodb"
# Legacy spelling, kept so existing tags keep resolving.
DEFAULT_PARTITION_KEY = "paritionkey"
DEFAULT_SORT_KEY = "sortkey"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_CAPACITY_UNITS = 10

BILLING_MODES = frozenset({"PROVISIONED", "PAY_PER_REQUEST"})


@dataclass(frozen=True)
class TagVocabulary:
    tag_name: str = DEFAULT_TAG_NAME
    partition_key: str = DEFAULT_PARTITION_KEY
    sort_key: str = DEFAULT_SORT_KEY
    partition_key_aliases: tuple[str, ...] = ("partitionkey",)

    def __post_init__(self) -> None:
        if not self.tag_name.strip():
            raise ConfigError("tag_name must be non-empty")
        if not self.partition_key.strip():
            raise ConfigError("partition_key marker must be non-empty")
        if not self.sort_key.strip():
            raise ConfigError("sort_key marker must be non-empty")
        if any(not alias.strip() for alias in self.partition_key_aliases):
            raise ConfigError("partition_key aliases must be non-empty")
        if self.sort_key in self.partition_markers():
            raise ConfigError(f"sort_key marker collides with partition_key marker: {self.sort_key}")

    def partition_markers(self) -> frozenset[str]:
        return frozenset((self.partition_key, *self.partition_key_aliases))

    def is_partition_key(self, marker: str | None) -> bool:
        return marker is not None and marker in self.partition_markers()

    def is_sort_key(self, marker: str | None) -> bool:
        return marker is not None and marker == self.sort_key


@dataclass(frozen=True)
class Config:
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    tags: TagVocabulary = field(default_factory=TagVocabulary)
    read_capacity_units: int = DEFAULT_CAPACITY_UNITS
    write_capacity_units: int = DEFAULT_CAPACITY_UNITS
    billing_mode: str = "PROVISIONED"

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ConfigError("timeout must be > 0")
        if self.read_capacity_units < 1 or self.write_capacity_units < 1:
            raise ConfigError("capacity units must be >= 1")
        if self.billing_mode not in BILLING_MODES:
            raise ConfigError(f"unsupported billing_mode: {self.billing_mode}")


DEFAULT_CONFIG = Config()
