"""Store configuration for cascadestore."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from cascadestore.exceptions import CascadeConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Notifying store configuration.

    Parameters
    ----------
    status_field : str
        Name of the reserved data hash field carrying a server-side status.
    deleted_marker : str
        Value of ``status_field`` marking a data hash as a tombstone.
        Tombstones are routed to a destroy instead of being loaded.
    trace_notifications : bool
        Include (redacted) data hashes in DEBUG logs for every
        notification sent to the data source.
    log_max_string : int
        Strings longer than this are truncated in traced payloads.
    """

    status_field: str = "status"
    deleted_marker: str = "deleted"
    trace_notifications: bool = False
    log_max_string: int = 512

    def __post_init__(self) -> None:
        if not self.status_field:
            raise CascadeConfigError("status_field must be non-empty")
        if self.log_max_string <= 0:
            raise CascadeConfigError("log_max_string must be positive")

    def is_tombstone(self, data_hash: Any) -> bool:
        """Whether *data_hash* marks a deleted record rather than content."""
        if not isinstance(data_hash, Mapping):
            return False
        return data_hash.get(self.status_field) == self.deleted_marker

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``CASCADESTORE_STATUS_FIELD``, ``CASCADESTORE_DELETED_MARKER``,
        ``CASCADESTORE_TRACE_NOTIFICATIONS`` and
        ``CASCADESTORE_LOG_MAX_STRING``.  Explicit keyword arguments override
        environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "CASCADESTORE_STATUS_FIELD": "status_field",
            "CASCADESTORE_DELETED_MARKER": "deleted_marker",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "trace_notifications" not in overrides:
            config_kwargs["trace_notifications"] = _env_bool(
                env.get("CASCADESTORE_TRACE_NOTIFICATIONS"),
                False,
            )

        max_string_env = env.get("CASCADESTORE_LOG_MAX_STRING")
        if max_string_env is not None and "log_max_string" not in overrides:
            try:
                config_kwargs["log_max_string"] = int(max_string_env)
            except ValueError as exc:
                raise CascadeConfigError(f"CASCADESTORE_LOG_MAX_STRING is not an integer: {max_string_env!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
