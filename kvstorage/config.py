"""
Runtime settings for the kv-storage server.

Environment Variables:
    KV_STORAGE_HOST            - Bind address (default ::1)
    KV_STORAGE_PORT            - Port (default 10522)
    KV_STORAGE_DELETE_POLICY   - strict | ignore_missing (default strict)
    KV_STORAGE_MAX_BODY_BYTES  - Largest accepted request body (default 10 MiB)
    LOG_LEVEL                  - Logging level name (default INFO)
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from kvstorage.engine.engine import DeletePolicy

DEFAULT_HOST = "::1"
DEFAULT_PORT = 10522
DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


@dataclass
class Settings:
    """Server configuration. Validated on construction."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    delete_policy: DeletePolicy = DeletePolicy.STRICT
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    def __post_init__(self) -> None:
        if not self.host or not self.host.strip():
            raise ValueError("host cannot be empty")

        # Port 0 asks the OS for a free port
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port must be in [0, 65535], got {self.port}")

        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

        try:
            self.delete_policy = DeletePolicy(self.delete_policy)
        except ValueError:
            choices = ", ".join(p.value for p in DeletePolicy)
            raise ValueError(
                f"delete_policy must be one of {choices}, got {self.delete_policy!r}"
            ) from None

        if self.max_body_bytes <= 0:
            raise ValueError(f"max_body_bytes must be positive, got {self.max_body_bytes}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("KV_STORAGE_HOST", DEFAULT_HOST),
            port=_int_setting(env, "KV_STORAGE_PORT", DEFAULT_PORT),
            log_level=env.get("LOG_LEVEL", "INFO"),
            delete_policy=env.get("KV_STORAGE_DELETE_POLICY", DeletePolicy.STRICT.value),
            max_body_bytes=_int_setting(env, "KV_STORAGE_MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
        )


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
