"""
Client configuration.

Responsibilities:
- Read environment variables (a .env file is loaded by the CLI beforehand)
- Apply command-line overrides
- Provide a typed, immutable config object

Non-responsibilities:
- No protocol constants
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

from constants import (
    DEFAULT_ADDR,
    DEFAULT_FREQUENCY_OFFSET_HZ,
    DEFAULT_SQUELCH_LEVEL,
)


class ConfigError(ValueError):
    """Raised when an environment value cannot be parsed."""


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client configuration.

    Constructed once at process startup.
    Passed downward to the receiver session and initializer.
    """

    # ------------------------------------------------------------------
    # Endpoint
    # ------------------------------------------------------------------

    addr: str = DEFAULT_ADDR

    # ------------------------------------------------------------------
    # Demodulator
    # ------------------------------------------------------------------

    squelch_level: int = DEFAULT_SQUELCH_LEVEL
    frequency_offset: int = DEFAULT_FREQUENCY_OFFSET_HZ

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env(environ: Mapping[str, str] | None = None) -> ClientConfig:
        """
        Load configuration from environment variables.

        Raises:
            ConfigError if a numeric variable is not an integer.
        """
        env = os.environ if environ is None else environ

        return ClientConfig(
            addr=env.get("OWRX_ADDR", DEFAULT_ADDR),
            squelch_level=_int_from_env(env, "OWRX_SQUELCH", DEFAULT_SQUELCH_LEVEL),
            frequency_offset=_int_from_env(
                env, "OWRX_OFFSET", DEFAULT_FREQUENCY_OFFSET_HZ
            ),
            enable_json_logs=env.get("ENABLE_JSON_LOGS", "1") == "1",
        )

    def with_overrides(self, **overrides: Any) -> ClientConfig:
        """
        Return a copy with every non-None override applied.

        Used by the CLI: unset flags arrive as None and keep the
        environment/default value.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
