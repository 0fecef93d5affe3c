"""Configuration for the relay client."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any

from .errors import IoConfigurationError

DEFAULT_ENDPOINT = "wss://api.wechaty.io/v0/websocket"
DEFAULT_SUBPROTOCOL = "io|0.0.1"

ENV_ENDPOINT = "IO_RELAY_ENDPOINT"
ENV_PROTOCOL = "IO_RELAY_PROTOCOL"
ENV_KEEPALIVE = "IO_RELAY_KEEPALIVE"
ENV_TOKEN = "IO_RELAY_TOKEN"


@dataclass
class IoConfig:
    """Relay connection settings.

    Delays are in seconds. The reconnect delay starts at
    ``reconnect_initial_delay`` and doubles per attempt, never exceeding
    ``reconnect_max_delay``.
    """

    endpoint: str = DEFAULT_ENDPOINT
    subprotocol: str = DEFAULT_SUBPROTOCOL
    keepalive_interval: float = 30.0
    reconnect_initial_delay: float = 0.1
    reconnect_max_delay: float = 10.0
    greeting_name: str = "Wechaty"

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise IoConfigurationError("endpoint must not be empty")
        if self.reconnect_initial_delay <= 0:
            raise IoConfigurationError("reconnect_initial_delay must be positive")
        if self.reconnect_max_delay < self.reconnect_initial_delay:
            raise IoConfigurationError(
                "reconnect_max_delay must be >= reconnect_initial_delay"
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> IoConfig:
        """Build a config from ``IO_RELAY_*`` environment variables.

        Explicit keyword overrides win over the environment; ``None``
        overrides are ignored.
        """
        values: dict[str, Any] = {}
        if endpoint := os.getenv(ENV_ENDPOINT):
            values["endpoint"] = endpoint
        if protocol := os.getenv(ENV_PROTOCOL):
            values["subprotocol"] = protocol
        if keepalive := os.getenv(ENV_KEEPALIVE):
            try:
                values["keepalive_interval"] = float(keepalive)
            except ValueError as e:
                raise IoConfigurationError(
                    f"{ENV_KEEPALIVE} must be a number, got {keepalive!r}"
                ) from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def mask_token(token: str | None) -> str:
    """Hide all but the last four characters of a credential."""
    if not token:
        return "<none>"
    if len(token) <= 4:
        return "****"
    return f"****{token[-4:]}"
