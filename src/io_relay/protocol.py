"""Envelope protocol for the relay socket.

Every structured frame on the wire is a JSON object:

    {"name": "login", "payload": {"id": "u1"}}

Anything that does not parse as such an object is downgraded to a
``raw`` envelope carrying the original text, so a malformed frame is
never fatal.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

RAW = "raw"


class InboundName(str, Enum):
    """Envelope names the remote side may push to us."""

    BOTIE = "botie"  # Replace the message hook
    RESET = "reset"  # Reset host state
    UPDATE = "update"  # Ask for a status refresh
    SYS = "sys"  # Keep-alive acknowledgement


class OutboundName(str, Enum):
    """Envelope names mirrored from host events."""

    SCAN = "scan"
    LOGIN = "login"
    LOGOUT = "logout"
    ERROR = "error"
    HEARTBEAT = "heartbeat"


@dataclass(frozen=True)
class Envelope:
    """A named payload exchanged with the relay."""

    name: str | None
    payload: Any = None

    def to_json(self) -> str:
        """Serialize to JSON."""
        return encode(self)

    @classmethod
    def from_json(cls, data: str | bytes) -> Envelope:
        """Deserialize from JSON, falling back to a raw envelope."""
        return decode(data)


def _default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return str(value)


def encode(envelope: Envelope) -> str:
    """Encode an envelope as a JSON text frame.

    Values JSON cannot represent natively (pydantic models, exceptions)
    are dumped or stringified rather than rejected.
    """
    return json.dumps({"name": envelope.name, "payload": envelope.payload}, default=_default)


def decode(data: str | bytes) -> Envelope:
    """Decode a text frame.

    Missing ``name``/``payload`` fields come back as ``None``. Frames that
    are not JSON objects become ``Envelope("raw", <text>)``.
    """
    if isinstance(data, bytes | bytearray):
        data = bytes(data).decode("utf-8", errors="replace")

    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, ValueError, RecursionError):
        logger.debug(f"Received non-envelope frame: {data!r}")
        return Envelope(name=RAW, payload=data)

    if not isinstance(parsed, dict):
        logger.debug(f"Received non-object frame: {data!r}")
        return Envelope(name=RAW, payload=data)

    return Envelope(name=parsed.get("name"), payload=parsed.get("payload"))
