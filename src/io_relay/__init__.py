"""io-relay - bridge a host application's events to a relay WebSocket.

Outbound: selected host events (scan, login, logout, error, heartbeat)
are mirrored as ``{name, payload}`` envelopes while connected.

Inbound: the relay may push ``botie``, ``reset``, ``update`` and ``sys``
commands, which are applied to the host.
"""

__version__ = "0.1.0"

from .client import IoClient
from .config import IoConfig
from .errors import IoConfigurationError, IoError, NotConnectedError
from .hooks import HookStrategyRegistry, MessageHookSlot
from .host import Contact, EventEmitter, Host
from .protocol import Envelope, decode, encode
from .session import Backoff, Session, SessionState

__all__ = [
    "__version__",
    "Backoff",
    "Contact",
    "Envelope",
    "EventEmitter",
    "HookStrategyRegistry",
    "Host",
    "IoClient",
    "IoConfig",
    "IoConfigurationError",
    "IoError",
    "MessageHookSlot",
    "NotConnectedError",
    "Session",
    "SessionState",
    "decode",
    "encode",
]
