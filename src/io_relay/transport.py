"""WebSocket transport for the relay session.

The session talks to the network only through a ``Connector`` so tests
can hand it an in-memory socket.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import AsyncIterator
from typing import Any, Protocol

from websockets.asyncio.client import connect
from websockets.typing import Subprotocol

logger = logging.getLogger(__name__)


class RelaySocket(Protocol):
    """The part of a client WebSocket the session uses."""

    @property
    def subprotocol(self) -> str | None:
        """Subprotocol negotiated by the server."""
        ...

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


class Connector(Protocol):
    async def __call__(
        self,
        endpoint: str,
        *,
        subprotocol: str,
        headers: dict[str, str],
        keepalive_interval: float,
    ) -> RelaySocket: ...


def enable_tcp_keepalive(transport: Any, interval: float) -> bool:
    """Turn on TCP keep-alive probes for the socket behind ``transport``.

    Returns False when no socket is available (e.g., in-memory transports).
    """
    sock = transport.get_extra_info("socket") if transport is not None else None
    if sock is None:
        return False

    seconds = max(1, int(interval))
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    # Probe tuning is platform specific
    if hasattr(socket, "TCP_KEEPIDLE"):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, seconds)
    elif hasattr(socket, "TCP_KEEPALIVE"):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPALIVE, seconds)
    if hasattr(socket, "TCP_KEEPINTVL"):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, seconds)
    return True


async def websocket_connect(
    endpoint: str,
    *,
    subprotocol: str,
    headers: dict[str, str],
    keepalive_interval: float,
) -> RelaySocket:
    """Open a client WebSocket to the relay."""
    ws = await connect(
        endpoint,
        additional_headers=headers,
        subprotocols=[Subprotocol(subprotocol)],
        ping_interval=keepalive_interval,
        ping_timeout=keepalive_interval,
    )
    if not enable_tcp_keepalive(ws.transport, keepalive_interval):
        logger.debug("TCP keep-alive unavailable; relying on WebSocket pings")
    return ws
