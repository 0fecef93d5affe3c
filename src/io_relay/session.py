"""Relay session: one WebSocket, its connection state, and reconnect backoff.

State machine:

    DISCONNECTED -> CONNECTING -> CONNECTED
                        ^             |
                        |       close / error
                        |             v
                        +------- RECONNECTING

DISCONNECTED is also terminal after ``shutdown()``.

Everything runs on one asyncio loop. The reconnect delay is a
``loop.call_later`` handle held in a single optional slot, so there is
never more than one pending attempt.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from .config import IoConfig, mask_token
from .errors import IoConfigurationError, NotConnectedError
from .host import Host
from .protocol import Envelope, decode, encode
from .transport import Connector, RelaySocket, websocket_connect

logger = logging.getLogger(__name__)

EnvelopeHandler = Callable[[Envelope], Awaitable[None]]


class SessionState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class Backoff:
    """Capped exponential delay: initial, 2x, 4x, ... up to ``maximum``.

    There is no attempt limit; once capped, every delay equals ``maximum``.
    """

    def __init__(self, initial: float = 0.1, maximum: float = 10.0) -> None:
        self.initial = initial
        self.maximum = maximum
        self.next_delay: float | None = None

    def next(self) -> float:
        if self.next_delay is None:
            self.next_delay = self.initial
        else:
            self.next_delay = min(self.next_delay * 2, self.maximum)
        return self.next_delay

    def reset(self) -> None:
        self.next_delay = None


@dataclass(frozen=True)
class PendingReconnect:
    """A scheduled reconnect attempt."""

    delay: float
    deadline: float  # loop.time() at which the attempt fires
    handle: asyncio.TimerHandle


class Session:
    """Owns the relay socket and keeps it connected.

    Inbound frames are decoded and passed, in arrival order, to
    ``on_envelope``. Transport errors are re-emitted on the host's
    ``error`` channel and never raised to the caller.
    """

    def __init__(
        self,
        host: Host,
        token: str,
        config: IoConfig | None = None,
        *,
        connector: Connector | None = None,
        on_envelope: EnvelopeHandler | None = None,
    ) -> None:
        if host is None or not token:
            raise IoConfigurationError("Session requires a host and a token")

        self.config = config or IoConfig()
        self.on_envelope = on_envelope
        self._host = host
        self._token = token
        self._connector: Connector = connector or websocket_connect

        self._ws: RelaySocket | None = None
        self._state = SessionState.DISCONNECTED
        self._backoff = Backoff(
            self.config.reconnect_initial_delay, self.config.reconnect_max_delay
        )
        self._pending: PendingReconnect | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._shut_down = False

        logger.debug(
            f"Session created: endpoint={self.endpoint} token={mask_token(token)} "
            f"subprotocol={self.subprotocol}"
        )

    def __repr__(self) -> str:
        return f"Session({mask_token(self._token)}, {self._state.value})"

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    @property
    def subprotocol(self) -> str:
        return self.config.subprotocol

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self._state == SessionState.CONNECTED

    @property
    def next_delay(self) -> float | None:
        """Delay used for the most recent reconnect, None after a successful open."""
        return self._backoff.next_delay

    @property
    def pending_reconnect(self) -> PendingReconnect | None:
        return self._pending

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the socket, or schedule a retry if that fails."""
        if self._shut_down:
            logger.debug("connect() after shutdown ignored")
            return
        if self.is_connected:
            logger.warning("connect() on an already connected session")
            return

        self._state = SessionState.CONNECTING
        logger.debug(f"Connecting to {self.endpoint}")

        try:
            ws = await self._connector(
                self.endpoint,
                subprotocol=self.subprotocol,
                headers={"Authorization": f"Token {self._token}"},
                keepalive_interval=self.config.keepalive_interval,
            )
        except Exception as e:
            logger.warning(f"Connection to {self.endpoint} failed: {e}")
            await self._handle_error(None, e)
            return

        if self._shut_down:
            await ws.close()
            return

        self._ws = ws
        self._state = SessionState.CONNECTED
        self._backoff.reset()

        if ws.subprotocol != self.subprotocol:
            logger.warning(
                f"Relay negotiated subprotocol {ws.subprotocol!r}, "
                f"requested {self.subprotocol!r}; continuing"
            )
        logger.info(f"Connected to {self.endpoint} with subprotocol {ws.subprotocol!r}")

        try:
            await self.send_raw(f"{self.config.greeting_name} version {self._host.version()}")
        except Exception as e:
            await self._handle_error(ws, e)
            return

        # A greeting dropped on a closed socket is picked up by the reader as a close
        self._reader_task = asyncio.create_task(self._read_loop(ws))

    def reconnect(self) -> None:
        """Schedule one reconnect attempt using the backoff delay."""
        if self._shut_down:
            logger.debug("reconnect() after shutdown ignored")
            return
        if self.is_connected:
            logger.warning("reconnect() on an already connected session")
            return
        if self._pending is not None:
            logger.warning("reconnect() while a reconnect is already pending")
            return

        delay = self._backoff.next()
        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, self._reconnect_due)
        self._pending = PendingReconnect(delay=delay, deadline=loop.time() + delay, handle=handle)
        self._state = SessionState.RECONNECTING
        logger.info(f"Reconnecting in {delay:.1f}s")

    def _reconnect_due(self) -> None:
        self._pending = None
        self._connect_task = asyncio.create_task(self.connect())

    async def close(self) -> None:
        """Close the live socket.

        A pending reconnect still fires, and a live socket's closure goes
        through the normal close path (which schedules a reconnect). Use
        ``shutdown()`` to stop for good.
        """
        ws = self._ws
        if ws is None:
            return
        logger.debug("Closing relay socket")
        await ws.close()

    async def shutdown(self) -> None:
        """Stop the session: cancel retries, close the socket, stay disconnected."""
        self._shut_down = True

        if self._pending is not None:
            self._pending.handle.cancel()
            self._pending = None

        ws, self._ws = self._ws, None
        self._state = SessionState.DISCONNECTED
        if ws is not None:
            await self._close_quietly(ws)

        current = asyncio.current_task()
        for task in (self._reader_task, self._connect_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._reader_task = None
        self._connect_task = None
        logger.info("Session shut down")

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    async def send(self, envelope: Envelope) -> None:
        """Encode and send an envelope. Delivery is not acknowledged."""
        await self.send_raw(encode(envelope))

    async def send_raw(self, text: str) -> None:
        """Send a text frame as-is."""
        ws = self._ws
        if ws is None:
            raise NotConnectedError("Relay socket is not open")
        logger.debug(f"send: {text}")
        try:
            await ws.send(text)
        except ConnectionClosed as e:
            # The reader observes the same closure and drives reconnect
            logger.debug(f"send on closed socket dropped: {e}")

    # -------------------------------------------------------------------------
    # Socket events
    # -------------------------------------------------------------------------

    async def _read_loop(self, ws: RelaySocket) -> None:
        try:
            async for data in ws:
                await self._receive(data)
        except ConnectionClosedError as e:
            await self._handle_error(ws, e)
        except ConnectionClosed as e:
            await self._handle_close(ws, e)
        except Exception as e:
            await self._handle_error(ws, e)
        else:
            await self._handle_close(ws, None)

    async def _receive(self, data: str | bytes) -> None:
        logger.debug(f"recv: {data!r}")
        try:
            envelope = decode(data)
            if self.on_envelope is not None:
                await self.on_envelope(envelope)
        except Exception:
            logger.exception("Error handling relay frame")

    async def _handle_close(self, ws: RelaySocket, reason: Exception | None) -> None:
        if ws is not self._ws:
            return  # Replaced or shut down
        logger.info(f"Relay socket closed: {reason or 'normal closure'}")
        self._ws = None
        self._state = SessionState.RECONNECTING
        self.reconnect()
        await self._close_quietly(ws)

    async def _handle_error(self, ws: RelaySocket | None, error: Exception) -> None:
        if ws is not self._ws:
            return
        logger.info(f"Relay transport error: {error}")
        self._ws = None
        if self._shut_down:
            return
        self._state = SessionState.RECONNECTING
        self.reconnect()

        try:
            await self._host.emit("error", error)
        except Exception:
            logger.exception("Host error channel raised")
        if ws is not None:
            await self._close_quietly(ws)

    async def _close_quietly(self, ws: RelaySocket) -> None:
        try:
            await ws.close()
        except Exception as e:
            logger.debug(f"Error closing relay socket: {e}")
