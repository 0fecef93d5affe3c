"""IoClient: wires a host to the relay."""

from __future__ import annotations

import logging

from .bridge import EventBridge
from .config import IoConfig, mask_token
from .dispatcher import CommandDispatcher
from .errors import IoConfigurationError
from .hooks import HookStrategyRegistry, MessageHookSlot
from .host import Host
from .session import Session, SessionState
from .transport import Connector

logger = logging.getLogger(__name__)


class IoClient:
    """Mirrors host events to the relay and applies relay commands.

    Usage:
        client = IoClient(host, token="...")
        await client.start()
        ...
        await client.shutdown()
    """

    def __init__(
        self,
        host: Host,
        token: str,
        config: IoConfig | None = None,
        *,
        connector: Connector | None = None,
        strategies: HookStrategyRegistry | None = None,
    ) -> None:
        if host is None or not token:
            raise IoConfigurationError("IoClient must have a host and a token")

        self.config = config or IoConfig()
        self.host = host
        self.session = Session(host, token, self.config, connector=connector)
        self.dispatcher = CommandDispatcher(
            host, self.session, MessageHookSlot(), strategies or HookStrategyRegistry()
        )
        self.session.on_envelope = self.dispatcher.dispatch
        self.bridge = EventBridge(host, self.session, self.dispatcher.message_hook)
        self._token = token

        logger.debug(
            f"IoClient created: endpoint={self.config.endpoint} "
            f"token={mask_token(token)} subprotocol={self.config.subprotocol}"
        )

    def __repr__(self) -> str:
        return f"IoClient({mask_token(self._token)})"

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def is_connected(self) -> bool:
        return self.session.is_connected

    async def start(self) -> IoClient:
        """Subscribe to host events, then open the relay socket.

        Connection failures are retried in the background, so this returns
        once the first attempt has either succeeded or been rescheduled.
        """
        self.bridge.attach()
        await self.session.connect()
        return self

    async def close(self) -> None:
        """Close the current socket (the session will reconnect)."""
        await self.session.close()

    async def shutdown(self) -> None:
        """Stop for good: unsubscribe from the host and shut the session down."""
        self.bridge.detach()
        await self.session.shutdown()

    async def __aenter__(self) -> IoClient:
        return await self.start()

    async def __aexit__(self, *args: object) -> None:
        await self.shutdown()
