"""Command dispatcher for envelopes pushed by the relay."""

from __future__ import annotations

import logging
from typing import Any

from .hooks import HookStrategyRegistry, MessageHookSlot
from .host import Host, to_plain
from .protocol import Envelope, InboundName, OutboundName
from .session import Session

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Applies relay commands to the host.

    Commands:
        botie:  install a registered message hook strategy
        reset:  reset the host
        update: re-send the current user as a ``login`` envelope
        sys:    keep-alive, ignored

    Anything else is logged and ignored.
    """

    def __init__(
        self,
        host: Host,
        session: Session,
        message_hook: MessageHookSlot | None = None,
        strategies: HookStrategyRegistry | None = None,
    ) -> None:
        self._host = host
        self._session = session
        self.message_hook = message_hook or MessageHookSlot()
        self.strategies = strategies or HookStrategyRegistry()

    async def dispatch(self, envelope: Envelope) -> None:
        """Handle one inbound envelope."""
        logger.debug(f"Dispatching relay command: {envelope.name}")

        match envelope.name:
            case InboundName.BOTIE.value:
                self._botie(envelope.payload)

            case InboundName.RESET.value:
                logger.info(f"Relay requested reset: {envelope.payload!r}")
                await self._host.reset()

            case InboundName.UPDATE.value:
                await self._update(envelope.payload)

            case InboundName.SYS.value:
                pass

            case _:
                logger.warning(f"Unknown relay command {envelope.name!r}: {envelope.payload!r}")

    def _botie(self, payload: Any) -> None:
        if not isinstance(payload, dict) or not payload.get("onMessage"):
            logger.debug(f"botie without onMessage ignored: {payload!r}")
            return

        name = payload.get("script")
        hook = self.strategies.get(name) if isinstance(name, str) else None
        if hook is None or not callable(hook):
            logger.warning(
                f"Relay requested unknown message hook {name!r}; "
                f"keeping {self.message_hook.name!r}"
            )
            return

        self.message_hook.swap(hook, name=name)
        logger.info(f"Message hook set to {name!r}")

    async def _update(self, payload: Any) -> None:
        logger.debug(f"Relay requested status update: {payload!r}")
        user = self._host.user()
        if user is None:
            return
        await self._session.send(Envelope(name=OutboundName.LOGIN.value, payload=to_plain(user)))
