"""Event bridge: mirrors selected host events to the relay."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from functools import partial
from types import MappingProxyType
from typing import Any

from .hooks import MessageHookSlot
from .host import Host, to_plain
from .protocol import Envelope, OutboundName
from .session import Session

logger = logging.getLogger(__name__)

MESSAGE_EVENT = "message"

Projection = Callable[[Any], Any]


def _passthrough(payload: Any) -> Any:
    return payload


# Host event name -> payload projection. login/logout carry a contact whose
# plain-data form is what goes on the wire.
HOOK_EVENTS: Mapping[str, Projection] = MappingProxyType(
    {
        OutboundName.SCAN.value: _passthrough,
        OutboundName.LOGIN.value: to_plain,
        OutboundName.LOGOUT.value: to_plain,
        OutboundName.ERROR.value: _passthrough,
        OutboundName.HEARTBEAT.value: _passthrough,
    }
)


class EventBridge:
    """Subscribes to host events and forwards them through the session.

    Forwarding is best effort: events fired while the session is not
    connected are dropped, never buffered.
    """

    def __init__(self, host: Host, session: Session, message_hook: MessageHookSlot) -> None:
        self._host = host
        self._session = session
        self._message_hook = message_hook
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def attached(self) -> bool:
        return bool(self._unsubscribers)

    def attach(self) -> None:
        """Subscribe to the message event and every hooked event."""
        if self._unsubscribers:
            logger.warning("EventBridge already attached")
            return

        self._unsubscribers.append(self._host.on(MESSAGE_EVENT, self._on_message))
        for event in HOOK_EVENTS:
            self._unsubscribers.append(self._host.on(event, partial(self._forward, event)))
        logger.debug(f"EventBridge attached to {MESSAGE_EVENT} and {list(HOOK_EVENTS)}")

    def detach(self) -> None:
        """Remove every subscription made by ``attach``."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    async def _on_message(self, message: Any) -> None:
        try:
            await self._message_hook.invoke(message)
        except Exception:
            logger.exception(f"Message hook {self._message_hook.name!r} failed")

    async def _forward(self, event: str, payload: Any) -> None:
        if not self._session.is_connected:
            logger.debug(f"Dropping {event} event: relay not connected")
            return

        envelope = Envelope(name=event, payload=HOOK_EVENTS[event](payload))
        await self._session.send(envelope)
