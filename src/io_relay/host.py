"""Host collaborator interface.

The host is the embedding application whose lifecycle events are
mirrored to the relay and which receives remote commands. It is injected
into the client, so tests can substitute a double built on
``EventEmitter``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# Handlers may be plain functions or coroutine functions
EventHandler = Callable[[Any], Awaitable[None] | None]


class Contact(BaseModel):
    """A contact (or the logged-in user) as reported by the host."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None

    @property
    def obj(self) -> dict[str, Any]:
        """Plain-data representation sent over the wire."""
        return self.model_dump(exclude_none=True)


def to_plain(value: Any) -> Any:
    """Project a contact-like value onto its plain-data representation.

    Objects exposing an ``obj`` attribute (such as ``Contact``) yield it,
    other pydantic models are dumped, and anything else is returned
    unchanged.
    """
    obj = getattr(value, "obj", None)
    if obj is not None and not callable(obj):
        return obj
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


@runtime_checkable
class Host(Protocol):
    """What the relay needs from the embedding application."""

    def version(self) -> str:
        """Version string announced in the greeting frame."""
        ...

    def user(self) -> Any | None:
        """Currently logged-in user, or None."""
        ...

    async def reset(self) -> None:
        """Reset the host's internal state."""
        ...

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to a named event. Returns an unsubscribe function."""
        ...

    async def emit(self, event: str, payload: Any = None) -> None:
        """Emit a named event to all subscribers."""
        ...


class EventEmitter:
    """Minimal named-event pub/sub for hosts.

    Subscribers run in subscription order. A failing subscriber is logged
    and does not prevent the others from running.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[EventHandler]] = {}

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to an event.

        Args:
            event: Event name (e.g., "login")
            handler: Called with the event payload

        Returns:
            Unsubscribe function
        """
        self._subscriptions.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._subscriptions.get(event)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def emit(self, event: str, payload: Any = None) -> None:
        """Deliver ``payload`` to every subscriber of ``event``."""
        # Copy to avoid mutation during iteration
        for handler in list(self._subscriptions.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Error in subscriber for {event}")

    def listener_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, []))
