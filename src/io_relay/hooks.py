"""Message hook slot and named hook strategies.

The relay may ask us to change how inbound host messages are handled
(the ``botie`` command). It can only pick one of the strategies
registered here by name; it never ships code to run.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

MessageHook = Callable[[Any], Awaitable[None] | None]


async def noop_hook(message: Any) -> None:
    """Default hook: ignore the message until the relay installs another."""
    logger.debug("Message hook is a no-op until replaced by the relay")


async def log_hook(message: Any) -> None:
    logger.info(f"Host message: {message!r}")


class MessageHookSlot:
    """Holds the single active message hook.

    Reads and swaps are plain attribute operations, so on one event loop a
    message is always handled by exactly one hook, old or new.
    """

    def __init__(self, default: MessageHook = noop_hook) -> None:
        self._hook: MessageHook = default
        self._name = getattr(default, "__name__", "default")

    @property
    def current(self) -> MessageHook:
        return self._hook

    @property
    def name(self) -> str:
        """Name of the installed strategy."""
        return self._name

    def swap(self, hook: MessageHook, name: str | None = None) -> MessageHook:
        """Install ``hook`` and return the one it replaced."""
        if not callable(hook):
            raise TypeError(f"Message hook must be callable, got {type(hook).__name__}")
        previous = self._hook
        self._hook = hook
        self._name = name or getattr(hook, "__name__", repr(hook))
        return previous

    async def invoke(self, message: Any) -> None:
        """Run the current hook on a host message."""
        result = self._hook(message)
        if inspect.isawaitable(result):
            await result


class HookStrategyRegistry:
    """Registry of message hook strategies selectable by name.

    Usage:
        registry = HookStrategyRegistry()

        @registry.strategy("echo")
        async def echo(message):
            ...
    """

    def __init__(self, include_builtins: bool = True) -> None:
        self._strategies: dict[str, MessageHook] = {}
        if include_builtins:
            self.register("noop", noop_hook)
            self.register("log", log_hook)

    def register(self, name: str, hook: MessageHook) -> None:
        """Register a strategy, replacing any previous one of that name."""
        if name in self._strategies:
            logger.warning(f"Replacing message hook strategy: {name}")
        self._strategies[name] = hook
        logger.debug(f"Registered message hook strategy: {name}")

    def strategy(self, name: str) -> Callable[[MessageHook], MessageHook]:
        """Decorator form of ``register``."""

        def decorator(hook: MessageHook) -> MessageHook:
            self.register(name, hook)
            return hook

        return decorator

    def unregister(self, name: str) -> bool:
        return self._strategies.pop(name, None) is not None

    def get(self, name: str) -> MessageHook | None:
        return self._strategies.get(name)

    def list_strategies(self) -> list[str]:
        return list(self._strategies.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._strategies
