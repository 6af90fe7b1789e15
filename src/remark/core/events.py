"""Event bus for feed and screen notifications.

The feed engine publishes cache-version, window and subscription events;
a hosting screen (or the CLI) subscribes to redraw or retry. Hooks may be
plain functions or coroutine functions.

Usage::

    from remark.core.events import EventBus, Event, FEED_VERSION_CHANGED

    bus = EventBus()
    bus.on(FEED_VERSION_CHANGED, lambda e: redraw(e.payload["version"]))
    bus.emit_sync(Event(name=FEED_VERSION_CHANGED, payload={"version": 3}, source="feed"))
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

# Event names
FEED_VERSION_CHANGED = "feed.version.changed"  # payload: version
WINDOW_CHANGED = "feed.window.changed"  # payload: start, end
SUBSCRIPTION_FAILED = "feed.subscription.failed"  # payload: error, window
VIEW_MODE_CHANGED = "view.mode.changed"  # payload: from, to, direction
SCREEN_MOUNTED = "screen.mounted"  # payload: mode
SCREEN_UNMOUNTED = "screen.unmounted"

Hook = Callable[[Any], None | Awaitable[None]]


@dataclass(frozen=True)
class Event:
    """One immutable notification."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time)
    source: str = ""


class EventBus:
    """In-process pub/sub. A failing hook is logged and never stops the others."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[Hook]] = defaultdict(list)
        self._wildcard: list[Hook] = []
        self._pending: set[asyncio.Task] = set()

    def on(self, event_name: str, hook: Hook) -> None:
        self._hooks[event_name].append(hook)

    def on_all(self, hook: Hook) -> None:
        """Register *hook* for every event."""
        self._wildcard.append(hook)

    def off(self, event_name: str, hook: Hook) -> None:
        hooks = self._hooks.get(event_name, [])
        if hook in hooks:
            hooks.remove(hook)

    def listener_count(self, event_name: str) -> int:
        return len(self._hooks.get(event_name, [])) + len(self._wildcard)

    def _matching(self, event: Event) -> list[Hook]:
        return [*self._hooks.get(event.name, []), *self._wildcard]

    async def emit(self, event: Event) -> None:
        """Run every matching hook, awaiting coroutine hooks in order."""
        for hook in self._matching(event):
            try:
                result = hook(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.warning(f"Hook {getattr(hook, '__name__', hook)!r} failed on {event.name}: {exc}")

    def emit_sync(self, event: Event) -> None:
        """Emit from synchronous code.

        Coroutine hooks are scheduled as tasks on the running loop, or
        skipped when there is none.
        """
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for hook in self._matching(event):
            if inspect.iscoroutinefunction(hook):
                if loop is None:
                    logger.debug(f"No running loop; skipping async hook for {event.name}")
                    continue
                task = loop.create_task(self._run_async(hook, event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                continue
            try:
                hook(event)
            except Exception as exc:
                logger.warning(f"Hook {getattr(hook, '__name__', hook)!r} failed on {event.name}: {exc}")

    async def _run_async(self, hook: Hook, event: Event) -> None:
        try:
            await hook(event)
        except Exception as exc:
            logger.warning(f"Async hook {getattr(hook, '__name__', hook)!r} failed on {event.name}: {exc}")
