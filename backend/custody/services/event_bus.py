"""Event Bus — in-process fan-out of lifecycle events to async listeners.

Invariants:
    - publish() never blocks on a listener and never raises because of one
    - Every listener registered for type(event) is attempted exactly once per publish
    - A listener failure is logged and dropped: no retry, no rollback of the transition
    - In-flight listener tasks are tracked so drain() can await them

Design Decisions:
    - Listener registry built once at startup (bootstrap.build_container) and passed
      explicitly — no import-time registration, no auto-discovery
    - One task per listener: a slow sender for the head never delays the requester's
    - Registry keyed by exact event class, no subclass matching
"""

import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable

from custody.core.errors import CustodyError
from custody.core.events import LifecycleEvent

logger = logging.getLogger(__name__)

Listener = Callable[[LifecycleEvent], Awaitable[None]]


class EventBus:
    """Explicit publish/subscribe registry for lifecycle events."""

    def __init__(self) -> None:
        self._listeners: defaultdict[type, list[Listener]] = defaultdict(list)
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, event_type: type, listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    def publish(self, event: LifecycleEvent) -> None:
        """Schedule every listener for the event and return immediately."""
        event_type = type(event)
        for listener in list(self._listeners.get(event_type, [])):
            task = asyncio.get_running_loop().create_task(
                self._run_listener(listener, event),
            )
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        logger.debug(
            f"Published {event_type.__name__}",
            extra={"event_type": event_type.__name__},
        )

    async def drain(self) -> None:
        """Wait until all in-flight listener tasks have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _run_listener(self, listener: Listener, event: LifecycleEvent) -> None:
        name = getattr(listener, "__name__", type(listener).__name__)
        try:
            await listener(event)
        except Exception as e:
            error_code = e.code if isinstance(e, CustodyError) else "LISTENER_FAILED"
            logger.warning(
                f"Listener {name} failed on {type(event).__name__}: {e}",
                exc_info=True,
                extra={
                    "error_code": error_code,
                    "event_type": type(event).__name__,
                },
            )
