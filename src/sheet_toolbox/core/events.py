"""EventBus — per-pair progress and end-of-run notifications from operations."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

logger = logging.getLogger(__name__)

# Emitted once per processed base/mask pair: tool, current, total, message.
PROGRESS = "progress"
# Emitted after the sheet is rebuilt: tool, message, produced (derived state names).
COMPLETED = "completed"

# Callable[..., None]; kept loose so lambdas with **kw type-check.
EventHandler = Any


class EventBus:
    """Routes operation notifications to whoever is presenting the run.

    ``apply_masking`` reports each pair it has split and the names it
    added or replaced; the ``mask`` command listens to print a progress
    line per pair and the final list of produced states.  A handler that
    raises is logged and the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Call *handler* with the keyword payload of every *event*."""
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Stop calling *handler* for *event*; unknown handlers only warn."""
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            logger.warning("Handler %r was not subscribed to event %r", handler, event)

    def emit(self, event: str, **payload: Any) -> None:
        """Deliver *payload* to the handlers of *event*, in subscription order.

        Handlers subscribed while the event is being delivered only see
        the next one.
        """
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(**payload)
            except Exception:
                logger.exception("Error in handler %r for event %r", handler, event)
