"""Typed in-process publish/subscribe channel for collection events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Type, TypeVar

from app.core.logging import get_logger
from app.schemas.combined import DetailState

log = get_logger("events")

E = TypeVar("E")
Handler = Callable[[Any], None]


@dataclass(frozen=True)
class FavoriteStatusChanged:
    collection_id: str
    is_favorite: bool


@dataclass(frozen=True)
class CollectionsUpdated:
    total: int
    page: int
    has_more: bool


@dataclass(frozen=True)
class DetailStateChanged:
    collection_id: str
    state: DetailState


class EventBus:
    """Dispatches events to handlers registered for their exact type.

    Handlers run synchronously in subscription order. A failing handler is
    logged and does not prevent delivery to the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: Dict[type, List[Handler]] = {}

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: Any) -> int:
        """Deliver ``event``; returns the number of handlers that ran cleanly."""
        delivered = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
                delivered += 1
            except Exception as exc:  # noqa: BLE001
                log.exception(f"Event handler {getattr(handler, '__name__', handler)!r} failed for {event}: {exc}")
        return delivered

    def handler_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))
