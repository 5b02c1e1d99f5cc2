"""
Juice Bar POS — Domain events

Events are published only after the transaction that produced them has
committed. Handlers run sequentially; a failing handler is logged and
reported in the result, it never reaches the publisher's caller and never
touches the committed data.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class SaleLineSnapshot:
    product_id: str
    product_name: str
    qty: int
    unit_price: float


@dataclass(frozen=True)
class SaleCommitted:
    event_type = "sale.committed"

    sale_id: int
    total: float
    payment_mode: str
    customer_phone: str | None
    created_at: datetime
    lines: tuple[SaleLineSnapshot, ...] = field(default_factory=tuple)


@dataclass
class HandlerFailure:
    handler: str
    error: str
    error_type: str


class EventBus:
    def __init__(self):
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Handler) -> None:
        if handler in self._subscribers[event_type]:
            raise ValueError(f"Handler already registered for '{event_type}'.")
        self._subscribers[event_type].append(handler)

    def subscribers(self, event_type: str) -> list[Handler]:
        return list(self._subscribers.get(event_type, ()))

    async def publish(self, event) -> dict[str, Any]:
        """Returns each handler's result (or a HandlerFailure) keyed by handler name."""
        results: dict[str, Any] = {}
        for handler in self.subscribers(event.event_type):
            name = getattr(handler, "__qualname__", None) or type(handler).__name__
            try:
                results[name] = await handler(event)
            except Exception as exc:
                logger.error(
                    "Subscriber %s failed for %s: %s", name, event.event_type, exc, exc_info=True
                )
                results[name] = HandlerFailure(handler=name, error=str(exc), error_type=type(exc).__name__)
        return results
