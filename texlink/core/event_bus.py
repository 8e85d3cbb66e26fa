from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from threading import RLock
from typing import Callable, ClassVar, Dict, List, Tuple, Type


EventHandler = Callable[["DomainEvent"], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    EVENT_NAME: ClassVar[str] = "DOMAIN_EVENT"

    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    occurred_at: datetime = field(default_factory=_utc_now)
    order_id: str
    display_id: str = ""

    def __post_init__(self) -> None:
        normalized_event_id = str(self.event_id or "").strip() or uuid.uuid4().hex
        normalized_occurred_at = self.occurred_at if isinstance(self.occurred_at, datetime) else _utc_now()
        if normalized_occurred_at.tzinfo is None:
            normalized_occurred_at = normalized_occurred_at.replace(tzinfo=timezone.utc)
        normalized_occurred_at = normalized_occurred_at.astimezone(timezone.utc)

        object.__setattr__(self, "event_id", normalized_event_id)
        object.__setattr__(self, "occurred_at", normalized_occurred_at)

    def to_payload(self) -> Dict[str, object]:
        return serialize_event_payload(self)


@dataclass(frozen=True, kw_only=True)
class OrderCreated(DomainEvent):
    EVENT_NAME: ClassVar[str] = "ORDER_CREATED"

    brand_id: str
    supplier_id: str | None = None
    product_name: str = ""
    quantity: int = 0
    total_value: Decimal = Decimal("0")
    delivery_deadline: str = ""
    target_supplier_ids: Tuple[str, ...] = ()
    origin: str = "ORIGINAL"
    parent_order_id: str | None = None


@dataclass(frozen=True, kw_only=True)
class OrderAccepted(DomainEvent):
    EVENT_NAME: ClassVar[str] = "ORDER_ACCEPTED"

    brand_id: str
    supplier_id: str
    accepted_by_id: str


@dataclass(frozen=True, kw_only=True)
class OrderRejected(DomainEvent):
    EVENT_NAME: ClassVar[str] = "ORDER_REJECTED"

    brand_id: str
    supplier_id: str
    rejected_by_id: str
    reason: str = ""


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    EVENT_NAME: ClassVar[str] = "ORDER_STATUS_CHANGED"

    brand_id: str
    supplier_id: str | None = None
    previous_status: str | None = None
    new_status: str
    changed_by_id: str
    changed_by_name: str = ""


@dataclass(frozen=True, kw_only=True)
class OrderFinalized(DomainEvent):
    EVENT_NAME: ClassVar[str] = "ORDER_FINALIZED"

    brand_id: str
    supplier_id: str | None = None


def serialize_event_payload(event: DomainEvent) -> Dict[str, object]:
    raw = asdict(event)
    payload: Dict[str, object] = {"event_name": type(event).EVENT_NAME}
    for key, value in raw.items():
        if isinstance(value, datetime):
            resolved = value
            if resolved.tzinfo is None:
                resolved = resolved.replace(tzinfo=timezone.utc)
            payload[key] = resolved.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
        elif isinstance(value, Decimal):
            payload[key] = str(value)
        elif isinstance(value, tuple):
            payload[key] = list(value)
        else:
            payload[key] = value

    json.loads(json.dumps(payload, default=str))
    return payload


class EventBus:
    def __init__(self) -> None:
        self._lock = RLock()
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._logger = logging.getLogger("texlink.events")

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            handlers = self._handlers.setdefault(event_type, [])
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            handlers = list(self._handlers.get(type(event), []))
        self._logger.debug(
            "domain_event_published",
            extra={"event_type": type(event).EVENT_NAME, "order_id": event.order_id, "handlers": len(handlers)},
        )
        for handler in handlers:
            try:
                handler(event)
            except Exception:  # noqa: BLE001
                self._logger.exception(
                    "event_handler_failed",
                    extra={"event_type": type(event).EVENT_NAME, "event_id": event.event_id},
                )

    def publish_all(self, events: List[DomainEvent]) -> None:
        for event in events:
            self.publish(event)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()
