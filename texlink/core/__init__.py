from texlink.core.event_bus import (
    DomainEvent,
    EventBus,
    OrderAccepted,
    OrderCreated,
    OrderFinalized,
    OrderRejected,
    OrderStatusChanged,
    serialize_event_payload,
)

__all__ = [
    "DomainEvent",
    "EventBus",
    "OrderCreated",
    "OrderAccepted",
    "OrderRejected",
    "OrderStatusChanged",
    "OrderFinalized",
    "serialize_event_payload",
]
