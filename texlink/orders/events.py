from __future__ import annotations

from typing import List

from texlink.core.event_bus import (
    DomainEvent,
    OrderAccepted,
    OrderCreated,
    OrderFinalized,
    OrderRejected,
    OrderStatusChanged,
)
from texlink.domain.models import Actor, Order
from texlink.orders import statuses as st


def order_created(order: Order) -> OrderCreated:
    return OrderCreated(
        order_id=order.id,
        display_id=order.display_id,
        brand_id=order.brand_id,
        supplier_id=order.supplier_id,
        product_name=order.product_name,
        quantity=order.quantity,
        total_value=order.total_value,
        delivery_deadline=order.delivery_deadline.isoformat(),
        target_supplier_ids=tuple(target.supplier_id for target in order.target_suppliers),
        origin=order.origin,
        parent_order_id=order.parent_order_id,
    )


def status_changed(order: Order, actor: Actor, previous_status: str | None) -> List[DomainEvent]:
    events: List[DomainEvent] = [
        OrderStatusChanged(
            order_id=order.id,
            display_id=order.display_id,
            brand_id=order.brand_id,
            supplier_id=order.supplier_id,
            previous_status=previous_status,
            new_status=order.status,
            changed_by_id=actor.user_id,
            changed_by_name=actor.user_name,
        )
    ]
    if order.status == st.FINALIZADO:
        events.append(OrderFinalized(order_id=order.id, display_id=order.display_id, brand_id=order.brand_id, supplier_id=order.supplier_id))
    return events


def order_accepted(order: Order, actor: Actor) -> OrderAccepted:
    return OrderAccepted(
        order_id=order.id,
        display_id=order.display_id,
        brand_id=order.brand_id,
        supplier_id=actor.company_id,
        accepted_by_id=actor.user_id,
    )


def order_rejected(order: Order, actor: Actor, reason: str | None) -> OrderRejected:
    return OrderRejected(
        order_id=order.id,
        display_id=order.display_id,
        brand_id=order.brand_id,
        supplier_id=actor.company_id,
        rejected_by_id=actor.user_id,
        reason=reason or "",
    )
