from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import List, NamedTuple

from texlink.core.event_bus import DomainEvent
from texlink.domain.contracts import ChildOrderInput
from texlink.domain.models import BRAND, ORIGIN_REWORK, Actor, Order, OrderReview
from texlink.errors import InvalidTransitionError, PermissionError, ValidationError
from texlink.orders import events as order_events
from texlink.orders import statuses as st
from texlink.orders.display_ids import child_display_id
from texlink.orders.ids import as_utc, new_id
from texlink.orders.state_machine import OrderStateMachine
from texlink.orders.transitions import OP_REWORK
from texlink.ui_strings import history_note


REWORK_PAYMENT_TERMS = "Sem custo adicional - Retrabalho"
ZERO = Decimal("0.00")


class ReworkOutcome(NamedTuple):
    child: Order
    events: List[DomainEvent]


def next_revision_number(parent: Order) -> int:
    highest_child = max((child.revision_number for child in parent.child_orders), default=0)
    return max(parent.revision_number, highest_child) + 1


def default_rework_quantity(parent: Order, latest_review: OrderReview | None) -> int:
    if latest_review is not None and latest_review.rejected_quantity > 0:
        return latest_review.rejected_quantity
    return parent.quantity


class ReworkFactory:
    def __init__(self, state_machine: OrderStateMachine | None = None, *, default_deadline_days: int = 14) -> None:
        self.state_machine = state_machine or OrderStateMachine()
        self.default_deadline_days = int(default_deadline_days)

    def create_child(
        self,
        parent: Order,
        actor: Actor,
        child_input: ChildOrderInput,
        *,
        latest_review: OrderReview | None = None,
    ) -> ReworkOutcome:
        if actor.party != BRAND or actor.company_id != parent.brand_id:
            raise PermissionError()
        if parent.status not in st.REWORKABLE_STATUSES:
            raise InvalidTransitionError(
                code="rework_not_allowed",
                message_key="rework_not_allowed",
                details=f"status={parent.status}",
                payload={"current_status": parent.status},
            )
        self.state_machine.check(parent, actor, st.AGUARDANDO_RETRABALHO, operation=OP_REWORK)

        quantity = child_input.quantity
        if quantity is None:
            quantity = default_rework_quantity(parent, latest_review)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError(code="quantity_invalid", message_key="quantity_invalid", details=f"quantity={quantity!r}")

        now = self.state_machine.clock()
        revision = next_revision_number(parent)
        deadline = child_input.delivery_deadline
        deadline = as_utc(deadline) if deadline is not None else now + timedelta(days=self.default_deadline_days)

        child = Order(
            id=new_id(),
            display_id=child_display_id(parent.display_id, revision),
            brand_id=parent.brand_id,
            supplier_id=parent.supplier_id,
            assignment_type=parent.assignment_type,
            status=st.AGUARDANDO_RETRABALHO,
            product_type=parent.product_type,
            product_category=parent.product_category,
            product_name=parent.product_name,
            op=parent.op,
            artigo=parent.artigo,
            description=child_input.description or f"Retrabalho do pedido {parent.display_id}",
            observations=child_input.observations,
            quantity=quantity,
            price_per_unit=ZERO,
            total_value=ZERO,
            platform_fee=ZERO,
            net_value=ZERO,
            materials_provided=parent.materials_provided,
            delivery_deadline=deadline,
            payment_terms=REWORK_PAYMENT_TERMS,
            parent_order_id=parent.id,
            revision_number=revision,
            origin=ORIGIN_REWORK,
            created_by_id=actor.user_id,
            created_at=now,
            updated_at=now,
        )
        child.append_history(
            entry_id=new_id(),
            previous_status=None,
            new_status=st.AGUARDANDO_RETRABALHO,
            actor_id=actor.user_id,
            actor_name=actor.user_name,
            notes=history_note("rework_created", parent=parent.display_id),
            at=now,
        )

        events: List[DomainEvent] = [order_events.order_created(child)]
        events.extend(
            self.state_machine.advance(
                parent,
                actor,
                st.AGUARDANDO_RETRABALHO,
                operation=OP_REWORK,
                notes=history_note("parent_rework", child=child.display_id),
            )
        )
        parent.child_orders.append(child.to_ref())
        return ReworkOutcome(child, events)
