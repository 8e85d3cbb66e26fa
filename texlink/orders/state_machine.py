from __future__ import annotations

from typing import Dict, List

from texlink.core.event_bus import DomainEvent
from texlink.domain.contracts import StatusUpdateInput
from texlink.domain.models import TARGET_ACCEPTED, TARGET_PENDING, TARGET_REJECTED, Actor, Order, utc_now
from texlink.errors import InvalidTransitionError, ValidationError
from texlink.orders import events as order_events
from texlink.orders import statuses as st
from texlink.orders.ids import Clock, new_id
from texlink.orders.transitions import (
    OP_ACCEPT,
    OP_REJECT,
    OP_REVIEW,
    OP_REWORK,
    Transition,
    available_transitions,
    resolve_transition,
)
from texlink.ui_strings import history_note


class OrderStateMachine:
    """Applies table-driven transitions to an in-memory order aggregate.

    Every method validates first and mutates second, returning the domain
    events to publish once the caller has persisted the order.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self.clock = clock

    def available_transitions(self, order: Order, actor: Actor) -> Dict[str, object]:
        return available_transitions(order, actor)

    def update_status(self, order: Order, actor: Actor, status_input: StatusUpdateInput) -> List[DomainEvent]:
        target = str(status_input.status or "").strip().upper()
        transition = resolve_transition(order, actor, target)
        if transition.operation == OP_ACCEPT:
            return self.accept(order, actor)
        if transition.operation == OP_REJECT:
            return self.reject(order, actor, status_input.rejection_reason or status_input.notes)
        if transition.operation == OP_REVIEW:
            raise ValidationError(code="review_required", message_key="review_required")
        if transition.operation == OP_REWORK:
            raise ValidationError(code="rework_required", message_key="rework_required")

        if status_input.rejection_reason:
            order.rejection_reason = status_input.rejection_reason
        return self._apply(order, actor, transition, status_input.notes)

    def advance(self, order: Order, actor: Actor, target: str, *, operation: str, notes: str | None = None) -> List[DomainEvent]:
        transition = self.check(order, actor, target, operation=operation)
        return self._apply(order, actor, transition, notes)

    def check(self, order: Order, actor: Actor, target: str, *, operation: str) -> Transition:
        transition = resolve_transition(order, actor, target)
        if transition.operation != operation:
            raise InvalidTransitionError(
                details=f"{order.status} -> {target} nao e uma etapa de {operation}",
                payload={"current_status": order.status, "target_status": target},
            )
        return transition

    def accept(self, order: Order, actor: Actor) -> List[DomainEvent]:
        transition = self.check(order, actor, st.ACEITO_PELA_FACCAO, operation=OP_ACCEPT)
        now = self.clock()
        order.supplier_id = actor.company_id
        order.accepted_at = now
        order.accepted_by_id = actor.user_id
        for target in order.target_suppliers:
            if target.supplier_id == actor.company_id:
                target.respond(TARGET_ACCEPTED, at=now)
            elif target.status == TARGET_PENDING:
                target.respond(TARGET_REJECTED, at=now)

        events: List[DomainEvent] = [order_events.order_accepted(order, actor)]
        events.extend(self._apply(order, actor, transition, history_note("order_accepted")))
        return events

    def reject(self, order: Order, actor: Actor, reason: str | None = None) -> List[DomainEvent]:
        transition = self.check(order, actor, st.DISPONIVEL_PARA_OUTRAS, operation=OP_REJECT)
        now = self.clock()
        reason = str(reason or "").strip() or None

        target = order.target_for(actor.company_id)
        if target is not None and target.status == TARGET_PENDING:
            target.respond(TARGET_REJECTED, reason=reason, at=now)

        if order.supplier_id == actor.company_id:
            order.supplier_id = None
            order.rejection_reason = reason
            reopen = True
        else:
            reopen = not order.supplier_id and not order.pending_targets()

        events: List[DomainEvent] = [order_events.order_rejected(order, actor, reason)]
        if reopen:
            events.extend(self._apply(order, actor, transition, reason or history_note("order_rejected")))
        else:
            order.updated_at = now
        return events

    def _apply(self, order: Order, actor: Actor, transition: Transition, notes: str | None) -> List[DomainEvent]:
        now = self.clock()
        previous = order.status
        order.status = transition.target
        order.updated_at = now
        order.append_history(
            entry_id=new_id(),
            previous_status=previous,
            new_status=transition.target,
            actor_id=actor.user_id,
            actor_name=actor.user_name,
            notes=notes,
            at=now,
        )
        if previous == transition.target:
            return []
        return order_events.status_changed(order, actor, previous)
