from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, List, NamedTuple

from texlink.core.event_bus import DomainEvent
from texlink.domain.contracts import ReviewInput, SecondQualityItemInput
from texlink.domain.models import (
    RESULT_APPROVED,
    RESULT_PARTIAL,
    RESULT_REJECTED,
    REVIEW_TYPES,
    Actor,
    Order,
    OrderReview,
    RejectedItem,
    SecondQualityItem,
)
from texlink.errors import ValidationError
from texlink.orders.ids import new_id
from texlink.orders.state_machine import OrderStateMachine
from texlink.orders.statuses import REVIEW_RESULT_STATUS
from texlink.orders.transitions import OP_REVIEW
from texlink.ui_strings import history_note


class ReviewOutcome(NamedTuple):
    review: OrderReview
    second_quality_items: List[SecondQualityItem]
    events: List[DomainEvent]


def classify_review(approved: int, rejected: int, second_quality: int) -> str:
    if rejected == 0 and second_quality == 0:
        return RESULT_APPROVED
    if approved == 0:
        return RESULT_REJECTED
    return RESULT_PARTIAL


def _invalid(code: str, details: str) -> ValidationError:
    return ValidationError(code=code, message_key=code, details=details)


def _count(value, field_name: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise _invalid("validation_error", f"{field_name}={value!r}")
    return value


def _discount(value) -> Decimal | None:
    if value is None:
        return None
    try:
        discount = Decimal(str(value))
    except InvalidOperation:
        raise _invalid("discount_invalid", f"discount_percentage={value!r}") from None
    if not discount.is_finite() or discount < 0 or discount > 100:
        raise _invalid("discount_invalid", f"discount_percentage={value!r}")
    return discount


def validate_second_quality_items(items: Iterable[SecondQualityItemInput]) -> None:
    for item in items:
        _count(item.quantity, "second_quality_items.quantity", 1)
        if not str(item.defect_type or "").strip():
            raise _invalid("validation_error", "second_quality_items.defect_type obrigatorio")
        _discount(item.discount_percentage)


def validate_review_input(review_input: ReviewInput) -> None:
    if review_input.review_type not in REVIEW_TYPES:
        raise _invalid("review_type_invalid", f"review_type={review_input.review_type!r}")
    total = _count(review_input.total_quantity, "total_quantity", 1)
    approved = _count(review_input.approved_quantity, "approved_quantity", 0)
    rejected = _count(review_input.rejected_quantity, "rejected_quantity", 0)
    second_quality = _count(review_input.second_quality_quantity, "second_quality_quantity", 0)
    if approved + rejected + second_quality != total:
        raise _invalid(
            "review_quantities_mismatch",
            f"{approved} + {rejected} + {second_quality} != {total}",
        )
    for item in review_input.rejected_items:
        _count(item.quantity, "rejected_items.quantity", 1)
        if not str(item.reason or "").strip():
            raise _invalid("validation_error", "rejected_items.reason obrigatorio")
    validate_second_quality_items(review_input.second_quality_items)


class ReviewEngine:
    def __init__(self, state_machine: OrderStateMachine | None = None) -> None:
        self.state_machine = state_machine or OrderStateMachine()

    def create_review(self, order: Order, actor: Actor, review_input: ReviewInput) -> ReviewOutcome:
        validate_review_input(review_input)
        result = classify_review(
            review_input.approved_quantity,
            review_input.rejected_quantity,
            review_input.second_quality_quantity,
        )
        target_status = REVIEW_RESULT_STATUS[result]
        self.state_machine.check(order, actor, target_status, operation=OP_REVIEW)

        now = self.state_machine.clock()
        review = OrderReview(
            id=new_id(),
            order_id=order.id,
            review_type=review_input.review_type,
            result=result,
            total_quantity=review_input.total_quantity,
            approved_quantity=review_input.approved_quantity,
            rejected_quantity=review_input.rejected_quantity,
            second_quality_quantity=review_input.second_quality_quantity,
            reviewed_by_id=actor.user_id,
            notes=review_input.notes,
            created_at=now,
            rejected_items=[
                RejectedItem(
                    id=new_id(),
                    reason=item.reason,
                    quantity=item.quantity,
                    defect_description=item.defect_description,
                    requires_rework=bool(item.requires_rework),
                )
                for item in review_input.rejected_items
            ],
        )
        second_quality_items = self._build_second_quality_items(order, review_input.second_quality_items, review_id=review.id)

        order.total_review_count += 1
        if review.approved_quantity > 0:
            order.approval_count += 1
        if review.rejected_quantity > 0:
            order.rejection_count += 1
        order.second_quality_count += review.second_quality_quantity

        events = self.state_machine.advance(
            order,
            actor,
            target_status,
            operation=OP_REVIEW,
            notes=review_input.notes or history_note("review_done", result=result),
        )
        return ReviewOutcome(review, second_quality_items, events)

    def add_second_quality_items(
        self,
        order: Order,
        actor: Actor,
        items: List[SecondQualityItemInput],
    ) -> List[SecondQualityItem]:
        if not items:
            raise _invalid("items_required", "items vazio")
        validate_second_quality_items(items)
        created = self._build_second_quality_items(order, items, review_id=None)
        order.second_quality_count += sum(item.quantity for item in created)
        order.updated_at = self.state_machine.clock()
        return created

    def _build_second_quality_items(
        self,
        order: Order,
        items: Iterable[SecondQualityItemInput],
        *,
        review_id: str | None,
    ) -> List[SecondQualityItem]:
        now = self.state_machine.clock()
        return [
            SecondQualityItem(
                id=new_id(),
                order_id=order.id,
                review_id=review_id,
                quantity=item.quantity,
                defect_type=str(item.defect_type).strip(),
                defect_description=item.defect_description,
                original_unit_value=order.price_per_unit,
                discount_percentage=_discount(item.discount_percentage),
                created_at=now,
            )
            for item in items
        ]
