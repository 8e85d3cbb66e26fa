from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List

from texlink.domain.contracts import OrderCreateInput
from texlink.domain.models import (
    ASSIGNMENT_TYPES,
    BIDDING,
    BRAND,
    DIRECT,
    Actor,
    Order,
    TargetSupplier,
    utc_now,
)
from texlink.errors import PermissionError, ValidationError
from texlink.orders import statuses as st
from texlink.orders.display_ids import DisplayIdGenerator, make_generator
from texlink.orders.ids import Clock, as_utc, new_id
from texlink.orders.pricing import DEFAULT_PLATFORM_FEE_RATE, split_order_value
from texlink.ui_strings import history_note


def _invalid(code: str, details: str) -> ValidationError:
    return ValidationError(code=code, message_key=code, details=details)


def _unique_ids(values) -> List[str]:
    seen: List[str] = []
    for value in values or ():
        normalized = str(value or "").strip()
        if normalized and normalized not in seen:
            seen.append(normalized)
    return seen


class OrderFactory:
    def __init__(
        self,
        *,
        fee_rate: Decimal = DEFAULT_PLATFORM_FEE_RATE,
        display_id_generator: DisplayIdGenerator | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.fee_rate = Decimal(str(fee_rate))
        self.display_id_generator = display_id_generator or make_generator()
        self.clock = clock

    def create(self, actor: Actor, create_input: OrderCreateInput) -> Order:
        if actor.party != BRAND:
            raise PermissionError(code="brand_membership_required", message_key="brand_membership_required")

        assignment_type = str(create_input.assignment_type or "").strip().upper()
        if assignment_type not in ASSIGNMENT_TYPES:
            raise _invalid("assignment_type_invalid", f"assignment_type={create_input.assignment_type!r}")

        supplier_id = str(create_input.supplier_id or "").strip() or None
        target_ids = _unique_ids(create_input.target_supplier_ids)
        if assignment_type == DIRECT and not supplier_id:
            raise _invalid("supplier_required", "DIRECT exige supplier_id")
        if assignment_type == BIDDING and not target_ids:
            raise _invalid("target_suppliers_required", "BIDDING exige target_supplier_ids")

        product_type = str(create_input.product_type or "").strip()
        product_name = str(create_input.product_name or "").strip()
        if not product_type or not product_name:
            raise _invalid("product_required", "product_type e product_name sao obrigatorios")

        quantity = create_input.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise _invalid("quantity_invalid", f"quantity={quantity!r}")

        try:
            price_per_unit = Decimal(str(create_input.price_per_unit))
        except InvalidOperation:
            raise _invalid("price_invalid", f"price_per_unit={create_input.price_per_unit!r}") from None
        if not price_per_unit.is_finite() or price_per_unit <= 0:
            raise _invalid("price_invalid", f"price_per_unit={create_input.price_per_unit!r}")

        if not isinstance(create_input.delivery_deadline, datetime):
            raise _invalid("validation_error", "delivery_deadline obrigatorio")

        split = split_order_value(quantity, price_per_unit, self.fee_rate)
        now = self.clock()
        order = Order(
            id=new_id(),
            display_id=self.display_id_generator(),
            brand_id=actor.company_id,
            supplier_id=supplier_id,
            assignment_type=assignment_type,
            status=st.LANCADO_PELA_MARCA,
            product_type=product_type,
            product_category=create_input.product_category,
            product_name=product_name,
            op=create_input.op,
            artigo=create_input.artigo,
            description=create_input.description,
            observations=create_input.observations,
            quantity=quantity,
            price_per_unit=price_per_unit,
            total_value=split.total_value,
            platform_fee=split.platform_fee,
            net_value=split.net_value,
            materials_provided=bool(create_input.materials_provided),
            delivery_deadline=as_utc(create_input.delivery_deadline),
            payment_terms=create_input.payment_terms,
            created_by_id=actor.user_id,
            created_at=now,
            updated_at=now,
        )
        if assignment_type != DIRECT:
            order.target_suppliers = [
                TargetSupplier(id=new_id(), order_id=order.id, supplier_id=target_id, created_at=now)
                for target_id in target_ids
            ]
        order.append_history(
            entry_id=new_id(),
            previous_status=None,
            new_status=st.LANCADO_PELA_MARCA,
            actor_id=actor.user_id,
            actor_name=actor.user_name,
            notes=history_note("order_created"),
            at=now,
        )
        return order
