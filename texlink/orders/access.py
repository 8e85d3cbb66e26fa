from __future__ import annotations

from typing import Iterable, List, NamedTuple

from texlink.domain.models import BRAND, HYBRID, SUPPLIER, TARGET_PENDING, Actor, CompanyMembership, Order
from texlink.errors import PermissionError
from texlink.orders import statuses as st


class OrderAccess(NamedTuple):
    actor: Actor
    membership: CompanyMembership


def _active(memberships: Iterable[CompanyMembership]) -> List[CompanyMembership]:
    return [membership for membership in memberships if membership.is_active]


def _actor(membership: CompanyMembership) -> Actor:
    return Actor(
        user_id=membership.user_id,
        user_name=membership.user_name,
        company_id=membership.company_id,
        party=membership.company_type,
    )


def is_open_to_market(order: Order) -> bool:
    if order.status == st.DISPONIVEL_PARA_OUTRAS:
        return True
    return order.status == st.LANCADO_PELA_MARCA and order.assignment_type == HYBRID and not order.supplier_id


def resolve_brand_access(memberships: Iterable[CompanyMembership]) -> OrderAccess:
    for membership in _active(memberships):
        if membership.company_type == BRAND:
            return OrderAccess(_actor(membership), membership)
    raise PermissionError(code="brand_membership_required", message_key="brand_membership_required")


def resolve_order_access(order: Order, memberships: Iterable[CompanyMembership]) -> OrderAccess:
    """Resolve which side of the order the user acts for.

    Brand membership wins, then the assigned supplier, then an invited
    target (only while the order is unassigned or the invite is still
    pending), then any supplier membership when the order is open to the
    market.
    """
    active = _active(memberships)
    by_company = {membership.company_id: membership for membership in active}

    membership = by_company.get(order.brand_id)
    if membership is not None and membership.company_type == BRAND:
        return OrderAccess(_actor(membership), membership)

    if order.supplier_id:
        membership = by_company.get(order.supplier_id)
        if membership is not None and membership.company_type == SUPPLIER:
            return OrderAccess(_actor(membership), membership)

    for target in order.target_suppliers:
        if order.supplier_id and target.status != TARGET_PENDING:
            continue
        membership = by_company.get(target.supplier_id)
        if membership is not None and membership.company_type == SUPPLIER:
            return OrderAccess(_actor(membership), membership)

    if is_open_to_market(order):
        for membership in active:
            if membership.company_type == SUPPLIER:
                return OrderAccess(_actor(membership), membership)

    raise PermissionError(code="order_not_accessible", message_key="order_not_accessible")
