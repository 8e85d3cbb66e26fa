from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Tuple


@dataclass(frozen=True)
class OrderCreateInput:
    assignment_type: str
    product_type: str
    product_name: str
    quantity: int
    price_per_unit: Decimal
    delivery_deadline: datetime
    supplier_id: str | None = None
    target_supplier_ids: Tuple[str, ...] = ()
    product_category: str | None = None
    op: str | None = None
    artigo: str | None = None
    description: str | None = None
    observations: str | None = None
    materials_provided: bool = False
    payment_terms: str | None = None


@dataclass(frozen=True)
class StatusUpdateInput:
    status: str
    notes: str | None = None
    rejection_reason: str | None = None


@dataclass(frozen=True)
class RejectedItemInput:
    reason: str
    quantity: int
    defect_description: str | None = None
    requires_rework: bool = True


@dataclass(frozen=True)
class SecondQualityItemInput:
    quantity: int
    defect_type: str
    defect_description: str | None = None
    discount_percentage: Decimal | None = None


@dataclass(frozen=True)
class ReviewInput:
    review_type: str
    total_quantity: int
    approved_quantity: int
    rejected_quantity: int
    second_quality_quantity: int
    notes: str | None = None
    rejected_items: List[RejectedItemInput] = field(default_factory=list)
    second_quality_items: List[SecondQualityItemInput] = field(default_factory=list)


@dataclass(frozen=True)
class ChildOrderInput:
    quantity: int | None = None
    description: str | None = None
    observations: str | None = None
    delivery_deadline: datetime | None = None
