from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from texlink.orders.pricing import supplier_unit_price
from texlink.ui_strings import status_description, status_label


BRAND = "BRAND"
SUPPLIER = "SUPPLIER"

DIRECT = "DIRECT"
BIDDING = "BIDDING"
HYBRID = "HYBRID"
ASSIGNMENT_TYPES = (DIRECT, BIDDING, HYBRID)

ORIGIN_ORIGINAL = "ORIGINAL"
ORIGIN_REWORK = "REWORK"

TARGET_PENDING = "PENDING"
TARGET_ACCEPTED = "ACCEPTED"
TARGET_REJECTED = "REJECTED"

REVIEW_QUALITY_CHECK = "QUALITY_CHECK"
REVIEW_FINAL = "FINAL_REVIEW"
REVIEW_TYPES = (REVIEW_QUALITY_CHECK, REVIEW_FINAL)

RESULT_APPROVED = "APPROVED"
RESULT_PARTIAL = "PARTIAL"
RESULT_REJECTED = "REJECTED"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class StatusHistoryEntry:
    id: str
    order_id: str
    previous_status: str | None
    new_status: str
    changed_by_id: str
    changed_by_name: str
    notes: str | None
    created_at: datetime
    position: int = 0
    persisted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "changed_by_id": self.changed_by_id,
            "changed_by_name": self.changed_by_name,
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }


@dataclass
class TargetSupplier:
    id: str
    order_id: str
    supplier_id: str
    status: str = TARGET_PENDING
    responded_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    persisted: bool = False
    dirty: bool = False

    def respond(self, status: str, *, reason: str | None = None, at: datetime | None = None) -> None:
        self.status = status
        self.responded_at = at or utc_now()
        if reason is not None:
            self.rejection_reason = reason
        self.dirty = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supplier_id": self.supplier_id,
            "status": self.status,
            "responded_at": _iso(self.responded_at),
            "rejection_reason": self.rejection_reason,
        }


@dataclass
class RejectedItem:
    id: str
    reason: str
    quantity: int
    defect_description: str | None = None
    requires_rework: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "reason": self.reason,
            "quantity": self.quantity,
            "defect_description": self.defect_description,
            "requires_rework": self.requires_rework,
        }


@dataclass
class OrderReview:
    id: str
    order_id: str
    review_type: str
    result: str
    total_quantity: int
    approved_quantity: int
    rejected_quantity: int
    second_quality_quantity: int
    reviewed_by_id: str
    notes: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    rejected_items: List[RejectedItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "type": self.review_type,
            "result": self.result,
            "total_quantity": self.total_quantity,
            "approved_quantity": self.approved_quantity,
            "rejected_quantity": self.rejected_quantity,
            "second_quality_quantity": self.second_quality_quantity,
            "notes": self.notes,
            "reviewed_by_id": self.reviewed_by_id,
            "created_at": _iso(self.created_at),
            "rejected_items": [item.to_dict() for item in self.rejected_items],
        }


@dataclass
class SecondQualityItem:
    id: str
    order_id: str
    quantity: int
    defect_type: str
    original_unit_value: Decimal
    review_id: str | None = None
    defect_description: str | None = None
    discount_percentage: Decimal | None = None
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "review_id": self.review_id,
            "quantity": self.quantity,
            "defect_type": self.defect_type,
            "defect_description": self.defect_description,
            "original_unit_value": str(self.original_unit_value),
            "discount_percentage": None if self.discount_percentage is None else str(self.discount_percentage),
            "created_at": _iso(self.created_at),
        }


@dataclass
class ChildOrderRef:
    id: str
    display_id: str
    revision_number: int
    status: str
    quantity: int = 0
    created_at: datetime | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_id": self.display_id,
            "revision_number": self.revision_number,
            "status": self.status,
            "quantity": self.quantity,
            "created_at": _iso(self.created_at),
        }


@dataclass
class Order:
    id: str
    display_id: str
    brand_id: str
    assignment_type: str
    status: str
    product_type: str
    product_name: str
    quantity: int
    price_per_unit: Decimal
    total_value: Decimal
    platform_fee: Decimal
    net_value: Decimal
    delivery_deadline: datetime
    created_by_id: str
    supplier_id: str | None = None
    product_category: str | None = None
    op: str | None = None
    artigo: str | None = None
    description: str | None = None
    observations: str | None = None
    materials_provided: bool = False
    payment_terms: str | None = None
    accepted_at: datetime | None = None
    accepted_by_id: str | None = None
    rejection_reason: str | None = None
    parent_order_id: str | None = None
    revision_number: int = 0
    origin: str = ORIGIN_ORIGINAL
    total_review_count: int = 0
    approval_count: int = 0
    rejection_count: int = 0
    second_quality_count: int = 0
    version: int = 1
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    status_history: List[StatusHistoryEntry] = field(default_factory=list)
    target_suppliers: List[TargetSupplier] = field(default_factory=list)
    child_orders: List[ChildOrderRef] = field(default_factory=list)
    persisted: bool = False

    @property
    def is_rework(self) -> bool:
        return self.origin == ORIGIN_REWORK

    @property
    def has_children(self) -> bool:
        return bool(self.child_orders)

    def target_for(self, company_id: str | None) -> TargetSupplier | None:
        for target in self.target_suppliers:
            if target.supplier_id == company_id:
                return target
        return None

    def append_history(
        self,
        *,
        entry_id: str,
        previous_status: str | None,
        new_status: str,
        actor_id: str,
        actor_name: str,
        notes: str | None = None,
        at: datetime | None = None,
    ) -> StatusHistoryEntry:
        position = max((entry.position for entry in self.status_history), default=0) + 1
        entry = StatusHistoryEntry(
            id=entry_id,
            order_id=self.id,
            previous_status=previous_status,
            new_status=new_status,
            changed_by_id=actor_id,
            changed_by_name=actor_name,
            notes=notes,
            created_at=at or utc_now(),
            position=position,
        )
        self.status_history.append(entry)
        return entry

    def pending_targets(self) -> List[TargetSupplier]:
        return [target for target in self.target_suppliers if target.status == TARGET_PENDING]

    def to_ref(self) -> ChildOrderRef:
        return ChildOrderRef(
            id=self.id,
            display_id=self.display_id,
            revision_number=self.revision_number,
            status=self.status,
            quantity=self.quantity,
            created_at=self.created_at,
        )

    def to_dict(self, party: str | None = BRAND) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "display_id": self.display_id,
            "brand_id": self.brand_id,
            "supplier_id": self.supplier_id,
            "assignment_type": self.assignment_type,
            "status": self.status,
            "status_label": status_label(self.status),
            "status_description": status_description(self.status),
            "product_type": self.product_type,
            "product_category": self.product_category,
            "product_name": self.product_name,
            "op": self.op,
            "artigo": self.artigo,
            "description": self.description,
            "observations": self.observations,
            "quantity": self.quantity,
            "price_per_unit": str(self.price_per_unit),
            "total_value": str(self.total_value),
            "platform_fee": str(self.platform_fee),
            "net_value": str(self.net_value),
            "materials_provided": self.materials_provided,
            "delivery_deadline": _iso(self.delivery_deadline),
            "payment_terms": self.payment_terms,
            "accepted_at": _iso(self.accepted_at),
            "accepted_by_id": self.accepted_by_id,
            "rejection_reason": self.rejection_reason,
            "parent_order_id": self.parent_order_id,
            "revision_number": self.revision_number,
            "origin": self.origin,
            "total_review_count": self.total_review_count,
            "approval_count": self.approval_count,
            "rejection_count": self.rejection_count,
            "second_quality_count": self.second_quality_count,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "status_history": [entry.to_dict() for entry in self.status_history],
            "target_suppliers": [target.to_dict() for target in self.target_suppliers],
            "child_orders": [child.to_dict() for child in self.child_orders],
        }
        if party == SUPPLIER:
            # Suppliers only see net figures.
            payload["total_value"] = str(self.net_value)
            payload["price_per_unit"] = str(supplier_unit_price(self.net_value, self.quantity))
            payload.pop("platform_fee", None)
        return payload


@dataclass
class CompanyMembership:
    id: str
    user_id: str
    company_id: str
    company_type: str
    company_role: str = "VIEWER"
    is_company_admin: bool = False
    is_active: bool = True
    user_name: str = ""
    overrides: List["PermissionOverride"] = field(default_factory=list)


@dataclass(frozen=True)
class PermissionOverride:
    permission: str
    granted: bool


@dataclass(frozen=True)
class Actor:
    user_id: str
    user_name: str
    company_id: str
    party: str
