from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

from texlink.domain.models import (
    ChildOrderRef,
    Order,
    OrderReview,
    RejectedItem,
    SecondQualityItem,
    StatusHistoryEntry,
    TargetSupplier,
)
from texlink.errors import ConflictError
from texlink.infrastructure.repositories.base import BaseRepository, to_datetime, to_decimal, to_iso


_ORDER_COLUMNS = (
    "id",
    "display_id",
    "brand_id",
    "supplier_id",
    "assignment_type",
    "status",
    "product_type",
    "product_category",
    "product_name",
    "op",
    "artigo",
    "description",
    "observations",
    "quantity",
    "price_per_unit",
    "total_value",
    "platform_fee",
    "net_value",
    "materials_provided",
    "delivery_deadline",
    "payment_terms",
    "accepted_at",
    "accepted_by_id",
    "rejection_reason",
    "parent_order_id",
    "revision_number",
    "origin",
    "total_review_count",
    "approval_count",
    "rejection_count",
    "second_quality_count",
    "created_by_id",
    "version",
    "created_at",
    "updated_at",
)

# Columns a transition, review or acceptance may change.
_MUTABLE_COLUMNS = (
    "supplier_id",
    "status",
    "accepted_at",
    "accepted_by_id",
    "rejection_reason",
    "total_review_count",
    "approval_count",
    "rejection_count",
    "second_quality_count",
    "updated_at",
)


def _order_values(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "display_id": order.display_id,
        "brand_id": order.brand_id,
        "supplier_id": order.supplier_id,
        "assignment_type": order.assignment_type,
        "status": order.status,
        "product_type": order.product_type,
        "product_category": order.product_category,
        "product_name": order.product_name,
        "op": order.op,
        "artigo": order.artigo,
        "description": order.description,
        "observations": order.observations,
        "quantity": order.quantity,
        "price_per_unit": str(order.price_per_unit),
        "total_value": str(order.total_value),
        "platform_fee": str(order.platform_fee),
        "net_value": str(order.net_value),
        "materials_provided": 1 if order.materials_provided else 0,
        "delivery_deadline": to_iso(order.delivery_deadline),
        "payment_terms": order.payment_terms,
        "accepted_at": to_iso(order.accepted_at),
        "accepted_by_id": order.accepted_by_id,
        "rejection_reason": order.rejection_reason,
        "parent_order_id": order.parent_order_id,
        "revision_number": order.revision_number,
        "origin": order.origin,
        "total_review_count": order.total_review_count,
        "approval_count": order.approval_count,
        "rejection_count": order.rejection_count,
        "second_quality_count": order.second_quality_count,
        "created_by_id": order.created_by_id,
        "version": order.version,
        "created_at": to_iso(order.created_at),
        "updated_at": to_iso(order.updated_at),
    }


class OrderRepository(BaseRepository):
    """Persistence for the order aggregate and the records it owns."""

    def get(self, db, order_id: str) -> Order | None:
        row = db.execute(
            f"SELECT {', '.join(_ORDER_COLUMNS)} FROM orders WHERE id = ?",
            (order_id,),
        ).fetchone()
        if not row:
            return None
        order = self._order_from_row(row)
        order.status_history = self._load_history(db, order.id)
        order.target_suppliers = self._load_targets(db, order.id)
        order.child_orders = self.list_children(db, order.id)
        return order

    def get_ref(self, db, order_id: str) -> ChildOrderRef | None:
        row = db.execute(
            "SELECT id, display_id, revision_number, status, quantity, created_at FROM orders WHERE id = ?",
            (order_id,),
        ).fetchone()
        return self._ref_from_row(row) if row else None

    def list_children(self, db, parent_order_id: str) -> List[ChildOrderRef]:
        rows = db.execute(
            """
            SELECT id, display_id, revision_number, status, quantity, created_at
            FROM orders
            WHERE parent_order_id = ?
            ORDER BY revision_number, created_at
            """,
            (parent_order_id,),
        ).fetchall()
        return [self._ref_from_row(row) for row in rows]

    def find_root_id(self, db, order_id: str) -> str:
        current = order_id
        seen = {current}
        while True:
            row = db.execute("SELECT parent_order_id FROM orders WHERE id = ?", (current,)).fetchone()
            parent_id = row["parent_order_id"] if row else None
            if not parent_id or parent_id in seen:
                return current
            seen.add(parent_id)
            current = parent_id

    def list_order_ids(
        self,
        db,
        *,
        brand_ids: Sequence[str] = (),
        supplier_ids: Sequence[str] = (),
        include_open_market: bool = False,
        status: str | None = None,
    ) -> List[str]:
        clauses: List[str] = []
        params: List[Any] = []
        if brand_ids:
            clauses.append(f"o.brand_id IN ({', '.join('?' for _ in brand_ids)})")
            params.extend(brand_ids)
        if supplier_ids:
            marks = ", ".join("?" for _ in supplier_ids)
            clauses.append(f"o.supplier_id IN ({marks})")
            params.extend(supplier_ids)
            clauses.append(
                f"EXISTS (SELECT 1 FROM order_target_suppliers t WHERE t.order_id = o.id AND t.supplier_id IN ({marks})"
                " AND (o.supplier_id IS NULL OR t.status = 'PENDING'))"
            )
            params.extend(supplier_ids)
        if include_open_market:
            clauses.append(
                "(o.status = 'DISPONIVEL_PARA_OUTRAS' OR "
                "(o.status = 'LANCADO_PELA_MARCA' AND o.assignment_type = 'HYBRID' AND o.supplier_id IS NULL))"
            )
        if not clauses:
            return []

        sql = f"SELECT o.id FROM orders o WHERE ({' OR '.join(clauses)})"
        if status:
            sql += " AND o.status = ?"
            params.append(status)
        sql += " ORDER BY o.created_at DESC, o.id"
        rows = db.execute(sql, tuple(params)).fetchall()
        return [str(row["id"]) for row in rows]

    def save(self, db, order: Order) -> Order:
        if order.persisted:
            self._update(db, order)
        else:
            self._insert(db, order)
        self._save_history(db, order)
        self._save_targets(db, order)
        return order

    def _insert(self, db, order: Order) -> None:
        values = _order_values(order)
        self.write(
            db,
            f"INSERT INTO orders ({', '.join(_ORDER_COLUMNS)}) VALUES ({', '.join('?' for _ in _ORDER_COLUMNS)})",
            tuple(values[column] for column in _ORDER_COLUMNS),
        )
        order.persisted = True

    def _update(self, db, order: Order) -> None:
        values = _order_values(order)
        assignments = ", ".join(f"{column} = ?" for column in _MUTABLE_COLUMNS)
        cursor = self.write(
            db,
            f"UPDATE orders SET {assignments}, version = version + 1 WHERE id = ? AND version = ?",
            (*(values[column] for column in _MUTABLE_COLUMNS), order.id, order.version),
        )
        if int(cursor.rowcount or 0) != 1:
            raise ConflictError(
                details=f"Pedido {order.display_id} alterado concorrentemente (versao {order.version})",
                payload={"order_id": order.id},
            )
        order.version += 1

    def _save_history(self, db, order: Order) -> None:
        for entry in order.status_history:
            if entry.persisted:
                continue
            self.write(
                db,
                """
                INSERT INTO order_status_history (
                    id, order_id, position, previous_status, new_status,
                    changed_by_id, changed_by_name, notes, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    order.id,
                    entry.position,
                    entry.previous_status,
                    entry.new_status,
                    entry.changed_by_id,
                    entry.changed_by_name,
                    entry.notes,
                    to_iso(entry.created_at),
                ),
            )
            entry.persisted = True

    def _save_targets(self, db, order: Order) -> None:
        for target in order.target_suppliers:
            if not target.persisted:
                self.write(
                    db,
                    """
                    INSERT INTO order_target_suppliers (
                        id, order_id, supplier_id, status, responded_at, rejection_reason, created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        target.id,
                        order.id,
                        target.supplier_id,
                        target.status,
                        to_iso(target.responded_at),
                        target.rejection_reason,
                        to_iso(target.created_at),
                    ),
                )
            elif target.dirty:
                self.write(
                    db,
                    """
                    UPDATE order_target_suppliers
                    SET status = ?, responded_at = ?, rejection_reason = ?
                    WHERE id = ?
                    """,
                    (target.status, to_iso(target.responded_at), target.rejection_reason, target.id),
                )
            target.persisted = True
            target.dirty = False

    def insert_review(self, db, review: OrderReview) -> OrderReview:
        self.write(
            db,
            """
            INSERT INTO order_reviews (
                id, order_id, review_type, result, total_quantity, approved_quantity,
                rejected_quantity, second_quality_quantity, notes, reviewed_by_id, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                review.id,
                review.order_id,
                review.review_type,
                review.result,
                review.total_quantity,
                review.approved_quantity,
                review.rejected_quantity,
                review.second_quality_quantity,
                review.notes,
                review.reviewed_by_id,
                to_iso(review.created_at),
            ),
        )
        for item in review.rejected_items:
            self.write(
                db,
                """
                INSERT INTO order_review_rejected_items (
                    id, review_id, reason, quantity, defect_description, requires_rework
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id,
                    review.id,
                    item.reason,
                    item.quantity,
                    item.defect_description,
                    1 if item.requires_rework else 0,
                ),
            )
        return review

    def insert_second_quality_items(self, db, items: Iterable[SecondQualityItem]) -> None:
        for item in items:
            self.write(
                db,
                """
                INSERT INTO second_quality_items (
                    id, order_id, review_id, quantity, defect_type, defect_description,
                    original_unit_value, discount_percentage, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id,
                    item.order_id,
                    item.review_id,
                    item.quantity,
                    item.defect_type,
                    item.defect_description,
                    str(item.original_unit_value),
                    None if item.discount_percentage is None else str(item.discount_percentage),
                    to_iso(item.created_at),
                ),
            )

    def list_reviews(self, db, order_id: str) -> List[OrderReview]:
        rows = db.execute(
            """
            SELECT id, order_id, review_type, result, total_quantity, approved_quantity,
                   rejected_quantity, second_quality_quantity, notes, reviewed_by_id, created_at
            FROM order_reviews
            WHERE order_id = ?
            ORDER BY created_at DESC, id
            """,
            (order_id,),
        ).fetchall()
        reviews = []
        for row in rows:
            item_rows = db.execute(
                """
                SELECT id, reason, quantity, defect_description, requires_rework
                FROM order_review_rejected_items
                WHERE review_id = ?
                ORDER BY id
                """,
                (row["id"],),
            ).fetchall()
            reviews.append(
                OrderReview(
                    id=str(row["id"]),
                    order_id=str(row["order_id"]),
                    review_type=str(row["review_type"]),
                    result=str(row["result"]),
                    total_quantity=int(row["total_quantity"]),
                    approved_quantity=int(row["approved_quantity"]),
                    rejected_quantity=int(row["rejected_quantity"]),
                    second_quality_quantity=int(row["second_quality_quantity"]),
                    reviewed_by_id=str(row["reviewed_by_id"]),
                    notes=row["notes"],
                    created_at=to_datetime(row["created_at"]),
                    rejected_items=[
                        RejectedItem(
                            id=str(item["id"]),
                            reason=str(item["reason"]),
                            quantity=int(item["quantity"]),
                            defect_description=item["defect_description"],
                            requires_rework=bool(item["requires_rework"]),
                        )
                        for item in item_rows
                    ],
                )
            )
        return reviews

    def latest_review(self, db, order_id: str) -> OrderReview | None:
        reviews = self.list_reviews(db, order_id)
        return reviews[0] if reviews else None

    def list_second_quality_items(self, db, order_id: str) -> List[SecondQualityItem]:
        rows = db.execute(
            """
            SELECT id, order_id, review_id, quantity, defect_type, defect_description,
                   original_unit_value, discount_percentage, created_at
            FROM second_quality_items
            WHERE order_id = ?
            ORDER BY created_at DESC, id
            """,
            (order_id,),
        ).fetchall()
        return [
            SecondQualityItem(
                id=str(row["id"]),
                order_id=str(row["order_id"]),
                review_id=row["review_id"],
                quantity=int(row["quantity"]),
                defect_type=str(row["defect_type"]),
                defect_description=row["defect_description"],
                original_unit_value=to_decimal(row["original_unit_value"]),
                discount_percentage=to_decimal(row["discount_percentage"]),
                created_at=to_datetime(row["created_at"]),
            )
            for row in rows
        ]

    def _load_history(self, db, order_id: str) -> List[StatusHistoryEntry]:
        rows = db.execute(
            """
            SELECT id, order_id, position, previous_status, new_status,
                   changed_by_id, changed_by_name, notes, created_at
            FROM order_status_history
            WHERE order_id = ?
            ORDER BY position
            """,
            (order_id,),
        ).fetchall()
        return [
            StatusHistoryEntry(
                id=str(row["id"]),
                order_id=str(row["order_id"]),
                previous_status=row["previous_status"],
                new_status=str(row["new_status"]),
                changed_by_id=str(row["changed_by_id"]),
                changed_by_name=str(row["changed_by_name"] or ""),
                notes=row["notes"],
                created_at=to_datetime(row["created_at"]),
                position=int(row["position"]),
                persisted=True,
            )
            for row in rows
        ]

    def _load_targets(self, db, order_id: str) -> List[TargetSupplier]:
        rows = db.execute(
            """
            SELECT id, order_id, supplier_id, status, responded_at, rejection_reason, created_at
            FROM order_target_suppliers
            WHERE order_id = ?
            ORDER BY created_at, id
            """,
            (order_id,),
        ).fetchall()
        return [
            TargetSupplier(
                id=str(row["id"]),
                order_id=str(row["order_id"]),
                supplier_id=str(row["supplier_id"]),
                status=str(row["status"]),
                responded_at=to_datetime(row["responded_at"]),
                rejection_reason=row["rejection_reason"],
                created_at=to_datetime(row["created_at"]),
                persisted=True,
            )
            for row in rows
        ]

    @staticmethod
    def _ref_from_row(row) -> ChildOrderRef:
        return ChildOrderRef(
            id=str(row["id"]),
            display_id=str(row["display_id"]),
            revision_number=int(row["revision_number"]),
            status=str(row["status"]),
            quantity=int(row["quantity"]),
            created_at=to_datetime(row["created_at"]),
        )

    @staticmethod
    def _order_from_row(row) -> Order:
        return Order(
            id=str(row["id"]),
            display_id=str(row["display_id"]),
            brand_id=str(row["brand_id"]),
            supplier_id=row["supplier_id"],
            assignment_type=str(row["assignment_type"]),
            status=str(row["status"]),
            product_type=str(row["product_type"]),
            product_category=row["product_category"],
            product_name=str(row["product_name"]),
            op=row["op"],
            artigo=row["artigo"],
            description=row["description"],
            observations=row["observations"],
            quantity=int(row["quantity"]),
            price_per_unit=to_decimal(row["price_per_unit"]),
            total_value=to_decimal(row["total_value"]),
            platform_fee=to_decimal(row["platform_fee"]),
            net_value=to_decimal(row["net_value"]),
            materials_provided=bool(row["materials_provided"]),
            delivery_deadline=to_datetime(row["delivery_deadline"]),
            payment_terms=row["payment_terms"],
            accepted_at=to_datetime(row["accepted_at"]),
            accepted_by_id=row["accepted_by_id"],
            rejection_reason=row["rejection_reason"],
            parent_order_id=row["parent_order_id"],
            revision_number=int(row["revision_number"]),
            origin=str(row["origin"]),
            total_review_count=int(row["total_review_count"]),
            approval_count=int(row["approval_count"]),
            rejection_count=int(row["rejection_count"]),
            second_quality_count=int(row["second_quality_count"]),
            created_by_id=str(row["created_by_id"]),
            version=int(row["version"]),
            created_at=to_datetime(row["created_at"]),
            updated_at=to_datetime(row["updated_at"]),
            persisted=True,
        )
