import dataclasses
import unittest
from decimal import Decimal

from texlink.domain.models import BIDDING, HYBRID, ORIGIN_ORIGINAL, TARGET_PENDING
from texlink.errors import PermissionError, ValidationError
from texlink.orders import statuses as st
from tests.helpers.orders import BRAND_ACTOR, FIXED_NOW, SUPPLIER_A, SUPPLIER_B, make_order, order_input


class OrderFactoryTest(unittest.TestCase):
    def test_create_input_is_immutable_and_checked_by_the_factory(self) -> None:
        create_input = order_input()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            create_input.quantity = 0
        with self.assertRaises(ValidationError):
            make_order(quantity=0)

    def test_direct_order_financials_and_first_history_entry(self) -> None:
        order = make_order()

        self.assertEqual(order.status, st.LANCADO_PELA_MARCA)
        self.assertEqual(order.brand_id, BRAND_ACTOR.company_id)
        self.assertEqual(order.supplier_id, SUPPLIER_A.company_id)
        self.assertEqual(order.total_value, Decimal("5000.00"))
        self.assertEqual(order.platform_fee, Decimal("500.00"))
        self.assertEqual(order.net_value, Decimal("4500.00"))
        self.assertEqual(order.origin, ORIGIN_ORIGINAL)
        self.assertEqual(order.revision_number, 0)
        self.assertEqual(order.target_suppliers, [])

        self.assertEqual(len(order.status_history), 1)
        entry = order.status_history[0]
        self.assertIsNone(entry.previous_status)
        self.assertEqual(entry.new_status, st.LANCADO_PELA_MARCA)
        self.assertEqual(entry.changed_by_id, BRAND_ACTOR.user_id)
        self.assertEqual(entry.created_at, FIXED_NOW)

    def test_bidding_creates_pending_targets_without_duplicates(self) -> None:
        order = make_order(
            assignment_type=BIDDING,
            supplier_id=None,
            target_supplier_ids=(SUPPLIER_A.company_id, SUPPLIER_B.company_id, SUPPLIER_A.company_id),
        )
        self.assertIsNone(order.supplier_id)
        self.assertEqual([t.supplier_id for t in order.target_suppliers], [SUPPLIER_A.company_id, SUPPLIER_B.company_id])
        self.assertTrue(all(t.status == TARGET_PENDING for t in order.target_suppliers))

    def test_hybrid_may_start_without_supplier_or_targets(self) -> None:
        order = make_order(assignment_type=HYBRID, supplier_id=None)
        self.assertIsNone(order.supplier_id)
        self.assertEqual(order.target_suppliers, [])

    def test_validation_failures(self) -> None:
        cases = {
            "supplier_required": {"supplier_id": None},
            "target_suppliers_required": {"assignment_type": BIDDING, "supplier_id": None},
            "assignment_type_invalid": {"assignment_type": "AUCTION"},
            "quantity_invalid": {"quantity": 0},
            "price_invalid": {"price_per_unit": Decimal("0")},
            "product_required": {"product_name": "  "},
        }
        for code, overrides in cases.items():
            with self.subTest(code=code):
                with self.assertRaises(ValidationError) as ctx:
                    make_order(**overrides)
                self.assertEqual(ctx.exception.code, code)

    def test_only_brands_create_orders(self) -> None:
        with self.assertRaises(PermissionError):
            make_order(SUPPLIER_A)


if __name__ == "__main__":
    unittest.main()
