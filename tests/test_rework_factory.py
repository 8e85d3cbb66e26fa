import unittest
from datetime import timedelta
from decimal import Decimal

from texlink.core import OrderCreated, OrderStatusChanged
from texlink.domain.contracts import ChildOrderInput, ReviewInput
from texlink.domain.models import ORIGIN_REWORK, REVIEW_QUALITY_CHECK, SUPPLIER, ChildOrderRef
from texlink.errors import InvalidTransitionError, PermissionError
from texlink.orders import statuses as st
from texlink.orders.review import ReviewEngine
from texlink.orders.rework import REWORK_PAYMENT_TERMS, ReworkFactory, next_revision_number
from texlink.orders.state_machine import OrderStateMachine
from tests.helpers.orders import BRAND_ACTOR, FIXED_NOW, OTHER_BRAND, SUPPLIER_A, SUPPLIER_B, fixed_clock, make_order


class ReworkFactoryTest(unittest.TestCase):
    def setUp(self) -> None:
        self.machine = OrderStateMachine(clock=fixed_clock)
        self.reviews = ReviewEngine(self.machine)
        self.rework = ReworkFactory(self.machine, default_deadline_days=14)

    def _reviewed_parent(self, approved=70, rejected=20, second=10, **order_overrides):
        parent = make_order(**order_overrides)
        self.machine.accept(parent, SUPPLIER_A)
        outcome = self.reviews.create_review(
            parent,
            BRAND_ACTOR,
            ReviewInput(
                review_type=REVIEW_QUALITY_CHECK,
                total_quantity=approved + rejected + second,
                approved_quantity=approved,
                rejected_quantity=rejected,
                second_quality_quantity=second,
            ),
        )
        return parent, outcome.review

    def test_first_rework_child(self) -> None:
        parent, review = self._reviewed_parent()
        outcome = self.rework.create_child(parent, BRAND_ACTOR, ChildOrderInput(), latest_review=review)
        child = outcome.child

        self.assertEqual(child.display_id, "TX-20261019-ABCD-R1")
        self.assertEqual(child.revision_number, 1)
        self.assertEqual(child.origin, ORIGIN_REWORK)
        self.assertEqual(child.parent_order_id, parent.id)
        self.assertEqual(child.status, st.AGUARDANDO_RETRABALHO)
        self.assertEqual(child.quantity, 20)
        self.assertEqual(child.supplier_id, SUPPLIER_A.company_id)
        self.assertEqual(child.total_value, Decimal("0.00"))
        self.assertEqual(child.platform_fee, Decimal("0.00"))
        self.assertEqual(child.net_value, Decimal("0.00"))
        self.assertEqual(child.payment_terms, REWORK_PAYMENT_TERMS)
        self.assertEqual(child.delivery_deadline, FIXED_NOW + timedelta(days=14))
        self.assertEqual(child.description, f"Retrabalho do pedido {parent.display_id}")
        self.assertEqual(len(child.status_history), 1)

        self.assertEqual(parent.status, st.AGUARDANDO_RETRABALHO)
        self.assertEqual(parent.status_history[-1].notes, f"Retrabalho {child.display_id} criado")
        self.assertEqual([ref.id for ref in parent.child_orders], [child.id])
        self.assertEqual([type(event) for event in outcome.events], [OrderCreated, OrderStatusChanged])

    def test_second_child_while_parent_waits(self) -> None:
        parent, review = self._reviewed_parent()
        self.rework.create_child(parent, BRAND_ACTOR, ChildOrderInput(), latest_review=review)
        outcome = self.rework.create_child(parent, BRAND_ACTOR, ChildOrderInput(quantity=5))

        self.assertEqual(outcome.child.revision_number, 2)
        self.assertEqual(outcome.child.quantity, 5)
        self.assertEqual(parent.status, st.AGUARDANDO_RETRABALHO)
        self.assertEqual([type(event) for event in outcome.events], [OrderCreated])

    def test_revision_skips_past_highest_existing_child(self) -> None:
        parent, review = self._reviewed_parent()
        parent.child_orders = [
            ChildOrderRef(id="c1", display_id="TX-20261019-ABCD-R1", revision_number=1, status=st.FINALIZADO),
            ChildOrderRef(id="c3", display_id="TX-20261019-ABCD-R3", revision_number=3, status=st.FINALIZADO),
        ]
        self.assertEqual(next_revision_number(parent), 4)

        outcome = self.rework.create_child(parent, BRAND_ACTOR, ChildOrderInput(), latest_review=review)
        self.assertEqual(outcome.child.revision_number, 4)
        self.assertEqual(outcome.child.display_id, "TX-20261019-ABCD-R4")

    def test_rework_of_a_rework_keeps_base_display_id(self) -> None:
        parent, review = self._reviewed_parent()
        child = self.rework.create_child(parent, BRAND_ACTOR, ChildOrderInput(), latest_review=review).child

        self.machine.accept(child, SUPPLIER_A)
        child_review = self.reviews.create_review(
            child,
            BRAND_ACTOR,
            ReviewInput(
                review_type=REVIEW_QUALITY_CHECK,
                total_quantity=20,
                approved_quantity=0,
                rejected_quantity=20,
                second_quality_quantity=0,
            ),
        ).review
        self.assertEqual(child.status, st.REPROVADO)

        grandchild = self.rework.create_child(child, BRAND_ACTOR, ChildOrderInput(), latest_review=child_review).child
        self.assertEqual(grandchild.revision_number, 2)
        self.assertEqual(grandchild.display_id, "TX-20261019-ABCD-R2")
        self.assertEqual(grandchild.parent_order_id, child.id)

    def test_quantity_defaults_to_parent_without_review(self) -> None:
        parent, _ = self._reviewed_parent()
        outcome = self.rework.create_child(parent, BRAND_ACTOR, ChildOrderInput())
        self.assertEqual(outcome.child.quantity, parent.quantity)

    def test_guards(self) -> None:
        parent, review = self._reviewed_parent()
        for actor in (SUPPLIER_A, OTHER_BRAND):
            with self.subTest(actor=actor.user_id):
                with self.assertRaises(PermissionError):
                    self.rework.create_child(parent, actor, ChildOrderInput(), latest_review=review)

        running = make_order()
        self.machine.accept(running, SUPPLIER_A)
        with self.assertRaises(InvalidTransitionError) as ctx:
            self.rework.create_child(running, BRAND_ACTOR, ChildOrderInput())
        self.assertEqual(ctx.exception.code, "rework_not_allowed")

    def test_assigned_supplier_accepts_rework_child(self) -> None:
        parent, review = self._reviewed_parent()
        child = self.rework.create_child(parent, BRAND_ACTOR, ChildOrderInput(), latest_review=review).child

        with self.assertRaises(PermissionError):
            self.machine.accept(child, SUPPLIER_B)
        with self.assertRaises(InvalidTransitionError):
            self.machine.accept(parent, SUPPLIER_A)

        waiting = self.machine.available_transitions(parent, SUPPLIER_A)
        self.assertFalse(waiting["can_advance"])
        self.assertEqual(waiting["waiting_for"], SUPPLIER)
        self.assertEqual(waiting["waiting_label"], "Aguardando conclusao do retrabalho")

        self.machine.accept(child, SUPPLIER_A)
        self.assertEqual(child.status, st.ACEITO_PELA_FACCAO)
        self.assertEqual(child.accepted_by_id, SUPPLIER_A.user_id)


if __name__ == "__main__":
    unittest.main()
