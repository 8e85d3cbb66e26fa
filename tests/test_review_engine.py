import unittest
from decimal import Decimal

from texlink.core import OrderFinalized, OrderStatusChanged
from texlink.domain.contracts import RejectedItemInput, ReviewInput, SecondQualityItemInput, StatusUpdateInput
from texlink.domain.models import (
    RESULT_APPROVED,
    RESULT_PARTIAL,
    RESULT_REJECTED,
    REVIEW_FINAL,
    REVIEW_QUALITY_CHECK,
)
from texlink.errors import InvalidTransitionError, PermissionError, ValidationError
from texlink.orders import statuses as st
from texlink.orders.review import ReviewEngine, classify_review
from texlink.orders.state_machine import OrderStateMachine
from tests.helpers.orders import BRAND_ACTOR, SUPPLIER_A, fixed_clock, make_order


def _review(approved, rejected, second, **overrides):
    values = {
        "review_type": REVIEW_QUALITY_CHECK,
        "total_quantity": approved + rejected + second,
        "approved_quantity": approved,
        "rejected_quantity": rejected,
        "second_quality_quantity": second,
    }
    values.update(overrides)
    return ReviewInput(**values)


class ClassifyReviewTest(unittest.TestCase):
    def test_classification(self) -> None:
        self.assertEqual(classify_review(100, 0, 0), RESULT_APPROVED)
        self.assertEqual(classify_review(70, 20, 10), RESULT_PARTIAL)
        self.assertEqual(classify_review(90, 0, 10), RESULT_PARTIAL)
        self.assertEqual(classify_review(0, 100, 0), RESULT_REJECTED)
        self.assertEqual(classify_review(0, 0, 10), RESULT_REJECTED)


class ReviewEngineTest(unittest.TestCase):
    def setUp(self) -> None:
        self.machine = OrderStateMachine(clock=fixed_clock)
        self.engine = ReviewEngine(self.machine)
        self.order = make_order()
        self.machine.accept(self.order, SUPPLIER_A)

    def _to_review(self) -> None:
        for status in (st.FILA_DE_PRODUCAO, st.EM_PRODUCAO, st.PRONTO, st.EM_TRANSITO_PARA_MARCA):
            self.machine.update_status(self.order, SUPPLIER_A, StatusUpdateInput(status=status))
        self.machine.update_status(self.order, BRAND_ACTOR, StatusUpdateInput(status=st.EM_REVISAO))

    def test_partial_review_right_after_acceptance(self) -> None:
        outcome = self.engine.create_review(
            self.order,
            BRAND_ACTOR,
            _review(
                70,
                20,
                10,
                rejected_items=[RejectedItemInput(reason="Costura torta", quantity=20)],
                second_quality_items=[
                    SecondQualityItemInput(quantity=10, defect_type="Mancha", discount_percentage=Decimal("30"))
                ],
            ),
        )

        self.assertEqual(outcome.review.result, RESULT_PARTIAL)
        self.assertEqual(self.order.status, st.PARCIALMENTE_APROVADO)
        self.assertEqual(self.order.total_review_count, 1)
        self.assertEqual(self.order.approval_count, 1)
        self.assertEqual(self.order.rejection_count, 1)
        self.assertEqual(self.order.second_quality_count, 10)
        self.assertEqual(self.order.status_history[-1].notes, "Revisao concluida: PARTIAL")

        self.assertEqual(len(outcome.review.rejected_items), 1)
        [item] = outcome.second_quality_items
        self.assertEqual(item.review_id, outcome.review.id)
        self.assertEqual(item.original_unit_value, Decimal("50.00"))
        self.assertEqual(item.discount_percentage, Decimal("30"))
        self.assertEqual([type(event) for event in outcome.events], [OrderStatusChanged])

    def test_full_approval_finalizes(self) -> None:
        self._to_review()
        outcome = self.engine.create_review(self.order, BRAND_ACTOR, _review(100, 0, 0, review_type=REVIEW_FINAL))
        self.assertEqual(self.order.status, st.FINALIZADO)
        self.assertEqual([type(event) for event in outcome.events], [OrderStatusChanged, OrderFinalized])
        self.assertEqual(self.order.rejection_count, 0)

    def test_full_rejection(self) -> None:
        self._to_review()
        self.engine.create_review(self.order, BRAND_ACTOR, _review(0, 100, 0, notes="Lote inteiro com defeito"))
        self.assertEqual(self.order.status, st.REPROVADO)
        self.assertEqual(self.order.approval_count, 0)
        self.assertEqual(self.order.rejection_count, 1)
        self.assertEqual(self.order.status_history[-1].notes, "Lote inteiro com defeito")

    def test_invalid_input_does_not_touch_the_order(self) -> None:
        self._to_review()
        cases = {
            "review_quantities_mismatch": _review(70, 20, 10, total_quantity=99),
            "review_type_invalid": _review(100, 0, 0, review_type="VISUAL"),
            "discount_invalid": _review(
                90,
                0,
                10,
                second_quality_items=[SecondQualityItemInput(quantity=10, defect_type="Furo", discount_percentage=150)],
            ),
        }
        for code, review_input in cases.items():
            with self.subTest(code=code):
                with self.assertRaises(ValidationError) as ctx:
                    self.engine.create_review(self.order, BRAND_ACTOR, review_input)
                self.assertEqual(ctx.exception.code, code)
        self.assertEqual(self.order.status, st.EM_REVISAO)
        self.assertEqual(self.order.total_review_count, 0)

    def test_only_brand_reviews(self) -> None:
        self._to_review()
        with self.assertRaises(PermissionError):
            self.engine.create_review(self.order, SUPPLIER_A, _review(100, 0, 0))

    def test_review_needs_an_accepted_order(self) -> None:
        order = make_order()
        with self.assertRaises(InvalidTransitionError):
            self.engine.create_review(order, BRAND_ACTOR, _review(100, 0, 0))

    def test_second_quality_items_outside_review(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.engine.add_second_quality_items(self.order, SUPPLIER_A, [])
        self.assertEqual(ctx.exception.code, "items_required")

        created = self.engine.add_second_quality_items(
            self.order,
            SUPPLIER_A,
            [
                SecondQualityItemInput(quantity=3, defect_type="Mancha"),
                SecondQualityItemInput(quantity=2, defect_type="Furo"),
            ],
        )
        self.assertEqual(len(created), 2)
        self.assertTrue(all(item.review_id is None for item in created))
        self.assertEqual(self.order.second_quality_count, 5)
        self.assertEqual(self.order.status, st.ACEITO_PELA_FACCAO)


if __name__ == "__main__":
    unittest.main()
