import unittest
from dataclasses import FrozenInstanceError
from decimal import Decimal

from texlink.core import EventBus, OrderAccepted, OrderCreated, OrderFinalized, OrderStatusChanged, serialize_event_payload
from texlink.orders import events as order_events
from texlink.orders import statuses as st
from tests.helpers.orders import SUPPLIER_A, make_order


class EventBusTest(unittest.TestCase):
    def test_handler_execution_order_is_predictable(self) -> None:
        bus = EventBus()
        execution_trace = []

        bus.subscribe(OrderAccepted, lambda _event: execution_trace.append("first"))
        bus.subscribe(OrderAccepted, lambda _event: execution_trace.append("second"))
        bus.publish(OrderAccepted(order_id="o-1", brand_id="b-1", supplier_id="s-1", accepted_by_id="u-1"))

        self.assertEqual(execution_trace, ["first", "second"])

    def test_dispatch_is_by_exact_type(self) -> None:
        bus = EventBus()
        received = []
        bus.subscribe(OrderStatusChanged, received.append)
        bus.publish(OrderFinalized(order_id="o-1", brand_id="b-1"))
        self.assertEqual(received, [])

    def test_failing_handler_does_not_stop_others(self) -> None:
        bus = EventBus()
        received = []

        def _broken(_event):
            raise RuntimeError("notificacao indisponivel")

        bus.subscribe(OrderFinalized, _broken)
        bus.subscribe(OrderFinalized, received.append)
        with self.assertLogs("texlink.events", level="ERROR"):
            bus.publish(OrderFinalized(order_id="o-1", brand_id="b-1"))
        self.assertEqual(len(received), 1)

    def test_clear_drops_handlers(self) -> None:
        bus = EventBus()
        received = []
        bus.subscribe(OrderFinalized, received.append)
        bus.clear()
        bus.publish(OrderFinalized(order_id="o-1", brand_id="b-1"))
        self.assertEqual(received, [])


class OrderEventPayloadTest(unittest.TestCase):
    def test_order_created_payload_is_json_ready(self) -> None:
        order = make_order()
        payload = serialize_event_payload(order_events.order_created(order))

        self.assertEqual(payload["event_name"], "ORDER_CREATED")
        self.assertEqual(payload["order_id"], order.id)
        self.assertEqual(payload["display_id"], order.display_id)
        self.assertEqual(payload["total_value"], "5000.00")
        self.assertEqual(payload["target_supplier_ids"], [])
        self.assertTrue(payload["occurred_at"].endswith("Z"))
        self.assertTrue(payload["event_id"])

    def test_finalized_status_adds_finalized_event(self) -> None:
        order = make_order()
        order.status = st.FINALIZADO
        events = order_events.status_changed(order, SUPPLIER_A, st.EM_REVISAO)
        self.assertEqual([type(event) for event in events], [OrderStatusChanged, OrderFinalized])
        self.assertEqual(events[0].previous_status, st.EM_REVISAO)
        self.assertEqual(events[0].to_payload()["new_status"], st.FINALIZADO)

    def test_event_is_immutable(self) -> None:
        event = OrderCreated(order_id="o-1", brand_id="b-1", total_value=Decimal("10.00"))
        with self.assertRaises(FrozenInstanceError):
            event.brand_id = "b-2"


if __name__ == "__main__":
    unittest.main()
