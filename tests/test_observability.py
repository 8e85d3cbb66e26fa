import json
import logging
import unittest
from decimal import Decimal

from texlink.observability import JsonLogFormatter, bind_request_id, current_request_id


def _record(message, **extra):
    record = logging.LogRecord("texlink.orders", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class JsonLogFormatterTest(unittest.TestCase):
    def test_background_request_id_is_bound(self) -> None:
        formatter = JsonLogFormatter()
        with bind_request_id("job-42") as request_id:
            self.assertEqual(request_id, "job-42")
            self.assertEqual(current_request_id(), "job-42")
            payload = json.loads(formatter.format(_record("order_created")))
        self.assertEqual(payload["request_id"], "job-42")
        self.assertEqual(payload["logger"], "texlink.orders")
        self.assertEqual(payload["message"], "order_created")

    def test_extras_are_serialized(self) -> None:
        formatter = JsonLogFormatter()
        payload = json.loads(
            formatter.format(_record("order_created", order_id="o-1", total_value=Decimal("1500.00"), request_id="r-1"))
        )
        self.assertEqual(payload["order_id"], "o-1")
        self.assertEqual(payload["total_value"], "1500.00")
        self.assertEqual(payload["request_id"], "r-1")

    def test_blank_request_id_falls_back(self) -> None:
        with bind_request_id("  ") as request_id:
            self.assertEqual(request_id, "n/a")


if __name__ == "__main__":
    unittest.main()
