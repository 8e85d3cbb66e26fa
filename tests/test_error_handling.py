import unittest

from texlink import create_app
from texlink.config import Config
from texlink.db import close_db
from texlink.errors import ConflictError, InvalidTransitionError, NotFoundError, PermissionError, ValidationError
from texlink.ui_strings import error_message
from tests.helpers.temp_db import TempDbSandbox


class ErrorHandlingTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="error_api")
        self.app = create_app(self._temp_db.make_config(Config, TESTING=True, PROPAGATE_EXCEPTIONS=False))

        errors = {
            "validation": ValidationError(code="review_quantities_mismatch", message_key="review_quantities_mismatch"),
            "forbidden": PermissionError(payload={"required_permissions": ["ORDERS_CREATE"]}),
            "missing": NotFoundError(),
            "transition": InvalidTransitionError(payload={"current_status": "FINALIZADO"}),
            "conflict": ConflictError(),
        }

        @self.app.route("/_raise/<kind>")
        def _raise(kind):
            if kind in errors:
                raise errors[kind]
            raise RuntimeError("boom")

        self.client = self.app.test_client()

    def tearDown(self) -> None:
        with self.app.app_context():
            close_db()
        self._temp_db.cleanup()

    def test_app_errors_map_to_json(self) -> None:
        expectations = {
            "validation": (400, "review_quantities_mismatch"),
            "forbidden": (403, "permission_denied"),
            "missing": (404, "not_found"),
            "transition": (409, "invalid_transition"),
            "conflict": (409, "conflict"),
        }
        for kind, (status, code) in expectations.items():
            with self.subTest(kind=kind):
                response = self.client.get(f"/_raise/{kind}")
                self.assertEqual(response.status_code, status)
                payload = response.get_json()
                self.assertEqual(payload["error"], code)
                self.assertEqual(payload["message"], error_message(code))
                self.assertTrue((payload.get("request_id") or "").strip())

        forbidden = self.client.get("/_raise/forbidden").get_json()
        self.assertEqual(forbidden["required_permissions"], ["ORDERS_CREATE"])
        transition = self.client.get("/_raise/transition").get_json()
        self.assertEqual(transition["current_status"], "FINALIZADO")

    def test_only_conflicts_are_retryable(self) -> None:
        self.assertTrue(ConflictError().retryable)
        self.assertFalse(ValidationError().retryable)
        self.assertFalse(InvalidTransitionError().retryable)

    def test_unexpected_error_hides_traceback(self) -> None:
        response = self.client.get("/_raise/other")
        self.assertEqual(response.status_code, 500)
        payload = response.get_json()
        self.assertEqual(payload["error"], "unexpected_error")
        self.assertEqual(payload["message"], error_message("unexpected_error"))
        self.assertNotIn("Traceback", response.get_data(as_text=True))

    def test_request_id_is_echoed(self) -> None:
        response = self.client.get("/_raise/missing", headers={"X-Request-Id": "req-123"})
        self.assertEqual(response.headers.get("X-Request-Id"), "req-123")
        self.assertEqual(response.get_json()["request_id"], "req-123")


class HealthTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="health")
        self.app = create_app(self._temp_db.make_config(Config, TESTING=True))
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        with self.app.app_context():
            close_db()
        self._temp_db.cleanup()

    def test_health_reports_backend(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["status"], "ok")
        self.assertEqual(payload["db"], "sqlite")
        self.assertTrue(response.headers.get("X-Request-Id"))


if __name__ == "__main__":
    unittest.main()
