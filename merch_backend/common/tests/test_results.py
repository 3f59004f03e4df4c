# common/tests/test_results.py

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from common.exceptions import InvalidTransitionError, NotFoundError
from common.results import invalid, run_service


class RunServiceTests(SimpleTestCase):
    """
    GUARANTEES:
    - Success wraps the (serialized) return value in {success, data}
    - DomainErrors map to their own status and code
    - Unexpected exceptions never leak their message
    """

    def test_success_envelope(self):
        res = run_service("double", lambda x: x * 2, 21, serialize=lambda v: {"value": v}, status_code=201)

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data, {"success": True, "data": {"value": 42}})

    def test_domain_error_envelope(self):
        def fail():
            raise InvalidTransitionError(entity="order", from_status="pending", to_status="shipped")

        res = run_service("updateOrderStatus", fail)

        self.assertEqual(res.status_code, 409)
        self.assertFalse(res.data["success"])
        self.assertEqual(res.data["error"]["code"], "invalid_transition")
        self.assertEqual(res.data["error"]["details"]["from_status"], "pending")

    def test_not_found(self):
        def fail():
            raise NotFoundError("Order not found", order_id="x")

        res = run_service("getOrder", fail)
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["message"], "Order not found")

    def test_django_validation_error(self):
        def fail():
            raise ValidationError({"total": "Total cannot drop below the amount already paid"})

        res = run_service("updateOrder", fail)

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "validation_error")
        self.assertIn("total", res.data["error"]["details"])

    def test_unexpected_error_is_opaque(self):
        def fail():
            raise RuntimeError("database password is hunter2")

        with self.assertLogs("api", level="ERROR"):
            res = run_service("explode", fail)

        self.assertEqual(res.status_code, 500)
        self.assertEqual(res.data["error"]["code"], "internal_error")
        self.assertNotIn("hunter2", res.data["error"]["message"])

    def test_invalid_input(self):
        res = invalid({"amount": ["This field is required."]})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["details"], {"amount": ["This field is required."]})
