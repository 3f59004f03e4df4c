# products/tests/test_inventory_api.py

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from products.models import OrderRef, Product, ShipmentRef, StockMovement
from products.services.stock_ledger import ReceiveLine, post_bulk_receive, post_movement

User = get_user_model()


class InventoryApiTests(TestCase):
    """
    GUARANTEES:
    - Mutations answer with {success, data} or {success, error}
    - Only managers/admins adjust stock or delete movements
    - Ledger fields are read-only through the product endpoints
    """

    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(email="staff@example.com", password="password123")
        self.manager = User.objects.create_user(
            email="manager@example.com", password="password123", role=User.Role.MANAGER
        )
        self.product = Product.objects.create(
            sku="JERSEY-HOME-S",
            name="Home Jersey S",
            opening_stock=20,
            retail_price=Decimal("60.00"),
            reorder_level=5,
        )

    def adjust_url(self, product_id=None):
        return f"/api/inventory/products/{product_id or self.product.pk}/adjust-stock/"

    def test_unauthenticated_requests_are_rejected(self):
        res = self.client.get("/api/inventory/products/")
        self.assertEqual(res.status_code, 401)

    def test_staff_cannot_adjust_stock(self):
        self.client.force_authenticate(self.staff)
        res = self.client.post(
            self.adjust_url(),
            {"quantity": -1, "reason": "damage", "notes": "Torn seam"},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_manager_adjustment_returns_envelope(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            self.adjust_url(),
            {"quantity": -2, "reason": "damage", "notes": "Torn seam"},
            format="json",
        )

        self.assertEqual(res.status_code, 201)
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["data"]["quantity"], -2)
        self.assertEqual(res.data["data"]["stock_after"], 18)
        self.assertEqual(res.data["data"]["movement_type"], "out")

    def test_adjustment_below_zero_is_a_domain_error(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            self.adjust_url(),
            {"quantity": -21, "reason": "loss", "notes": "Stocktake shortfall"},
            format="json",
        )

        self.assertEqual(res.status_code, 409)
        self.assertFalse(res.data["success"])
        self.assertEqual(res.data["error"]["code"], "insufficient_stock")
        self.assertEqual(res.data["error"]["details"]["available"], 20)

    def test_invalid_adjustment_input(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            self.adjust_url(),
            {"quantity": 0, "reason": "sale", "notes": "x"},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "validation_error")
        self.assertIn("quantity", res.data["error"]["details"])
        self.assertIn("reason", res.data["error"]["details"])

    def test_adjusting_unknown_product(self):
        self.client.force_authenticate(self.manager)
        res = self.client.post(
            self.adjust_url(uuid.uuid4()),
            {"quantity": 1, "reason": "found", "notes": "Found a spare"},
            format="json",
        )
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "not_found")

    def test_stock_movements_respects_limit(self):
        for _ in range(3):
            post_movement(
                product_id=self.product.pk,
                quantity=-1,
                reason=StockMovement.Reason.SALE,
                reference=OrderRef(id=uuid.uuid4()),
            )

        self.client.force_authenticate(self.staff)
        res = self.client.get(f"/api/inventory/products/{self.product.pk}/stock-movements/?limit=2")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        self.assertEqual(len(res.data["data"]), 2)

    def test_ledger_fields_are_read_only(self):
        self.client.force_authenticate(self.staff)
        res = self.client.patch(
            f"/api/inventory/products/{self.product.pk}/",
            {"current_stock": 999, "landed_cost": "1.00", "name": "Home Jersey Small"},
            format="json",
        )

        self.assertEqual(res.status_code, 200)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 20)
        self.assertIsNone(self.product.landed_cost)
        self.assertEqual(self.product.name, "Home Jersey Small")

    def test_inventory_value_uses_landed_cost(self):
        post_bulk_receive(
            lines=[ReceiveLine(self.product.pk, 10, Decimal("8.00"), Decimal("10.00"))],
            reference=ShipmentRef(id=uuid.uuid4()),
        )

        self.client.force_authenticate(self.staff)
        res = self.client.get("/api/inventory/products/inventory-value/")

        self.assertEqual(res.status_code, 200)
        # 30 units at the first-receipt landed cost
        self.assertEqual(res.data["data"]["total_value"], "300.00")
        self.assertEqual(res.data["data"]["total_units"], 30)


class StockMovementApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(email="staff@example.com", password="password123")
        self.manager = User.objects.create_user(
            email="manager@example.com", password="password123", role=User.Role.MANAGER
        )
        self.product = Product.objects.create(sku="SCARF-RED", name="Red Scarf", opening_stock=0)
        receipt = post_bulk_receive(
            lines=[ReceiveLine(self.product.pk, 10, Decimal("3.00"), Decimal("3.50"))],
            reference=ShipmentRef(id=uuid.uuid4()),
        )
        self.movement_id = receipt.movement_ids[0]

    def test_staff_cannot_delete_movements(self):
        self.client.force_authenticate(self.staff)
        res = self.client.delete(f"/api/inventory/stock-movements/{self.movement_id}/")
        self.assertEqual(res.status_code, 403)

    def test_manager_delete_reverses_stock(self):
        self.client.force_authenticate(self.manager)
        res = self.client.delete(f"/api/inventory/stock-movements/{self.movement_id}/")

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["data"]["stock_after"], 0)
        self.assertFalse(StockMovement.objects.filter(pk=self.movement_id).exists())

    def test_delete_refused_when_stock_would_go_negative(self):
        post_movement(
            product_id=self.product.pk,
            quantity=-5,
            reason=StockMovement.Reason.SALE,
            reference=OrderRef(id=uuid.uuid4()),
        )

        self.client.force_authenticate(self.manager)
        res = self.client.delete(f"/api/inventory/stock-movements/{self.movement_id}/")

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "would_go_negative")
        self.assertTrue(StockMovement.objects.filter(pk=self.movement_id).exists())

    def test_list_filters_by_product(self):
        other = Product.objects.create(sku="SCARF-BLU", name="Blue Scarf", opening_stock=3)
        post_movement(
            product_id=other.pk,
            quantity=-1,
            reason=StockMovement.Reason.SALE,
            reference=OrderRef(id=uuid.uuid4()),
        )

        self.client.force_authenticate(self.staff)
        res = self.client.get(f"/api/inventory/stock-movements/?product={self.product.pk}")

        self.assertEqual(res.status_code, 200)
        rows = res.data["results"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["product"], self.product.pk)
