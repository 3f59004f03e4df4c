# products/tests/test_potential_products.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from common.exceptions import InvalidStateError, NotFoundError
from products.models import PotentialProduct, Product
from products.services import potential_products as service
from products.services.stock_ledger import reconcile_product
from purchases.models import Supplier

User = get_user_model()


class MarginEstimateTests(SimpleTestCase):
    def test_margin_profit_and_investment(self):
        estimate = service.estimate_margin(cost=Decimal("10.00"), price=Decimal("25.00"), moq=100)

        self.assertEqual(estimate.margin_percent, Decimal("150.0"))
        self.assertEqual(estimate.profit_per_unit, Decimal("15.00"))
        self.assertEqual(estimate.total_investment, Decimal("1000.00"))

    def test_negative_margin_rounds_to_one_place(self):
        estimate = service.estimate_margin(cost=Decimal("3.00"), price=Decimal("2.00"))

        self.assertEqual(estimate.margin_percent, Decimal("-33.3"))
        self.assertEqual(estimate.profit_per_unit, Decimal("-1.00"))
        self.assertIsNone(estimate.total_investment)

    def test_missing_figures_give_no_estimate(self):
        self.assertIsNone(service.estimate_margin(cost=None, price=Decimal("5.00")))
        self.assertIsNone(service.estimate_margin(cost=Decimal("5.00"), price=None))


class PotentialProductServiceTests(TestCase):
    """
    GUARANTEES:
    - Only the creator sees or changes a potential product
    - Converted potential products are frozen
    - Conversion creates a Product whose opening stock seeds the ledger
    """

    def setUp(self):
        self.user = User.objects.create_user(email="buyer@example.com", password="password123")
        self.other = User.objects.create_user(email="other@example.com", password="password123")
        self.supplier = Supplier.objects.create(name="Guangzhou Knits")

    def make(self, **fields):
        fields.setdefault("name", "Retro Scarf")
        fields.setdefault("supplier_id", self.supplier.pk)
        fields.setdefault("estimated_cost", Decimal("10.00"))
        fields.setdefault("estimated_price", Decimal("25.00"))
        return service.create_potential_product(user=self.user, **fields)

    def approved(self, **fields):
        pp = self.make(**fields)
        return service.update_potential_product_status(
            potential_product_id=pp.pk, status=PotentialProduct.Status.APPROVED, user=self.user
        )

    def convert(self, pp, **overrides):
        params = {"sku": "scarf-retro", "wholesale_price": Decimal("18.00"), "opening_stock": 24}
        params.update(overrides)
        return service.convert_to_product(potential_product_id=pp.pk, user=self.user, **params)

    def test_create_defaults_to_researching(self):
        pp = self.make()

        self.assertEqual(pp.status, PotentialProduct.Status.RESEARCHING)
        self.assertEqual(pp.created_by, self.user)
        self.assertEqual(pp.supplier, self.supplier)

    def test_create_cannot_start_converted(self):
        with self.assertRaises(ValidationError):
            self.make(status=PotentialProduct.Status.CONVERTED)

    def test_name_must_have_two_characters(self):
        with self.assertRaises(ValidationError):
            self.make(name=" x ")

    def test_unknown_supplier(self):
        with self.assertRaises(NotFoundError):
            self.make(supplier_id="00000000-0000-0000-0000-000000000000")

    def test_other_users_cannot_touch_it(self):
        pp = self.make()

        with self.assertRaises(NotFoundError):
            service.get_potential_product(pp.pk, user=self.other)
        with self.assertRaises(NotFoundError):
            service.delete_potential_product(potential_product_id=pp.pk, user=self.other)

    def test_status_cannot_be_set_to_converted_directly(self):
        pp = self.make()
        with self.assertRaises(ValidationError):
            service.update_potential_product_status(
                potential_product_id=pp.pk, status=PotentialProduct.Status.CONVERTED, user=self.user
            )

    def test_conversion_creates_product_through_the_ledger_path(self):
        pp = self.approved(category="Accessories", weight_kg=Decimal("0.250"), moq=50)

        product = self.convert(pp)

        self.assertEqual(product.sku, "SCARF-RETRO")
        self.assertEqual(product.name, "Retro Scarf")
        self.assertEqual(product.cost_price, Decimal("10.00"))
        self.assertEqual(product.retail_price, Decimal("25.00"))
        self.assertEqual(product.wholesale_price, Decimal("18.00"))
        self.assertEqual(product.moq, 50)
        self.assertEqual(product.opening_stock, 24)
        self.assertEqual(product.current_stock, 24)
        self.assertIsNone(product.landed_cost)
        self.assertTrue(reconcile_product(product).ok)

        pp.refresh_from_db()
        self.assertEqual(pp.status, PotentialProduct.Status.CONVERTED)
        self.assertEqual(pp.product, product)

    def test_only_approved_items_convert(self):
        pp = self.make()
        with self.assertRaises(InvalidStateError):
            self.convert(pp)
        self.assertFalse(Product.objects.exists())

    def test_conversion_needs_supplier_and_prices(self):
        no_supplier = self.approved(supplier_id=None)
        with self.assertRaises(InvalidStateError):
            self.convert(no_supplier)

        no_price = self.approved(estimated_price=None)
        with self.assertRaises(InvalidStateError):
            self.convert(no_price)

    def test_duplicate_sku_leaves_item_approved(self):
        Product.objects.create(sku="SCARF-RETRO", name="Existing scarf")
        pp = self.approved()

        with self.assertRaises(ValidationError):
            self.convert(pp)

        pp.refresh_from_db()
        self.assertEqual(pp.status, PotentialProduct.Status.APPROVED)
        self.assertIsNone(pp.product)

    def test_converted_item_is_frozen(self):
        pp = self.approved()
        self.convert(pp)

        with self.assertRaises(InvalidStateError):
            service.update_potential_product(potential_product_id=pp.pk, user=self.user, notes="late edit")
        with self.assertRaises(InvalidStateError):
            service.update_potential_product_status(
                potential_product_id=pp.pk, status=PotentialProduct.Status.REJECTED, user=self.user
            )
        with self.assertRaises(InvalidStateError):
            service.delete_potential_product(potential_product_id=pp.pk, user=self.user)
        with self.assertRaises(InvalidStateError):
            self.convert(pp, sku="SCARF-RETRO-2")

    def test_counts_per_status(self):
        self.make()
        self.make(name="Bucket Hat")
        rejected = self.make(name="Foam Finger")
        service.update_potential_product_status(
            potential_product_id=rejected.pk, status=PotentialProduct.Status.REJECTED, user=self.user
        )
        self.convert(self.approved(name="Club Mug"))

        counts = service.potential_product_counts(user=self.user)

        self.assertEqual(counts["researching"], 2)
        self.assertEqual(counts["rejected"], 1)
        self.assertEqual(counts["approved"], 0)
        self.assertEqual(counts["converted"], 1)
        self.assertEqual(counts["total"], 4)
        self.assertEqual(service.potential_product_counts(user=self.other)["total"], 0)


class PotentialProductApiTests(TestCase):
    """
    GUARANTEES:
    - Mutations answer with the {success, data|error} envelope
    - Lists only show the caller's potential products
    - Conversion returns the new product with its seeded stock
    """

    base = "/api/inventory/potential-products/"

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="buyer@example.com", password="password123")
        self.other = User.objects.create_user(email="other@example.com", password="password123")
        self.supplier = Supplier.objects.create(name="Porto Textiles")
        self.client.force_authenticate(self.user)

    def create(self, **payload):
        body = {
            "name": "Away Scarf",
            "supplier_id": str(self.supplier.pk),
            "estimated_cost": "8.00",
            "estimated_price": "20.00",
            "moq": 200,
        }
        body.update(payload)
        return self.client.post(self.base, body, format="json")

    def test_create_returns_margin(self):
        res = self.create()

        self.assertEqual(res.status_code, 201)
        self.assertTrue(res.data["success"])
        data = res.data["data"]
        self.assertEqual(data["status"], "researching")
        self.assertEqual(data["supplier_name"], "Porto Textiles")
        self.assertEqual(data["margin"]["margin_percent"], "150.0")
        self.assertEqual(data["margin"]["profit_per_unit"], "12.00")
        self.assertEqual(data["margin"]["total_investment"], "1600.00")

    def test_invalid_input(self):
        res = self.create(name="x", estimated_cost="-1")

        self.assertEqual(res.status_code, 400)
        self.assertFalse(res.data["success"])
        self.assertIn("name", res.data["error"]["details"])
        self.assertIn("estimated_cost", res.data["error"]["details"])

    def test_list_is_scoped_to_creator(self):
        self.create()
        self.client.force_authenticate(self.other)
        self.create(name="Other Scarf")

        res = self.client.get(self.base)

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["name"], "Other Scarf")

    def test_other_users_item_is_not_found(self):
        pp_id = self.create().data["data"]["id"]
        self.client.force_authenticate(self.other)

        res = self.client.get(f"{self.base}{pp_id}/")

        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "not_found")

    def test_status_then_convert(self):
        pp_id = self.create().data["data"]["id"]

        res = self.client.post(f"{self.base}{pp_id}/convert/", {"sku": "SCARF-AWAY", "wholesale_price": "15.00"}, format="json")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "invalid_state")

        res = self.client.post(f"{self.base}{pp_id}/status/", {"status": "approved"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["status"], "approved")

        res = self.client.post(
            f"{self.base}{pp_id}/convert/",
            {"sku": "scarf-away", "wholesale_price": "15.00", "opening_stock": 40},
            format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["data"]["sku"], "SCARF-AWAY")
        self.assertEqual(res.data["data"]["current_stock"], 40)

        res = self.client.get(f"{self.base}{pp_id}/")
        self.assertEqual(res.data["data"]["status"], "converted")
        self.assertEqual(res.data["data"]["product_sku"], "SCARF-AWAY")

    def test_status_endpoint_refuses_converted(self):
        pp_id = self.create().data["data"]["id"]

        res = self.client.post(f"{self.base}{pp_id}/status/", {"status": "converted"}, format="json")

        self.assertEqual(res.status_code, 400)

    def test_patch_and_delete(self):
        pp_id = self.create().data["data"]["id"]

        res = self.client.patch(f"{self.base}{pp_id}/", {"estimated_price": "24.00"}, format="json")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["estimated_price"], "24.00")

        res = self.client.delete(f"{self.base}{pp_id}/")
        self.assertEqual(res.status_code, 200)
        self.assertFalse(PotentialProduct.objects.filter(pk=pp_id).exists())

    def test_summary(self):
        self.create()
        res = self.client.get(f"{self.base}summary/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["data"]["researching"], 1)
        self.assertEqual(res.data["data"]["total"], 1)
