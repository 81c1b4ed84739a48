from datetime import date
from decimal import Decimal

from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Product, RecipeLine
from apps.core.models import IdempotentRequest, StaffMember
from apps.farmers.models import Farmer
from apps.farmers.services import record_collection
from apps.inventory.models import InventoryBatch, InventoryItem, ItemCategory
from apps.inventory.valuation import get_milk_item
from apps.production.models import Production
from apps.production.services import record_production


DAY = date(2026, 3, 2)


class ProductionApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.admin = StaffMember.objects.create(name="Admin", role=StaffMember.Role.ADMIN)
        self.producer = StaffMember.objects.create(name="Plant", role=StaffMember.Role.PRODUCTION)
        self.seller = StaffMember.objects.create(name="Saman", role=StaffMember.Role.SALESPERSON)
        self.farmer = Farmer.objects.create(name="Farmer A")
        self.milk = get_milk_item()
        self.product = Product.objects.create(name="Curd", code="CURD")
        RecipeLine.objects.create(
            product=self.product,
            inventory_item=self.milk,
            quantity_required=Decimal("0.5"),
            unit="l",
        )

    def post_production(self, payload, key, actor=None):
        return self.client.post(
            "/api/v1/production/",
            payload,
            format="json",
            HTTP_X_ACTOR_ID=str((actor or self.producer).id),
            HTTP_IDEMPOTENCY_KEY=key,
        )

    def test_production_consumes_derived_milk(self):
        record_collection(self.farmer, Decimal("200"), day=DAY)
        record_production(self.product, Decimal("240"), day=DAY)
        self.milk.refresh_from_db()
        self.assertEqual(self.milk.quantity, Decimal("80"))

        response = self.post_production(
            {"product": str(self.product.id), "quantity": "100", "date": "2026-03-02"},
            "prod-001",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["batch_number"], "B-CURD-20260302-2")
        self.milk.refresh_from_db()
        self.assertEqual(self.milk.quantity, Decimal("30"))

        curd = InventoryItem.objects.get(name="Curd", category=ItemCategory.FINISHED_GOODS)
        self.assertEqual(curd.quantity, Decimal("340"))
        self.assertEqual(
            sorted(InventoryBatch.objects.filter(inventory_item=curd).values_list("batch_number", "quantity")),
            [("B-CURD-20260302", Decimal("240")), ("B-CURD-20260302-2", Decimal("100"))],
        )

    def test_every_short_ingredient_is_reported(self):
        sugar = InventoryItem.objects.create(
            name="Sugar",
            category=ItemCategory.RAW_MATERIAL,
            unit="kg",
            quantity=Decimal("1"),
        )
        RecipeLine.objects.create(
            product=self.product,
            inventory_item=sugar,
            quantity_required=Decimal("100"),
            unit="g",
            sort_order=1,
        )

        response = self.post_production({"product": str(self.product.id), "quantity": "100"}, "prod-short")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertEqual(body["code"], "insufficient_stock")
        self.assertEqual(
            body["data"]["shortfalls"],
            [
                {"item": "Milk", "required": "50", "available": "0", "shortfall": "50", "unit": "l"},
                {"item": "Sugar", "required": "10", "available": "1", "shortfall": "9", "unit": "kg"},
            ],
        )
        self.assertEqual(Production.objects.count(), 0)
        sugar.refresh_from_db()
        self.assertEqual(sugar.quantity, Decimal("1"))
        self.assertEqual(
            IdempotentRequest.objects.get(idempotency_key="prod-short").status,
            IdempotentRequest.Status.FAILED,
        )

    def test_stored_ingredients_are_deducted(self):
        record_collection(self.farmer, Decimal("100"), day=DAY)
        sugar = InventoryItem.objects.create(
            name="Sugar",
            category=ItemCategory.RAW_MATERIAL,
            unit="kg",
            quantity=Decimal("20"),
        )
        RecipeLine.objects.create(
            product=self.product,
            inventory_item=sugar,
            quantity_required=Decimal("100"),
            unit="g",
            sort_order=1,
        )

        response = self.post_production({"product": str(self.product.id), "quantity": "100"}, "prod-sugar")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        sugar.refresh_from_db()
        self.assertEqual(sugar.quantity, Decimal("10"))

    def test_missing_recipe_returns_400(self):
        yoghurt = Product.objects.create(name="Yoghurt", code="YOG")

        response = self.post_production({"product": str(yoghurt.id), "quantity": "10"}, "prod-norecipe")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["code"], "missing_recipe")

    def test_non_positive_quantity_returns_400(self):
        response = self.post_production({"product": str(self.product.id), "quantity": "0"}, "prod-zero")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("quantity", response.json()["field_errors"])

    def test_salesperson_cannot_record_production(self):
        response = self.post_production(
            {"product": str(self.product.id), "quantity": "1"},
            "prod-seller",
            actor=self.seller,
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_idempotency_key_returns_400(self):
        response = self.client.post(
            "/api/v1/production/",
            {"product": str(self.product.id), "quantity": "1"},
            format="json",
            HTTP_X_ACTOR_ID=str(self.producer.id),
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["detail"], "Idempotency-Key header is required.")

    def test_retry_with_same_key_is_replayed(self):
        record_collection(self.farmer, Decimal("100"), day=DAY)
        payload = {"product": str(self.product.id), "quantity": "40", "date": "2026-03-02"}

        first = self.post_production(payload, "prod-retry")
        second = self.post_production(payload, "prod-retry")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.json()["id"], second.json()["id"])
        self.assertEqual(Production.objects.count(), 1)
        self.milk.refresh_from_db()
        self.assertEqual(self.milk.quantity, Decimal("80"))

    def test_list_filters_by_product(self):
        record_collection(self.farmer, Decimal("100"), day=DAY)
        record_production(self.product, Decimal("10"), day=DAY)

        response = self.client.get("/api/v1/production/", {"product": str(self.product.id)})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]["product_name"], "Curd")


class ProductionCapacityApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.milk = get_milk_item()
        self.product = Product.objects.create(name="Curd", code="CURD")
        RecipeLine.objects.create(
            product=self.product,
            inventory_item=self.milk,
            quantity_required=Decimal("0.5"),
            unit="l",
        )
        Product.objects.create(name="Ghee", code="GHEE")
        record_collection(Farmer.objects.create(name="Farmer A"), Decimal("30.2"), day=DAY)

    def test_capacity_is_limited_by_scarcest_ingredient(self):
        response = self.client.get("/api/v1/production/capacity")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rows = {row["product_name"]: row for row in response.json()}
        self.assertEqual(rows["Curd"]["max_possible_units"], 60)
        self.assertEqual(rows["Curd"]["ingredients"][0]["inventory_name"], "Milk")
        self.assertEqual(rows["Ghee"]["max_possible_units"], 0)
        self.assertEqual(rows["Ghee"]["message"], "No recipe defined")
