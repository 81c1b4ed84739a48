from datetime import date
from decimal import Decimal

from rest_framework.test import APITestCase

from apps.catalog.models import Product, RecipeLine
from apps.core.models import StaffMember
from apps.farmers.models import Farmer
from apps.farmers.services import record_collection
from apps.inventory.models import InventoryBatch, InventoryItem, ItemCategory
from apps.inventory.valuation import get_milk_item
from apps.production.services import record_production
from apps.sales.models import Allocation, AllocationStatus


DAY = date(2026, 3, 2)


class LedgerApiTestCase(APITestCase):
    """One curd production of 100 units on DAY, made from 200 l of collected milk."""

    def setUp(self):
        self.client.credentials(HTTP_X_API_KEY="dev-api-key")
        self.admin = StaffMember.objects.create(name="Admin", role=StaffMember.Role.ADMIN)
        self.seller = StaffMember.objects.create(name="Saman", role=StaffMember.Role.SALESPERSON)
        self.other_seller = StaffMember.objects.create(name="Kamal", role=StaffMember.Role.SALESPERSON)
        self.product = Product.objects.create(name="Curd", code="CURD", selling_price=Decimal("150"))
        RecipeLine.objects.create(
            product=self.product,
            inventory_item=get_milk_item(),
            quantity_required=Decimal("0.5"),
            unit="l",
        )
        record_collection(Farmer.objects.create(name="Farmer A"), Decimal("200"), day=DAY)
        self.production = record_production(self.product, Decimal("100"), day=DAY, actor=self.admin)
        self.curd = InventoryItem.objects.get(name="Curd", category=ItemCategory.FINISHED_GOODS)

    def add_product(self, name, code, produced="100"):
        product = Product.objects.create(name=name, code=code, selling_price=Decimal("120"))
        RecipeLine.objects.create(
            product=product,
            inventory_item=get_milk_item(),
            quantity_required=Decimal("0.5"),
            unit="l",
        )
        return product, record_production(product, Decimal(produced), day=DAY, actor=self.admin)

    def as_actor(self, actor):
        return {"HTTP_X_ACTOR_ID": str(actor.id)}

    def allocate(self, quantity, salesperson=None, production=None, **extra):
        payload = {
            "product": str(self.product.id),
            "salesperson": str((salesperson or self.seller).id),
            "quantity": quantity,
            "production": (production or self.production).id,
        }
        payload.update(extra)
        return self.client.post("/api/v1/allocations/", payload, format="json", **self.as_actor(self.admin))

    def sell(self, quantity, free_quantity="0", actor=None, key="sale-001"):
        return self.client.post(
            "/api/v1/sales/",
            {
                "customer_name": "Shop 1",
                "items": [
                    {"product": str(self.product.id), "quantity": quantity, "free_quantity": free_quantity},
                ],
            },
            format="json",
            HTTP_IDEMPOTENCY_KEY=key,
            **self.as_actor(actor or self.seller),
        )

    def active_quantities(self, salesperson=None):
        return list(
            Allocation.objects.filter(
                salesperson=salesperson or self.seller,
                status=AllocationStatus.ACTIVE,
            )
            .order_by("allocation_date", "created_at", "id")
            .values_list("quantity_allocated", flat=True)
        )

    def assert_batches_match_item(self):
        self.curd.refresh_from_db()
        total = sum(
            InventoryBatch.objects.filter(inventory_item=self.curd, status="available").values_list(
                "quantity", flat=True
            ),
            Decimal("0"),
        )
        self.assertEqual(self.curd.quantity, total)
        self.assertFalse(InventoryBatch.objects.filter(quantity__lte=0).exists())
