from decimal import Decimal
from unittest import mock

from rest_framework import status

from apps.inventory.locks import LockSet, lock_order
from apps.inventory.models import InventoryItem
from apps.sales.models import Allocation, Sale
from apps.sales.services.allocation import allocate
from apps.sales.tests.base import LedgerApiTestCase


class MultiProductLockOrderTests(LedgerApiTestCase):
    """Requests touching several products lock them in one order, whatever the payload order."""

    def setUp(self):
        super().setUp()
        self.yoghurt, self.yoghurt_production = self.add_product("Yoghurt", "YOG")
        # Payload order is the reverse of the lock order.
        self.products = sorted([self.product, self.yoghurt], key=lambda product: lock_order(product.pk), reverse=True)
        self.productions = {self.product.pk: self.production, self.yoghurt.pk: self.yoghurt_production}

    def record_locks(self):
        seen = []
        original = LockSet.lock

        def recording_lock(lock_set, queryset):
            rows = original(lock_set, queryset)
            seen.extend((queryset.model, row) for row in rows)
            return rows

        return seen, mock.patch.object(LockSet, "lock", autospec=True, side_effect=recording_lock)

    def test_sale_deducts_lines_in_lock_order(self):
        for product in self.products:
            allocate(product, self.seller, Decimal("20"), self.admin, production=self.productions[product.pk])
        seen, patcher = self.record_locks()

        with patcher:
            response = self.client.post(
                "/api/v1/sales/",
                {"items": [{"product": str(product.id), "quantity": "5"} for product in self.products]},
                format="json",
                HTTP_IDEMPOTENCY_KEY="sale-two-products",
                **self.as_actor(self.seller),
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        locked = [row.product_id for model, row in seen if model is Allocation]
        self.assertEqual(locked, sorted([product.pk for product in self.products], key=lock_order))
        self.assertEqual(Sale.objects.get().items.count(), 2)

    def test_bulk_allocation_locks_items_in_lock_order_and_keeps_payload_order(self):
        seen, patcher = self.record_locks()

        with patcher:
            response = self.client.post(
                "/api/v1/allocations/",
                {
                    "allocations": [
                        {
                            "product": str(product.id),
                            "salesperson": str(self.seller.id),
                            "quantity": "10",
                            "production": self.productions[product.pk].id,
                        }
                        for product in self.products
                    ]
                },
                format="json",
                **self.as_actor(self.admin),
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([row["product"] for row in response.json()], [str(product.id) for product in self.products])
        locked = [row.name for model, row in seen if model is InventoryItem]
        expected = [product.name for product in sorted(self.products, key=lambda product: lock_order(product.pk))]
        self.assertEqual(locked, expected)
