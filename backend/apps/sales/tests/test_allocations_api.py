from datetime import date
from decimal import Decimal

from django.db import transaction
from rest_framework import status

from apps.inventory.locks import LockSet
from apps.inventory.models import BatchStatus, InventoryBatch
from apps.production.services import record_production
from apps.sales.models import Allocation, AllocationStatus
from apps.sales.services.allocation import allocate
from apps.sales.services.carryover import run_carryover_sweep
from apps.sales.services.deduction import consume_allocations_fifo
from apps.sales.services.restoration import restore
from apps.sales.tests.base import DAY, LedgerApiTestCase


class AllocationApiTests(LedgerApiTestCase):
    def test_allocation_reserves_from_production_batch(self):
        response = self.allocate("80")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.json()
        self.assertEqual(body["batch_number"], "B-CURD-20260302")
        self.assertEqual(body["status"], AllocationStatus.ACTIVE)
        self.assertEqual(InventoryBatch.objects.get(inventory_item=self.curd).quantity, Decimal("20"))
        self.assert_batches_match_item()

    def test_over_allocation_reports_production_remainder_and_carryover(self):
        self.allocate("80")

        response = self.allocate("30")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertEqual(body["code"], "insufficient_quantity")
        self.assertEqual(
            body["data"],
            {"requested": "30", "available": "20", "production_remaining": "20", "carryover": "0"},
        )
        self.assertEqual(Allocation.objects.count(), 1)
        self.assert_batches_match_item()

    def test_fully_reserved_production_is_not_available(self):
        self.allocate("100")

        self.assertFalse(InventoryBatch.objects.filter(inventory_item=self.curd).exists())
        self.assert_batches_match_item()
        response = self.allocate("1", salesperson=self.other_seller)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_carryover_covers_what_production_cannot(self):
        allocate(self.product, self.seller, Decimal("100"), self.admin, production=self.production, allocation_date=DAY)
        Allocation.objects.filter(salesperson=self.seller).update(quantity_allocated=Decimal("90"))
        run_carryover_sweep(DAY)
        next_day = date(2026, 3, 3)
        fresh = record_production(self.product, Decimal("50"), day=next_day, actor=self.admin)

        response = self.allocate("60", production=fresh, allocation_date="2026-03-03")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        carryover = InventoryBatch.objects.get(batch_number="CARRYOVER-CURD-20260302")
        self.assertEqual(carryover.quantity, Decimal("80"))
        self.assertFalse(InventoryBatch.objects.filter(production=fresh).exists())
        self.assert_batches_match_item()

    def test_allocation_requires_exactly_one_source(self):
        response = self.client.post(
            "/api/v1/allocations/",
            {
                "product": str(self.product.id),
                "salesperson": str(self.seller.id),
                "quantity": "5",
                "production": self.production.id,
                "inventory_item": str(self.curd.id),
            },
            format="json",
            **self.as_actor(self.admin),
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["code"], "validation_error")

    def test_allocation_from_inventory_links_oldest_batch(self):
        response = self.client.post(
            "/api/v1/allocations/",
            {
                "product": str(self.product.id),
                "salesperson": str(self.seller.id),
                "quantity": "25",
                "inventory_item": str(self.curd.id),
            },
            format="json",
            **self.as_actor(self.admin),
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["production"], self.production.id)
        self.assertEqual(response.json()["batch_number"], "B-CURD-20260302")
        self.curd.refresh_from_db()
        self.assertEqual(self.curd.quantity, Decimal("75"))

    def test_bulk_allocation_is_all_or_nothing(self):
        response = self.client.post(
            "/api/v1/allocations/",
            {
                "allocations": [
                    {
                        "product": str(self.product.id),
                        "salesperson": str(self.seller.id),
                        "quantity": "60",
                        "production": self.production.id,
                    },
                    {
                        "product": str(self.product.id),
                        "salesperson": str(self.other_seller.id),
                        "quantity": "60",
                        "production": self.production.id,
                    },
                ]
            },
            format="json",
            **self.as_actor(self.admin),
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Allocation.objects.count(), 0)
        self.assertEqual(InventoryBatch.objects.get(inventory_item=self.curd).quantity, Decimal("100"))

    def test_bulk_allocation_creates_every_row(self):
        response = self.client.post(
            "/api/v1/allocations/",
            {
                "allocations": [
                    {
                        "product": str(self.product.id),
                        "salesperson": str(self.seller.id),
                        "quantity": "40",
                        "production": self.production.id,
                    },
                    {
                        "product": str(self.product.id),
                        "salesperson": str(self.other_seller.id),
                        "quantity": "60",
                        "production": self.production.id,
                    },
                ]
            },
            format="json",
            **self.as_actor(self.admin),
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.json()), 2)
        self.assert_batches_match_item()

    def test_only_admin_allocates(self):
        response = self.client.post(
            "/api/v1/allocations/",
            {
                "product": str(self.product.id),
                "salesperson": str(self.seller.id),
                "quantity": "5",
                "production": self.production.id,
            },
            format="json",
            **self.as_actor(self.seller),
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_my_inventory_sums_active_allocations(self):
        self.allocate("30")
        self.allocate("20")

        response = self.client.get("/api/v1/allocations/my-inventory", **self.as_actor(self.seller))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()[0]["product_code"], "CURD")
        self.assertEqual(Decimal(response.json()[0]["quantity"]), Decimal("50"))


class AllocationFifoTests(LedgerApiTestCase):
    def test_oldest_allocation_is_consumed_first(self):
        first = Allocation.objects.create(
            product=self.product,
            salesperson=self.seller,
            production=self.production,
            quantity_allocated=Decimal("5"),
            allocation_date=date(2026, 3, 1),
        )
        second = Allocation.objects.create(
            product=self.product,
            salesperson=self.seller,
            production=self.production,
            quantity_allocated=Decimal("5"),
            allocation_date=date(2026, 3, 2),
        )

        with transaction.atomic():
            consume_allocations_fifo(self.seller, self.product, Decimal("7"), LockSet())

        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.quantity_allocated, Decimal("0"))
        self.assertEqual(first.status, AllocationStatus.COMPLETED)
        self.assertEqual(second.quantity_allocated, Decimal("3"))
        self.assertEqual(second.status, AllocationStatus.ACTIVE)


class RestoredAllocationStockTests(LedgerApiTestCase):
    def test_restored_units_do_not_hide_batch_stock(self):
        # Restored units are booked against the latest production without coming out of its batch.
        with transaction.atomic():
            restore(self.other_seller, self.product, Decimal("30"), LockSet())

        response = self.allocate("70")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        batch = InventoryBatch.objects.get(inventory_item=self.curd)
        self.assertEqual(batch.quantity, Decimal("30"))
        self.assertEqual(batch.status, BatchStatus.AVAILABLE)
        self.curd.refresh_from_db()
        self.assertEqual(self.curd.quantity, Decimal("30"))
        self.assert_batches_match_item()

        sale = self.sell("30", actor=self.admin, key="sale-leftover")
        self.assertEqual(sale.status_code, status.HTTP_201_CREATED)
        self.assertFalse(InventoryBatch.objects.filter(inventory_item=self.curd).exists())
