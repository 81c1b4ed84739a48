from decimal import Decimal
from unittest import mock

from django.db import transaction
from django.test import override_settings
from rest_framework import status

from apps.inventory.locks import LockSet
from apps.sales.models import Allocation, AllocationStatus, Payment, Return, Sale, SaleChannel
from apps.sales.services.payments import record_payment_free_items
from apps.sales.tests.base import LedgerApiTestCase


class SaleApiTests(LedgerApiTestCase):
    def setUp(self):
        super().setUp()
        self.allocate("80")

    def test_sold_and_free_units_are_deducted_from_allocation(self):
        response = self.sell("15", free_quantity="5")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["channel"], SaleChannel.SALESPERSON)
        self.assertEqual(self.active_quantities(), [Decimal("60")])

    def test_selling_more_than_allocated_fails_without_writes(self):
        response = self.sell("81")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertEqual(body["code"], "insufficient_quantity")
        self.assertEqual(body["data"], {"requested": "81", "available": "80"})
        self.assertEqual(Sale.objects.count(), 0)
        self.assertEqual(self.active_quantities(), [Decimal("80")])

    def test_exhausted_allocation_is_completed(self):
        self.sell("80")

        allocation = Allocation.objects.get(salesperson=self.seller)
        self.assertEqual(allocation.status, AllocationStatus.COMPLETED)
        self.assertEqual(allocation.quantity_allocated, Decimal("0"))

    def test_sale_retry_is_replayed(self):
        first = self.sell("10", key="sale-retry")
        second = self.sell("10", key="sale-retry")

        self.assertEqual(first.json()["id"], second.json()["id"])
        self.assertEqual(Sale.objects.count(), 1)
        self.assertEqual(self.active_quantities(), [Decimal("70")])

    def test_admin_sale_draws_finished_goods(self):
        response = self.sell("5", actor=self.admin, key="sale-admin")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["channel"], SaleChannel.ADMIN)
        self.assertIsNone(response.json()["salesperson"])
        self.curd.refresh_from_db()
        self.assertEqual(self.curd.quantity, Decimal("15"))
        self.assert_batches_match_item()
        self.assertEqual(self.active_quantities(), [Decimal("80")])

    def test_sale_detail(self):
        sale_id = self.sell("3").json()["id"]

        response = self.client.get(f"/api/v1/sales/{sale_id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["items"][0]["quantity"], "3.000")


class SaleReversalApiTests(LedgerApiTestCase):
    def setUp(self):
        super().setUp()
        self.allocate("80")
        self.sale_id = self.sell("10", free_quantity="2").json()["id"]

    def reverse(self, confirmation="dev-reversal-secret"):
        return self.client.post(
            f"/api/v1/sales/{self.sale_id}/reverse",
            {"confirmation": confirmation, "reason": "entered twice"},
            format="json",
            **self.as_actor(self.admin),
        )

    def test_reversal_restores_sold_and_free_units(self):
        self.assertEqual(self.active_quantities(), [Decimal("68")])

        response = self.reverse()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.json()["is_reversed"])
        self.assertEqual(self.active_quantities(), [Decimal("80")])

    def test_second_reversal_conflicts(self):
        self.reverse()

        response = self.reverse()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()["code"], "sale_already_reversed")
        self.assertEqual(self.active_quantities(), [Decimal("80")])

    def test_wrong_confirmation_is_refused(self):
        response = self.reverse(confirmation="guess")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Sale.objects.get(pk=self.sale_id).is_reversed)

    @override_settings(DAIRY_REVERSAL_SECRET="rotated")
    def test_confirmation_follows_settings(self):
        self.assertEqual(self.reverse().status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.reverse(confirmation="rotated").status_code, status.HTTP_200_OK)

    def test_reversal_opens_new_allocation_when_none_is_active(self):
        self.sell("68", key="sale-rest")
        self.assertEqual(self.active_quantities(), [])

        self.reverse()

        restored = Allocation.objects.get(salesperson=self.seller, status=AllocationStatus.ACTIVE)
        self.assertEqual(restored.quantity_allocated, Decimal("12"))
        self.assertTrue(restored.batch_number.startswith("RESTORED-CURD-"))
        self.assertEqual(restored.production_id, self.production.id)

    def test_reversal_nets_returns_and_payment_free_items(self):
        self.client.post(
            f"/api/v1/sales/{self.sale_id}/returns",
            {"reason": "sour", "items": [{"product": str(self.product.id), "quantity_returned": "4"}]},
            format="json",
            **self.as_actor(self.seller),
        )
        self.client.post(
            "/api/v1/payments/",
            {
                "sale": self.sale_id,
                "amount": "900.00",
                "method": "cash",
                "free_items": [{"product": str(self.product.id), "quantity": "3"}],
            },
            format="json",
            HTTP_IDEMPOTENCY_KEY="pay-rev",
            **self.as_actor(self.seller),
        )
        self.assertEqual(self.active_quantities(), [Decimal("69")])

        self.reverse()

        self.assertEqual(self.active_quantities(), [Decimal("80")])
        self.assertEqual(Return.objects.count(), 0)
        self.assertEqual(Payment.objects.count(), 0)


class SaleReturnApiTests(LedgerApiTestCase):
    def setUp(self):
        super().setUp()
        self.allocate("80")
        self.sale_id = self.sell("10").json()["id"]

    def post_return(self, items, actor=None):
        return self.client.post(
            f"/api/v1/sales/{self.sale_id}/returns",
            {"reason": "damaged cups", "items": items},
            format="json",
            **self.as_actor(actor or self.seller),
        )

    def test_return_with_replacement(self):
        response = self.post_return(
            [{"product": str(self.product.id), "quantity_returned": "3", "replacement_quantity": "1"}]
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.active_quantities(), [Decimal("72")])
        listing = self.client.get(f"/api/v1/sales/{self.sale_id}/returns")
        self.assertEqual(len(listing.json()), 1)

    def test_cannot_return_more_than_sold(self):
        response = self.post_return([{"product": str(self.product.id), "quantity_returned": "11"}])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.active_quantities(), [Decimal("70")])

    def test_other_salesperson_cannot_process_return(self):
        response = self.post_return(
            [{"product": str(self.product.id), "quantity_returned": "1"}],
            actor=self.other_seller,
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PaymentApiTests(LedgerApiTestCase):
    def setUp(self):
        super().setUp()
        self.allocate("80")
        self.sale_id = self.sell("10").json()["id"]

    def pay(self, payload, key):
        payload = {"sale": self.sale_id, "amount": "1500.00", **payload}
        return self.client.post(
            "/api/v1/payments/",
            payload,
            format="json",
            HTTP_IDEMPOTENCY_KEY=key,
            **self.as_actor(self.seller),
        )

    def test_cheque_payment_requires_cheque_details(self):
        response = self.pay({"method": "cheque"}, "pay-cheque-missing")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("cheque", response.json()["field_errors"])

    def test_cheque_payment_is_recorded(self):
        response = self.pay(
            {"method": "cheque", "cheque": {"cheque_number": "000123", "bank_name": "BOC"}},
            "pay-cheque",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["cheque"]["cheque_number"], "000123")
        self.assertEqual(response.json()["cheque"]["status"], "pending")

    def test_free_items_deduct_only_the_change(self):
        response = self.pay({"method": "cash", "free_items": [{"product": str(self.product.id), "quantity": "4"}]}, "p1")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.active_quantities(), [Decimal("66")])
        payment = Payment.objects.get()

        with transaction.atomic():
            record_payment_free_items(payment, [{"product": self.product, "quantity": Decimal("4")}], LockSet())
        self.assertEqual(self.active_quantities(), [Decimal("66")])

        with transaction.atomic():
            record_payment_free_items(payment, [{"product": self.product, "quantity": Decimal("1")}], LockSet())
        self.assertEqual(self.active_quantities(), [Decimal("69")])
        self.assertEqual(payment.free_items.get().quantity, Decimal("1"))

    def test_payment_on_reversed_sale_conflicts(self):
        Sale.objects.filter(pk=self.sale_id).update(is_reversed=True)

        response = self.pay({"method": "cash"}, "pay-reversed")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)


class InternalConsistencyTests(LedgerApiTestCase):
    def setUp(self):
        super().setUp()
        self.allocate("80")

    def test_uncovered_fifo_walk_fails_loudly_and_writes_nothing(self):
        original = LockSet.lock

        def understated_lock(lock_set, queryset):
            rows = original(lock_set, queryset)
            if queryset.model is Allocation:
                for row in rows:
                    row.quantity_allocated -= Decimal("10")
            return rows

        with mock.patch.object(LockSet, "lock", autospec=True, side_effect=understated_lock):
            with self.assertLogs("apps.core.api.exceptions", level="ERROR"):
                response = self.sell("75", key="sale-uncovered")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        body = response.json()
        self.assertEqual(body["code"], "internal_consistency")
        self.assertEqual(Decimal(body["data"]["uncovered"]), Decimal("5"))
        self.assertEqual(body["data"]["salesperson"], str(self.seller.id))
        self.assertEqual(Sale.objects.count(), 0)
        self.assertEqual(self.active_quantities(), [Decimal("80")])
