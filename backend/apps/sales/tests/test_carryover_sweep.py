from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError

from apps.inventory.models import InventoryBatch
from apps.sales.models import Allocation, AllocationStatus
from apps.sales.services.carryover import run_carryover_sweep
from apps.sales.tests.base import DAY, LedgerApiTestCase


class CarryoverSweepTests(LedgerApiTestCase):
    def setUp(self):
        super().setUp()
        self.allocate("60", allocation_date="2026-03-02")
        self.allocate("30", salesperson=self.other_seller, allocation_date="2026-03-02")
        self.sell("25", free_quantity="5")

    def test_sweep_returns_unsold_remainder_to_finished_goods(self):
        swept = run_carryover_sweep(DAY)

        self.assertEqual(swept, [{"product": str(self.product.id), "product_code": "CURD", "quantity": "60.000"}])
        batch = InventoryBatch.objects.get(batch_number="CARRYOVER-CURD-20260302")
        self.assertIsNone(batch.production_id)
        self.assertEqual(batch.quantity, Decimal("60"))
        self.assertFalse(Allocation.objects.filter(status=AllocationStatus.ACTIVE).exists())
        self.curd.refresh_from_db()
        self.assertEqual(self.curd.quantity, Decimal("70"))
        self.assert_batches_match_item()

    def test_second_sweep_for_same_day_adds_nothing(self):
        run_carryover_sweep(DAY)

        self.assertEqual(run_carryover_sweep(DAY), [])
        self.assertEqual(InventoryBatch.objects.get(batch_number="CARRYOVER-CURD-20260302").quantity, Decimal("60"))

    def test_other_days_are_left_alone(self):
        self.assertEqual(run_carryover_sweep(DAY.replace(day=3)), [])
        self.assertEqual(Allocation.objects.filter(status=AllocationStatus.ACTIVE).count(), 2)

    def test_command_prints_swept_products(self):
        out = StringIO()

        call_command("run_carryover_sweep", "--date", "2026-03-02", stdout=out)

        output = out.getvalue()
        self.assertIn("CURD: 60.000", output)
        self.assertIn("Carryover sweep for 2026-03-02 finished: 1 products", output)

    def test_command_rejects_bad_date(self):
        with self.assertRaises(CommandError):
            call_command("run_carryover_sweep", "--date", "02/03/2026", stdout=StringIO())
