import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.inventory import ledger
from apps.inventory.batch_numbers import BatchKey
from apps.inventory.locks import LockSet
from apps.sales.models import Allocation, AllocationStatus


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def run_carryover_sweep(day: date | None = None) -> list[dict]:
    """Move what is left on the day's active allocations back into finished goods.

    Each product's remainder is merged into its `CARRYOVER-<code>-<yyyymmdd>` batch and
    the swept allocations become `returned`, so a second run for the same day adds nothing.
    """
    day = day or timezone.localdate()
    with transaction.atomic():
        locks = LockSet()
        candidates = Allocation.objects.filter(allocation_date=day, status=AllocationStatus.ACTIVE)
        products = {row.product_id: row.product for row in candidates.select_related("product")}
        items = {
            product_id: ledger.get_or_create_finished_goods_item(product) for product_id, product in products.items()
        }
        ledger.lock_items(list(items.values()), locks)

        allocations = locks.lock(candidates)
        remaining = defaultdict(lambda: ZERO)
        for allocation in allocations:
            remaining[allocation.product_id] += allocation.quantity_allocated

        swept = []
        for product_id in sorted(remaining, key=str):
            product = products.get(product_id)
            if product is None:
                # Allocated after the candidate read; picked up by the next sweep.
                logger.warning("Skipping allocation product %s not seen before locking", product_id)
                continue
            quantity = remaining[product_id]
            if quantity > 0:
                item = items[product_id]
                ledger.create_or_merge_batch(item, BatchKey.carryover(product.code, day), quantity, day, locks)
                ledger.reconcile_item_quantity(item)
            swept.append({"product": str(product_id), "product_code": product.code, "quantity": str(quantity)})

        swept_ids = [allocation.pk for allocation in allocations if allocation.product_id in products]
        Allocation.objects.filter(pk__in=swept_ids).update(status=AllocationStatus.RETURNED, updated_at=timezone.now())

    logger.info("Carryover sweep for %s moved %s products from %s allocations", day, len(swept), len(swept_ids))
    return swept
