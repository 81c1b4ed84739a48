import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from apps.inventory.batch_numbers import BatchKey
from apps.inventory.exceptions import InsufficientStockError
from apps.inventory.locks import LockSet
from apps.inventory.models import BatchStatus, InventoryBatch, InventoryItem, ItemCategory


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
FIFO_ORDER = ("production_date", "created_at", "id")


@dataclass(frozen=True)
class BatchDraw:
    batch_number: str
    production_id: int | None
    production_date: date
    quantity: Decimal


def _fifo_key(batch: InventoryBatch):
    return (batch.production_date, batch.created_at, batch.pk)


def get_or_create_finished_goods_item(product) -> InventoryItem:
    item, created = InventoryItem.objects.get_or_create(
        name=product.name,
        category=ItemCategory.FINISHED_GOODS,
        defaults={"unit": product.unit},
    )
    if created:
        logger.info("Created finished goods item %s for product %s", item.pk, product.code)
    return item


def lock_item(item: InventoryItem, locks: LockSet) -> InventoryItem:
    return locks.lock_one(InventoryItem, item.pk)


def lock_items(items, locks: LockSet) -> dict:
    rows = locks.lock(InventoryItem.objects.filter(pk__in=[item.pk for item in items]))
    return {row.pk: row for row in rows}


def available_batches_queryset(item: InventoryItem, exclude_production=None, production=None):
    queryset = InventoryBatch.objects.filter(inventory_item=item, status=BatchStatus.AVAILABLE)
    if exclude_production is not None:
        queryset = queryset.exclude(production=exclude_production)
    if production is not None:
        queryset = queryset.filter(production=production)
    return queryset


def available_batch_total(item: InventoryItem, exclude_production=None, production=None) -> Decimal:
    queryset = available_batches_queryset(item, exclude_production=exclude_production, production=production)
    return queryset.aggregate(total=Sum("quantity"))["total"] or ZERO


def lock_available_batches(item: InventoryItem, locks: LockSet, exclude_production=None, production=None):
    """Lock the item's available batches and return them oldest first."""
    queryset = available_batches_queryset(item, exclude_production=exclude_production, production=production)
    return sorted(locks.lock(queryset), key=_fifo_key)


def reconcile_item_quantity(item: InventoryItem) -> Decimal:
    """Persist `item.quantity` as the sum of its available batches."""
    total = available_batch_total(item)
    InventoryItem.objects.filter(pk=item.pk).update(quantity=total, updated_at=timezone.now())
    item.quantity = total
    return total


def reduce_batch(batch: InventoryBatch, amount: Decimal, locks: LockSet) -> Decimal:
    """Take `amount` out of `batch`, deleting the row when nothing is left."""
    if not locks.holds(batch):
        batch = locks.lock_one(InventoryBatch, batch.pk)
    if amount > batch.quantity:
        raise InsufficientStockError.single(
            batch.batch_number,
            required=amount,
            available=batch.quantity,
            unit=batch.inventory_item.unit,
        )
    remaining = batch.quantity - amount
    if remaining <= 0:
        batch.delete()
        return ZERO
    batch.quantity = remaining
    batch.save(update_fields=["quantity", "updated_at"])
    return remaining


def create_or_merge_batch(
    item: InventoryItem,
    batch_number,
    amount: Decimal,
    production_date: date,
    locks: LockSet,
    production=None,
) -> InventoryBatch:
    if isinstance(batch_number, BatchKey):
        batch_number = batch_number.render()
    existing = locks.lock(InventoryBatch.objects.filter(inventory_item=item, batch_number=batch_number))
    if existing:
        batch = existing[0]
        batch.quantity += amount
        batch.status = BatchStatus.AVAILABLE
        batch.save(update_fields=["quantity", "status", "updated_at"])
        return batch
    return InventoryBatch.objects.create(
        inventory_item=item,
        production=production,
        batch_number=batch_number,
        quantity=amount,
        production_date=production_date,
        status=BatchStatus.AVAILABLE,
    )


def consume_batches_fifo(
    item: InventoryItem,
    amount: Decimal,
    locks: LockSet,
    exclude_production=None,
    production=None,
) -> list[BatchDraw]:
    """Draw `amount` from the item's available batches, oldest first.

    The caller reconciles the item quantity afterwards.
    """
    batches = lock_available_batches(item, locks, exclude_production=exclude_production, production=production)
    available = sum((batch.quantity for batch in batches), ZERO)
    if amount > available:
        raise InsufficientStockError.single(item.name, required=amount, available=available, unit=item.unit)

    draws = []
    remaining = amount
    for batch in batches:
        if remaining <= 0:
            break
        take = min(batch.quantity, remaining)
        draws.append(
            BatchDraw(
                batch_number=batch.batch_number,
                production_id=batch.production_id,
                production_date=batch.production_date,
                quantity=take,
            )
        )
        reduce_batch(batch, take, locks)
        remaining -= take
    return draws


def decrease_stored_item(item: InventoryItem, amount: Decimal, locks: LockSet) -> list[BatchDraw]:
    locked = lock_item(item, locks)
    if item.is_batch_tracked:
        draws = consume_batches_fifo(item, amount, locks)
        reconcile_item_quantity(item)
        return draws

    if amount > locked.quantity:
        raise InsufficientStockError.single(item.name, required=amount, available=locked.quantity, unit=item.unit)
    locked.quantity -= amount
    locked.save(update_fields=["quantity", "updated_at"])
    item.quantity = locked.quantity
    return []


def increase_stored_item(item: InventoryItem, amount: Decimal, locks: LockSet, day: date | None = None) -> None:
    locked = lock_item(item, locks)
    if item.is_batch_tracked:
        day = day or timezone.localdate()
        create_or_merge_batch(item, BatchKey.adjustment(item.name, day), amount, day, locks)
        reconcile_item_quantity(item)
        return

    locked.quantity += amount
    locked.save(update_fields=["quantity", "updated_at"])
    item.quantity = locked.quantity
