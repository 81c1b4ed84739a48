import logging
from datetime import date
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from apps.catalog.models import RecipeLine
from apps.farmers.models import MilkCollection
from apps.inventory import ledger
from apps.inventory.exceptions import DerivedStockMutationError
from apps.inventory.locks import LockSet
from apps.inventory.models import InventoryItem, ItemCategory, ValuationMode
from apps.inventory.units import convert, default_milk_density, density_for, quantize
from apps.production.models import Production


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MILK_ITEM_NAME = "Milk"


class InventoryValuationStrategy:
    """How an item's on-hand quantity is read and changed."""

    mode: str = ""

    def available(self, item: InventoryItem) -> Decimal:
        raise NotImplementedError

    def consume(self, item: InventoryItem, amount: Decimal, locks: LockSet) -> None:
        raise NotImplementedError

    def adjust(self, item: InventoryItem, delta: Decimal, locks: LockSet, day: date | None = None) -> None:
        raise NotImplementedError


class StoredQuantity(InventoryValuationStrategy):
    mode = ValuationMode.STORED

    def available(self, item):
        if item.is_batch_tracked:
            return ledger.available_batch_total(item)
        return InventoryItem.objects.values_list("quantity", flat=True).get(pk=item.pk)

    def consume(self, item, amount, locks):
        ledger.decrease_stored_item(item, amount, locks)

    def adjust(self, item, delta, locks, day=None):
        if delta < 0:
            ledger.decrease_stored_item(item, -delta, locks)
        elif delta > 0:
            ledger.increase_stored_item(item, delta, locks, day=day)


class DerivedFromEvents(InventoryValuationStrategy):
    """Quantity reconstructed from milk collections minus recipe consumption of recorded productions.

    Consumption uses each product's current recipe. The stored `quantity` is a cache
    rewritten by `recompute()` and is never incremented or decremented directly.
    """

    mode = ValuationMode.DERIVED

    def density(self, item: InventoryItem) -> Decimal:
        return density_for(item)

    def collected(self, item: InventoryItem, **filters) -> Decimal:
        total = MilkCollection.objects.filter(**filters).aggregate(total=Sum("quantity_liters"))["total"] or ZERO
        return convert(total, "l", item.unit, self.density(item))

    def consumed(self, item: InventoryItem, **production_filters) -> Decimal:
        total = ZERO
        for line in RecipeLine.objects.filter(inventory_item=item):
            produced = (
                Production.objects.filter(product_id=line.product_id, **production_filters).aggregate(
                    total=Sum("quantity_produced")
                )["total"]
                or ZERO
            )
            if produced:
                total += convert(produced * line.quantity_required, line.unit, item.unit, self.density(item))
        return total

    def available(self, item):
        return max(ZERO, quantize(self.collected(item) - self.consumed(item)))

    def recompute(self, item: InventoryItem, locks: LockSet | None = None) -> Decimal:
        if locks is not None:
            ledger.lock_item(item, locks)
        collected = self.collected(item)
        consumed = self.consumed(item)
        current = quantize(collected - consumed)
        if current < 0:
            logger.warning(
                "Derived stock for %s is negative (collected=%s consumed=%s), clamping to 0",
                item.name,
                collected,
                consumed,
            )
            current = ZERO
        InventoryItem.objects.filter(pk=item.pk).update(quantity=current, updated_at=timezone.now())
        item.quantity = current
        return current

    def consume(self, item, amount, locks):
        # The production row carrying `amount` is already inserted.
        self.recompute(item, locks)

    def adjust(self, item, delta, locks, day=None):
        raise DerivedStockMutationError(item.name)


STRATEGIES = {
    ValuationMode.STORED: StoredQuantity(),
    ValuationMode.DERIVED: DerivedFromEvents(),
}


def strategy_for(item: InventoryItem) -> InventoryValuationStrategy:
    return STRATEGIES[item.valuation_mode]


def get_milk_item() -> InventoryItem:
    item = InventoryItem.objects.filter(valuation_mode=ValuationMode.DERIVED).order_by("created_at").first()
    if item is not None:
        return item
    item, _ = InventoryItem.objects.get_or_create(
        name=MILK_ITEM_NAME,
        category=ItemCategory.RAW_MATERIAL,
        defaults={
            "unit": "l",
            "valuation_mode": ValuationMode.DERIVED,
            "density_kg_per_liter": default_milk_density(),
        },
    )
    return item


def recompute_milk(locks: LockSet | None = None) -> Decimal:
    item = get_milk_item()
    return STRATEGIES[ValuationMode.DERIVED].recompute(item, locks)
