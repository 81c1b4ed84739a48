import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.inventory.locks import LockSet
from apps.inventory.models import InventoryItem
from apps.inventory.valuation import strategy_for


logger = logging.getLogger(__name__)


def adjust_stock(item: InventoryItem, delta: Decimal, actor, reason: str = "") -> InventoryItem:
    """Manually correct a stored item's quantity by `delta`; derived items refuse."""
    with transaction.atomic():
        locks = LockSet()
        strategy_for(item).adjust(item, delta, locks, day=timezone.localdate())
    item.refresh_from_db()
    logger.info(
        "Stock adjusted item=%s delta=%s quantity=%s actor=%s reason=%s",
        item.pk,
        delta,
        item.quantity,
        actor.pk,
        reason,
    )
    return item


def low_stock_items():
    return [item for item in InventoryItem.objects.filter(min_quantity__gt=0) if item.is_low_stock]
