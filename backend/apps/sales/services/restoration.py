import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.inventory import ledger
from apps.inventory.batch_numbers import BatchKey
from apps.inventory.exceptions import SaleAlreadyReversedError
from apps.inventory.locks import LockSet, in_lock_order, lock_order
from apps.production.models import Production
from apps.sales.models import (
    Allocation,
    AllocationStatus,
    Payment,
    PaymentFreeItem,
    Return,
    Sale,
    SaleChannel,
)
from apps.sales.services.deduction import deduct_for_sale


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def restore(salesperson, product, quantity: Decimal, locks: LockSet, note: str = "") -> Allocation:
    """Give `quantity` back to the salesperson's newest active allocation, or open a new one."""
    active = locks.lock(
        Allocation.objects.filter(salesperson=salesperson, product=product, status=AllocationStatus.ACTIVE)
    )
    if active:
        target = max(active, key=lambda row: (row.allocation_date, row.created_at, row.pk))
        target.quantity_allocated += quantity
        target.save(update_fields=["quantity_allocated", "updated_at"])
        return target

    today = timezone.localdate()
    latest = Production.objects.filter(product=product).order_by("-date", "-created_at", "-id").first()
    return Allocation.objects.create(
        production=latest,
        product=product,
        salesperson=salesperson,
        batch_number=BatchKey.restored(product.code, today).render(),
        quantity_allocated=quantity,
        status=AllocationStatus.ACTIVE,
        allocation_date=today,
        notes=note or "",
    )


def restore_to_inventory(product, quantity: Decimal, locks: LockSet, day: date | None = None):
    day = day or timezone.localdate()
    item = ledger.get_or_create_finished_goods_item(product)
    ledger.lock_item(item, locks)
    batch = ledger.create_or_merge_batch(item, BatchKey.restored(product.code, day), quantity, day, locks)
    ledger.reconcile_item_quantity(item)
    return batch


def restore_for_channel(channel: str, salesperson, product, quantity: Decimal, locks: LockSet, note: str = ""):
    if quantity <= 0:
        return None
    if channel == SaleChannel.ADMIN:
        return restore_to_inventory(product, quantity, locks)
    return restore(salesperson, product, quantity, locks, note=note)


def _returned_per_product(sale: Sale) -> dict:
    rows = Return.objects.filter(sale=sale).values("product_id").annotate(
        returned=Sum("quantity_returned"),
        replaced=Sum("replacement_quantity"),
    )
    return {row["product_id"]: (row["returned"] or ZERO, row["replaced"] or ZERO) for row in rows}


def process_return(sale: Sale, items: list[dict], reason: str, actor) -> list[Return]:
    """Restore returned units and deduct replacement units for one sale."""
    with transaction.atomic():
        locks = LockSet()
        sale = locks.lock_one(Sale, sale.pk)
        if sale.is_reversed:
            raise SaleAlreadyReversedError(sale.pk)

        outstanding = defaultdict(lambda: ZERO)
        for line in sale.items.all():
            outstanding[line.product_id] += line.total_quantity
        for product_id, (returned, replaced) in _returned_per_product(sale).items():
            outstanding[product_id] += replaced - returned

        records = []
        for item in items:
            product = item["product"]
            returned = item.get("quantity_returned") or ZERO
            replacement = item.get("replacement_quantity") or ZERO
            if returned > outstanding[product.pk]:
                raise ValidationError(
                    {"items": [f"Cannot return {returned} of {product.name}; only {outstanding[product.pk]} sold."]}
                )
            outstanding[product.pk] += replacement - returned

            records.append(
                Return.objects.create(
                    sale=sale,
                    product=product,
                    quantity_returned=returned,
                    replacement_quantity=replacement,
                    reason=reason or "",
                    processed_by=actor,
                )
            )

        for record in in_lock_order(records, key=lambda record: record.product_id):
            restore_for_channel(
                sale.channel,
                sale.salesperson,
                record.product,
                record.quantity_returned,
                locks,
                note=f"Return on sale {sale.pk}",
            )
            deduct_for_sale(sale.channel, sale.salesperson, record.product, record.replacement_quantity, ZERO, locks)

    logger.info("Processed %s return lines for sale %s", len(records), sale.pk)
    return records


def reverse_sale(sale: Sale, actor, reason: str = "") -> Sale:
    """Undo a sale: restore everything the customer still holds and drop its payments and returns.

    Restored per product: sold + free - returned + replacements + payment free items.
    """
    with transaction.atomic():
        locks = LockSet()
        sale = locks.lock_one(Sale, sale.pk)
        if sale.is_reversed:
            raise SaleAlreadyReversedError(sale.pk)

        products = {}
        outstanding = defaultdict(lambda: ZERO)
        for line in sale.items.select_related("product"):
            products[line.product_id] = line.product
            outstanding[line.product_id] += line.total_quantity
        for product_id, (returned, replaced) in _returned_per_product(sale).items():
            outstanding[product_id] += replaced - returned
        for free_item in PaymentFreeItem.objects.filter(payment__sale=sale).select_related("product"):
            products[free_item.product_id] = free_item.product
            outstanding[free_item.product_id] += free_item.quantity

        for product_id in sorted(outstanding, key=lock_order):
            restore_for_channel(
                sale.channel,
                sale.salesperson,
                products[product_id],
                outstanding[product_id],
                locks,
                note=f"Reversal of sale {sale.pk}",
            )

        Return.objects.filter(sale=sale).delete()
        Payment.objects.filter(sale=sale).delete()

        sale.is_reversed = True
        sale.reversed_at = timezone.now()
        sale.reversed_by = actor
        sale.reversal_reason = reason or ""
        sale.save(update_fields=["is_reversed", "reversed_at", "reversed_by", "reversal_reason", "updated_at"])

    logger.info("Reversed sale %s by %s", sale.pk, actor.pk if actor else None)
    return sale
