import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.core.models import StaffMember
from apps.inventory import ledger
from apps.inventory.exceptions import InsufficientQuantityError, InternalConsistencyError
from apps.inventory.locks import LockSet, in_lock_order
from apps.sales.models import Allocation, AllocationStatus, Sale, SaleChannel, SaleItem


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def channel_for(actor: StaffMember) -> str:
    if actor.role == StaffMember.Role.SALESPERSON:
        return SaleChannel.SALESPERSON
    return SaleChannel.ADMIN


def consume_allocations_fifo(salesperson, product, amount: Decimal, locks: LockSet) -> list[tuple[int, Decimal]]:
    """Draw `amount` from the salesperson's active allocations, oldest first.

    Exhausted allocations become `completed`. Returns `(allocation_id, taken)` pairs.
    """
    queryset = Allocation.objects.filter(salesperson=salesperson, product=product, status=AllocationStatus.ACTIVE)
    allocations = locks.lock(queryset)
    allocations.sort(key=lambda row: (row.allocation_date, row.created_at, row.pk))
    available = queryset.aggregate(total=Sum("quantity_allocated"))["total"] or ZERO
    if amount > available:
        raise InsufficientQuantityError(amount, available)

    consumed = []
    remaining = amount
    for allocation in allocations:
        if remaining <= 0:
            break
        take = min(allocation.quantity_allocated, remaining)
        if take <= 0:
            continue
        allocation.quantity_allocated -= take
        if allocation.quantity_allocated == 0:
            allocation.status = AllocationStatus.COMPLETED
        allocation.save(update_fields=["quantity_allocated", "status", "updated_at"])
        consumed.append((allocation.pk, take))
        remaining -= take

    if remaining > 0:
        raise InternalConsistencyError(
            f"Allocations of {product.code} for {salesperson.pk} left {remaining} uncovered.",
            data={"product": str(product.pk), "salesperson": str(salesperson.pk), "uncovered": str(remaining)},
        )
    return consumed


def deduct_for_sale(
    channel: str,
    salesperson,
    product,
    sold_quantity: Decimal,
    free_quantity: Decimal,
    locks: LockSet,
) -> Decimal:
    """Remove sold plus free units from the channel's stock."""
    total = (sold_quantity or ZERO) + (free_quantity or ZERO)
    if total <= 0:
        return ZERO
    if channel == SaleChannel.ADMIN:
        item = ledger.get_or_create_finished_goods_item(product)
        ledger.decrease_stored_item(item, total, locks)
    else:
        consume_allocations_fifo(salesperson, product, total, locks)
    return total


def record_sale(
    actor: StaffMember,
    items: list[dict],
    customer_name: str = "",
    sale_date: date | None = None,
    notes: str = "",
) -> Sale:
    channel = channel_for(actor)
    salesperson = actor if channel == SaleChannel.SALESPERSON else None
    with transaction.atomic():
        locks = LockSet()
        sale = Sale.objects.create(
            channel=channel,
            salesperson=salesperson,
            customer_name=customer_name or "",
            sale_date=sale_date or timezone.localdate(),
            notes=notes or "",
            created_by=actor,
        )
        lines = [
            SaleItem.objects.create(
                sale=sale,
                product=item["product"],
                quantity=item.get("quantity") or ZERO,
                free_quantity=item.get("free_quantity") or ZERO,
                unit_price=item.get("unit_price"),
            )
            for item in items
        ]
        for line in in_lock_order(lines, key=lambda line: line.product_id):
            deduct_for_sale(channel, salesperson, line.product, line.quantity, line.free_quantity, locks)
    logger.info("Recorded sale %s channel=%s lines=%s", sale.pk, channel, len(items))
    return sale
