import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.inventory import ledger
from apps.inventory.exceptions import InsufficientQuantityError
from apps.inventory.locks import LockSet, in_lock_order
from apps.inventory.models import ItemCategory
from apps.production.models import Production
from apps.sales.models import Allocation, AllocationStatus


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def active_allocated_from(production: Production) -> Decimal:
    return (
        Allocation.objects.filter(production=production, status=AllocationStatus.ACTIVE).aggregate(
            total=Sum("quantity_allocated")
        )["total"]
        or ZERO
    )


def _draw(batches, amount: Decimal, locks: LockSet) -> None:
    remaining = amount
    for batch in batches:
        if remaining <= 0:
            break
        take = min(batch.quantity, remaining)
        ledger.reduce_batch(batch, take, locks)
        remaining -= take


def _allocate_from_production(product, production: Production, quantity: Decimal, locks: LockSet):
    if production.product_id != product.pk:
        raise ValidationError({"production": ["production does not belong to the selected product."]})

    item = ledger.get_or_create_finished_goods_item(product)
    ledger.lock_item(item, locks)
    batches = ledger.lock_available_batches(item, locks)
    own = [batch for batch in batches if batch.production_id == production.pk]
    carried = [batch for batch in batches if batch.production_id != production.pk]

    already_active = active_allocated_from(production)
    held_in_batch = sum((batch.quantity for batch in own), ZERO)
    production_remaining = max(ZERO, min(production.quantity_produced - already_active, held_in_batch))
    carryover = sum((batch.quantity for batch in carried), ZERO)
    if quantity > production_remaining + carryover:
        raise InsufficientQuantityError(
            quantity,
            production_remaining + carryover,
            production_remaining=production_remaining,
            carryover=carryover,
        )

    from_carryover = max(ZERO, quantity - production_remaining)
    _draw(carried, from_carryover, locks)
    _draw(own, quantity - from_carryover, locks)

    ledger.reconcile_item_quantity(item)
    return production, production.batch_number


def _allocate_from_inventory(product, inventory_item, quantity: Decimal, locks: LockSet):
    if inventory_item.category != ItemCategory.FINISHED_GOODS or inventory_item.name != product.name:
        raise ValidationError({"inventory_item": ["inventory_item is not the finished goods item of this product."]})

    ledger.lock_item(inventory_item, locks)
    available = sum((batch.quantity for batch in ledger.lock_available_batches(inventory_item, locks)), ZERO)
    if quantity > available:
        raise InsufficientQuantityError(quantity, available, production_remaining=ZERO, carryover=available)

    draws = ledger.consume_batches_fifo(inventory_item, quantity, locks)
    ledger.reconcile_item_quantity(inventory_item)
    first = draws[0]
    production = Production.objects.filter(pk=first.production_id).first() if first.production_id else None
    return production, first.batch_number


def _allocate(
    product,
    salesperson,
    quantity: Decimal,
    actor,
    locks: LockSet,
    production: Production | None = None,
    inventory_item=None,
    allocation_date: date | None = None,
    notes: str = "",
) -> Allocation:
    if (production is None) == (inventory_item is None):
        raise ValidationError({"non_field_errors": ["Exactly one of production or inventory_item is required."]})
    if quantity is None or quantity <= 0:
        raise ValidationError({"quantity": ["quantity must be greater than 0."]})

    if production is not None:
        source, batch_number = _allocate_from_production(product, production, quantity, locks)
    else:
        source, batch_number = _allocate_from_inventory(product, inventory_item, quantity, locks)

    allocation = Allocation.objects.create(
        production=source,
        product=product,
        salesperson=salesperson,
        batch_number=batch_number,
        quantity_allocated=quantity,
        status=AllocationStatus.ACTIVE,
        allocation_date=allocation_date or timezone.localdate(),
        allocated_by=actor,
        notes=notes or "",
    )
    logger.info(
        "Allocated %s of %s to %s (allocation=%s batch=%s)",
        quantity,
        product.code,
        salesperson.pk,
        allocation.pk,
        batch_number,
    )
    return allocation


def allocate(
    product,
    salesperson,
    quantity: Decimal,
    actor,
    production: Production | None = None,
    inventory_item=None,
    allocation_date: date | None = None,
    notes: str = "",
) -> Allocation:
    """Reserve `quantity` of `product` for a salesperson.

    With a production, today's carryover covers whatever the production cannot,
    oldest batch first. One allocation row records the full quantity against the
    production even when part of it came from carryover.
    """
    with transaction.atomic():
        return _allocate(
            product,
            salesperson,
            quantity,
            actor,
            LockSet(),
            production=production,
            inventory_item=inventory_item,
            allocation_date=allocation_date,
            notes=notes,
        )


def allocate_bulk(rows: list[dict], actor) -> list[Allocation]:
    """Apply every allocation in `rows` or none of them."""
    with transaction.atomic():
        locks = LockSet()
        created = {id(row): _allocate(actor=actor, locks=locks, **row) for row in in_lock_order(rows)}
        return [created[id(row)] for row in rows]


def salesperson_inventory(salesperson) -> list[dict]:
    rows = (
        Allocation.objects.filter(salesperson=salesperson, status=AllocationStatus.ACTIVE)
        .values("product_id", "product__name", "product__code")
        .annotate(quantity=Sum("quantity_allocated"))
        .order_by("product__name")
    )
    return [
        {
            "product": str(row["product_id"]),
            "product_name": row["product__name"],
            "product_code": row["product__code"],
            "quantity": str(row["quantity"]),
        }
        for row in rows
    ]
