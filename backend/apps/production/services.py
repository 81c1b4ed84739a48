import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.catalog.models import Product
from apps.inventory import ledger
from apps.inventory.batch_numbers import BatchKey, next_free_key
from apps.inventory.exceptions import InsufficientStockError, MissingRecipeError, UnitMismatchError
from apps.inventory.locks import LockSet
from apps.inventory.units import convert, density_for, quantize
from apps.inventory.valuation import strategy_for
from apps.production.models import Production


logger = logging.getLogger(__name__)


def generate_batch_key(product: Product, day: date) -> BatchKey:
    key = BatchKey.production(product.code, day)
    taken = set(
        Production.objects.filter(product=product, batch_number__startswith=key.render()).values_list(
            "batch_number", flat=True
        )
    )
    return next_free_key(key, taken)


def _recipe_lines(product: Product):
    return list(product.recipe_lines.select_related("inventory_item").order_by("sort_order", "id"))


def required_quantity(line, item, quantity: Decimal) -> Decimal:
    return quantize(convert(line.quantity_required * quantity, line.unit, item.unit, density_for(item)))


def record_production(
    product: Product,
    quantity: Decimal,
    day: date | None = None,
    notes: str = "",
    actor=None,
) -> Production:
    """Consume the recipe for `quantity` units of `product` and book the finished batch.

    Every short ingredient is reported together before anything is written. Derived
    items are recomputed after the production row exists so that it counts as consumed.
    """
    if quantity is None or quantity <= 0:
        raise ValidationError({"quantity": ["quantity must be greater than 0."]})
    lines = _recipe_lines(product)
    if not lines:
        raise MissingRecipeError(product.name)
    day = day or timezone.localdate()

    with transaction.atomic():
        locks = LockSet()
        finished_item = ledger.get_or_create_finished_goods_item(product)
        items = ledger.lock_items([line.inventory_item for line in lines] + [finished_item], locks)

        requirements = []
        shortfalls = []
        for line in lines:
            item = items[line.inventory_item_id]
            required = required_quantity(line, item, quantity)
            available = strategy_for(item).available(item)
            if required > available:
                shortfalls.append(
                    {
                        "item": item.name,
                        "required": required,
                        "available": available,
                        "shortfall": required - available,
                        "unit": item.unit,
                    }
                )
            requirements.append((item, required))
        if shortfalls:
            raise InsufficientStockError(shortfalls)

        key = generate_batch_key(product, day)
        production = Production.objects.create(
            product=product,
            quantity_produced=quantity,
            date=day,
            batch_number=key.render(),
            notes=notes or "",
            created_by=actor,
        )

        for item, required in requirements:
            strategy_for(item).consume(item, required, locks)

        ledger.create_or_merge_batch(finished_item, key, quantity, day, locks, production=production)
        ledger.reconcile_item_quantity(finished_item)

    logger.info(
        "Recorded production %s product=%s quantity=%s batch=%s",
        production.pk,
        product.code,
        quantity,
        production.batch_number,
    )
    return production


def production_capacity(products=None) -> list[dict]:
    """Maximum whole units producible per active product from current stock."""
    if products is None:
        products = Product.objects.filter(is_active=True).order_by("name")

    rows = []
    for product in products:
        lines = _recipe_lines(product)
        if not lines:
            rows.append(
                {
                    "product": str(product.pk),
                    "product_name": product.name,
                    "max_possible_units": 0,
                    "ingredients": [],
                    "message": "No recipe defined",
                }
            )
            continue

        max_units = None
        ingredients = []
        for line in lines:
            item = line.inventory_item
            available = strategy_for(item).available(item)
            try:
                per_unit = convert(line.quantity_required, line.unit, item.unit, density_for(item))
            except UnitMismatchError:
                logger.warning("Recipe line %s of %s has an unconvertible unit %s", line.pk, product.code, line.unit)
                per_unit = None
            possible = int(available // per_unit) if per_unit else 0
            max_units = possible if max_units is None else min(max_units, possible)
            ingredients.append(
                {
                    "inventory_item": str(item.pk),
                    "inventory_name": item.name,
                    "quantity_required": str(line.quantity_required),
                    "unit": line.unit,
                    "current_stock": str(available),
                    "possible_units": possible,
                }
            )
        rows.append(
            {
                "product": str(product.pk),
                "product_name": product.name,
                "max_possible_units": max_units or 0,
                "ingredients": ingredients,
            }
        )
    return rows
