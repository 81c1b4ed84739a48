import calendar
import logging
from datetime import date, time
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.catalog.models import Product
from apps.core.models import Setting
from apps.farmers.models import Farmer, FarmerFreeProduct, MilkCollection
from apps.inventory import ledger
from apps.inventory.locks import LockSet
from apps.inventory.units import quantize
from apps.inventory.valuation import DerivedFromEvents, get_milk_item, recompute_milk


logger = logging.getLogger(__name__)

DEFAULT_FREE_PRODUCTS_SETTING = "farmer_default_free_products"
ZERO = Decimal("0")


def record_collection(
    farmer: Farmer,
    quantity_liters: Decimal,
    day: date | None = None,
    at: time | None = None,
    actor=None,
) -> MilkCollection:
    if quantity_liters is None or quantity_liters <= 0:
        raise ValidationError({"quantity_liters": ["quantity_liters must be greater than 0."]})
    with transaction.atomic():
        locks = LockSet()
        collection = MilkCollection.objects.create(
            farmer=farmer,
            date=day or timezone.localdate(),
            time=at,
            quantity_liters=quantity_liters,
            recorded_by=actor,
        )
        available = recompute_milk(locks)
    logger.info(
        "Milk collection %s farmer=%s liters=%s milk_available=%s",
        collection.pk,
        farmer.pk,
        quantity_liters,
        available,
    )
    return collection


def milk_summary(today: date | None = None) -> dict:
    """Collected/used/available milk figures plus collection statistics."""
    today = today or timezone.localdate()
    month_start = today.replace(day=1)
    milk = get_milk_item()
    strategy = DerivedFromEvents()
    collected = strategy.collected(milk)
    used = strategy.consumed(milk)
    return {
        "item": str(milk.pk),
        "unit": milk.unit,
        "collected": str(quantize(collected)),
        "used": str(quantize(used)),
        "available": str(max(ZERO, quantize(collected - used))),
        "collection_count": MilkCollection.objects.count(),
        "farmer_count": MilkCollection.objects.values("farmer").distinct().count(),
        "collected_this_month": str(quantize(strategy.collected(milk, date__gte=month_start))),
        "used_this_month": str(quantize(strategy.consumed(milk, date__gte=month_start))),
        "used_today": str(quantize(strategy.consumed(milk, date=today))),
    }


def default_free_products() -> list[dict]:
    """Entries of the `farmer_default_free_products` setting that name a known product."""
    raw = Setting.get_value(DEFAULT_FREE_PRODUCTS_SETTING, [])
    if not isinstance(raw, list):
        logger.warning("Setting %s is not a list, ignoring it", DEFAULT_FREE_PRODUCTS_SETTING)
        return []

    entries = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        quantity = Decimal(str(entry.get("quantity") or 0))
        product = None
        if entry.get("product_id"):
            try:
                product = Product.objects.filter(pk=entry["product_id"]).first()
            except (DjangoValidationError, ValueError):
                logger.warning("Unknown product %r in %s", entry["product_id"], DEFAULT_FREE_PRODUCTS_SETTING)
        if product is None or quantity <= 0:
            continue
        entries.append({"product": product, "quantity": quantity, "unit": entry.get("unit") or "pc"})
    return entries


def set_free_products(farmer: Farmer, year: int, month: int, items: list[dict]) -> list[FarmerFreeProduct]:
    """Upsert the farmer's free products for a month; issued rows cannot change."""
    with transaction.atomic():
        rows = []
        for item in items:
            existing = (
                FarmerFreeProduct.objects.select_for_update()
                .filter(farmer=farmer, year=year, month=month, product=item["product"])
                .first()
            )
            if existing is not None and existing.is_issued:
                raise ValidationError(
                    {"items": [f"{item['product'].name} was already issued for {year}-{month:02d}."]}
                )
            row, _ = FarmerFreeProduct.objects.update_or_create(
                farmer=farmer,
                year=year,
                month=month,
                product=item["product"],
                defaults={
                    "quantity": item["quantity"],
                    "unit": item.get("unit") or "pc",
                    "notes": item.get("notes") or "",
                },
            )
            rows.append(row)
    return rows


def free_products_for(farmer: Farmer, year: int, month: int) -> list[FarmerFreeProduct]:
    return list(
        FarmerFreeProduct.objects.filter(farmer=farmer, year=year, month=month)
        .select_related("product")
        .order_by("created_at", "id")
    )


def issue_free_products(farmer: Farmer, year: int, month: int, actor=None) -> dict:
    """Deduct the month's free products from finished goods, at most once per row.

    Rows are seeded from the default setting when the month has none. Rows that
    already carry `issued_at` are counted in `already_issued` and left untouched.
    """
    with transaction.atomic():
        locks = LockSet()
        queryset = FarmerFreeProduct.objects.filter(farmer=farmer, year=year, month=month)
        rows = locks.lock(queryset)
        if not rows:
            for entry in default_free_products():
                FarmerFreeProduct.objects.get_or_create(
                    farmer=farmer,
                    year=year,
                    month=month,
                    product=entry["product"],
                    defaults={"quantity": entry["quantity"], "unit": entry["unit"]},
                )
            rows = locks.lock(queryset)
        rows.sort(key=lambda row: (row.created_at, row.pk))

        to_issue = [row for row in rows if not row.is_issued]
        already_issued = len(rows) - len(to_issue)
        deducted = []
        issued_at = timezone.now()
        for row in to_issue:
            finished_item = ledger.get_or_create_finished_goods_item(row.product)
            ledger.decrease_stored_item(finished_item, row.quantity, locks)
            row.issued_at = issued_at
            row.issued_by = actor
            row.save(update_fields=["issued_at", "issued_by", "updated_at"])
            deducted.append(
                {
                    "product": str(row.product_id),
                    "product_name": row.product.name,
                    "quantity": str(row.quantity),
                }
            )

    if to_issue:
        logger.info("Issued %s free products to farmer %s for %s-%02d", len(to_issue), farmer.pk, year, month)
    return {"issued": len(to_issue), "already_issued": already_issued, "deducted": deducted}


def monthly_statement(farmer: Farmer, year: int, month: int) -> dict:
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])
    collections = MilkCollection.objects.filter(farmer=farmer, date__gte=start, date__lte=end).order_by(
        "-date", "-time"
    )
    total = collections.aggregate(total=Sum("quantity_liters"))["total"] or ZERO

    free_rows = [
        {
            "product": str(row.product_id),
            "product_name": row.product.name,
            "quantity": str(row.quantity),
            "unit": row.unit,
            "issued_at": row.issued_at.isoformat() if row.issued_at else None,
        }
        for row in free_products_for(farmer, year, month)
    ]
    if not free_rows:
        free_rows = [
            {
                "product": str(entry["product"].pk),
                "product_name": entry["product"].name,
                "quantity": str(entry["quantity"]),
                "unit": entry["unit"],
                "issued_at": None,
            }
            for entry in default_free_products()
        ]

    return {
        "farmer": {"id": str(farmer.pk), "name": farmer.name, "phone": farmer.phone},
        "period": {"year": year, "month": month, "start_date": start.isoformat(), "end_date": end.isoformat()},
        "collections": [
            {
                "id": row.pk,
                "date": row.date.isoformat(),
                "time": row.time.isoformat() if row.time else None,
                "quantity_liters": str(row.quantity_liters),
            }
            for row in collections
        ],
        "total_liters": str(total),
        "collection_count": len(collections),
        "free_products": free_rows,
    }
