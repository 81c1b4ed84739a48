import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.inventory.exceptions import SaleAlreadyReversedError
from apps.inventory.locks import LockSet, lock_order
from apps.sales.models import Cheque, Payment, PaymentFreeItem, PaymentMethod, Sale
from apps.sales.services.deduction import deduct_for_sale
from apps.sales.services.restoration import restore_for_channel


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def record_payment_free_items(payment: Payment, items: list[dict], locks: LockSet) -> list[PaymentFreeItem]:
    """Upsert one free-item row per product and deduct only the change in quantity.

    Stock comes from the sale's salesperson. Submitting the same items again deducts nothing.
    """
    sale = payment.sale
    totals = defaultdict(lambda: ZERO)
    products = {}
    for item in items:
        product = item["product"]
        products[product.pk] = product
        totals[product.pk] += item["quantity"]

    rows = []
    for product_id in sorted(totals, key=lock_order):
        product = products[product_id]
        quantity = totals[product_id]
        existing = locks.lock(PaymentFreeItem.objects.filter(payment=payment, product=product))
        previous = existing[0].quantity if existing else ZERO
        delta = quantity - previous
        if delta > 0:
            deduct_for_sale(sale.channel, sale.salesperson, product, ZERO, delta, locks)
        elif delta < 0:
            restore_for_channel(
                sale.channel,
                sale.salesperson,
                product,
                -delta,
                locks,
                note=f"Free items reduced on payment {payment.pk}",
            )

        if existing:
            row = existing[0]
            row.quantity = quantity
            row.save(update_fields=["quantity", "updated_at"])
        else:
            row = PaymentFreeItem.objects.create(payment=payment, product=product, quantity=quantity)
        rows.append(row)
    return rows


def record_payment(
    sale: Sale,
    amount: Decimal,
    method: str,
    actor,
    paid_on: date | None = None,
    notes: str = "",
    cheque: dict | None = None,
    free_items: list[dict] | None = None,
) -> Payment:
    with transaction.atomic():
        locks = LockSet()
        sale = locks.lock_one(Sale, sale.pk)
        if sale.is_reversed:
            raise SaleAlreadyReversedError(sale.pk)
        payment = Payment.objects.create(
            sale=sale,
            amount=amount,
            method=method,
            paid_on=paid_on or timezone.localdate(),
            notes=notes or "",
            created_by=actor,
        )
        if method == PaymentMethod.CHEQUE and cheque:
            Cheque.objects.create(
                payment=payment,
                cheque_number=cheque["cheque_number"],
                bank_name=cheque.get("bank_name") or "",
                cheque_date=cheque.get("cheque_date"),
            )
        if free_items:
            record_payment_free_items(payment, free_items, locks)

    logger.info("Recorded payment %s for sale %s amount=%s method=%s", payment.pk, sale.pk, amount, method)
    return payment
