import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from apps.catalog.models import Product
from apps.core.models import StaffMember
from apps.production.models import Production


class AllocationStatus(models.TextChoices):
    ACTIVE = "active", "active"
    COMPLETED = "completed", "completed"
    RETURNED = "returned", "returned"
    CANCELLED = "cancelled", "cancelled"


class SaleChannel(models.TextChoices):
    ADMIN = "ADMIN", "ADMIN"
    SALESPERSON = "SALESPERSON", "SALESPERSON"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "cash"
    CHEQUE = "cheque", "cheque"
    BANK_TRANSFER = "bank_transfer", "bank_transfer"
    CREDIT = "credit", "credit"


class Allocation(models.Model):
    production = models.ForeignKey(
        Production,
        on_delete=models.PROTECT,
        related_name="allocations",
        blank=True,
        null=True,
    )
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="allocations")
    salesperson = models.ForeignKey(StaffMember, on_delete=models.PROTECT, related_name="allocations")
    batch_number = models.CharField(max_length=128, blank=True)
    quantity_allocated = models.DecimalField(max_digits=12, decimal_places=3)
    status = models.CharField(max_length=16, choices=AllocationStatus.choices, default=AllocationStatus.ACTIVE)
    allocation_date = models.DateField()
    allocated_by = models.ForeignKey(
        StaffMember,
        on_delete=models.SET_NULL,
        related_name="allocations_made",
        blank=True,
        null=True,
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales_allocation"
        ordering = ["allocation_date", "created_at", "id"]
        indexes = [
            models.Index(fields=["salesperson", "product", "status"], name="idx_sales_alloc_sp_prod_status"),
            models.Index(fields=["allocation_date", "status"], name="idx_sales_alloc_date_status"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_allocated__gte=0),
                name="ck_sales_allocation_quantity_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.salesperson.name}: {self.quantity_allocated} {self.product.name} ({self.status})"


class Sale(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    channel = models.CharField(max_length=16, choices=SaleChannel.choices)
    salesperson = models.ForeignKey(
        StaffMember,
        on_delete=models.PROTECT,
        related_name="sales",
        blank=True,
        null=True,
    )
    customer_name = models.CharField(max_length=255, blank=True)
    sale_date = models.DateField()
    notes = models.TextField(blank=True)
    is_reversed = models.BooleanField(default=False)
    reversed_at = models.DateTimeField(blank=True, null=True)
    reversed_by = models.ForeignKey(
        StaffMember,
        on_delete=models.SET_NULL,
        related_name="reversed_sales",
        blank=True,
        null=True,
    )
    reversal_reason = models.TextField(blank=True)
    created_by = models.ForeignKey(
        StaffMember,
        on_delete=models.SET_NULL,
        related_name="recorded_sales",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales_sale"
        ordering = ["-sale_date", "-created_at"]

    def __str__(self) -> str:
        return f"Sale {self.id} ({self.channel})"


class SaleItem(models.Model):
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="sale_items")
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"))
    free_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)

    class Meta:
        db_table = "sales_sale_item"
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=0) & Q(free_quantity__gte=0),
                name="ck_sales_sale_item_quantities_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product.name}: {self.quantity} + {self.free_quantity} free"

    @property
    def total_quantity(self) -> Decimal:
        return self.quantity + self.free_quantity


class Return(models.Model):
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="returns")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="returns")
    quantity_returned = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"))
    replacement_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"))
    reason = models.TextField(blank=True)
    processed_by = models.ForeignKey(
        StaffMember,
        on_delete=models.SET_NULL,
        related_name="processed_returns",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sales_return"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_returned__gte=0) & Q(replacement_quantity__gte=0),
                name="ck_sales_return_quantities_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Return of {self.quantity_returned} {self.product.name}"


class Payment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    paid_on = models.DateField()
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        StaffMember,
        on_delete=models.SET_NULL,
        related_name="recorded_payments",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sales_payment"
        ordering = ["-paid_on", "-created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gte=0), name="ck_sales_payment_amount_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.amount} {self.method}"


class Cheque(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "pending"
        CLEARED = "cleared", "cleared"
        BOUNCED = "bounced", "bounced"

    payment = models.OneToOneField(Payment, on_delete=models.CASCADE, related_name="cheque")
    cheque_number = models.CharField(max_length=64)
    bank_name = models.CharField(max_length=128, blank=True)
    cheque_date = models.DateField(blank=True, null=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sales_cheque"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.cheque_number


class PaymentFreeItem(models.Model):
    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name="free_items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="payment_free_items")
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales_payment_free_item"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["payment", "product"], name="uq_sales_payment_free_item_payment_product"),
            models.CheckConstraint(condition=Q(quantity__gte=0), name="ck_sales_payment_free_item_quantity"),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} {self.product.name} free"
