import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q


class ItemCategory(models.TextChoices):
    RAW_MATERIAL = "raw_material", "raw_material"
    PACKAGING = "packaging", "packaging"
    FINISHED_GOODS = "finished_goods", "finished_goods"
    UTILITY = "utility", "utility"


class ValuationMode(models.TextChoices):
    STORED = "stored", "stored"
    DERIVED = "derived", "derived"


class BatchStatus(models.TextChoices):
    AVAILABLE = "available", "available"
    ALLOCATED = "allocated", "allocated"


class InventoryItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=32, choices=ItemCategory.choices)
    unit = models.CharField(max_length=16)
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"))
    min_quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("0"))
    price = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    expiry_date = models.DateField(blank=True, null=True)
    valuation_mode = models.CharField(max_length=16, choices=ValuationMode.choices, default=ValuationMode.STORED)
    density_kg_per_liter = models.DecimalField(max_digits=6, decimal_places=3, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_item"
        ordering = ["category", "name"]
        constraints = [
            models.UniqueConstraint(fields=["name", "category"], name="uq_inventory_item_name_category"),
            models.CheckConstraint(condition=Q(quantity__gte=0), name="ck_inventory_item_quantity_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.category})"

    @property
    def is_batch_tracked(self) -> bool:
        return self.category == ItemCategory.FINISHED_GOODS

    @property
    def is_derived(self) -> bool:
        return self.valuation_mode == ValuationMode.DERIVED

    @property
    def is_low_stock(self) -> bool:
        return self.min_quantity > 0 and self.quantity < self.min_quantity


class InventoryBatch(models.Model):
    inventory_item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name="batches")
    production = models.ForeignKey(
        "production.Production",
        on_delete=models.PROTECT,
        related_name="batches",
        blank=True,
        null=True,
    )
    batch_number = models.CharField(max_length=128)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    production_date = models.DateField()
    status = models.CharField(max_length=16, choices=BatchStatus.choices, default=BatchStatus.AVAILABLE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_batch"
        ordering = ["production_date", "created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["inventory_item", "batch_number"],
                name="uq_inventory_batch_item_batch_number",
            ),
            models.CheckConstraint(condition=Q(quantity__gt=0), name="ck_inventory_batch_quantity_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.batch_number} ({self.quantity})"
