import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True)
    code = models.CharField(max_length=32, unique=True)
    category = models.CharField(max_length=64, blank=True)
    unit = models.CharField(max_length=16, default="pc")
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "catalog_product"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class RecipeLine(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="recipe_lines")
    inventory_item = models.ForeignKey(
        "inventory.InventoryItem",
        on_delete=models.PROTECT,
        related_name="recipe_lines",
    )
    quantity_required = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        validators=[MinValueValidator(Decimal("0.0001"))],
    )
    unit = models.CharField(max_length=16)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "catalog_recipe_line"
        ordering = ["product", "sort_order", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "inventory_item"],
                name="uq_catalog_recipe_line_product_item",
            ),
            models.CheckConstraint(
                condition=Q(quantity_required__gt=0),
                name="ck_catalog_recipe_line_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product.name}: {self.quantity_required} {self.unit} {self.inventory_item.name}"
