import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from apps.catalog.models import Product
from apps.core.models import StaffMember


class Farmer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "farmers_farmer"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class MilkCollection(models.Model):
    farmer = models.ForeignKey(Farmer, on_delete=models.PROTECT, related_name="collections")
    date = models.DateField()
    time = models.TimeField(blank=True, null=True)
    quantity_liters = models.DecimalField(max_digits=12, decimal_places=3)
    recorded_by = models.ForeignKey(
        StaffMember,
        on_delete=models.SET_NULL,
        related_name="milk_collections",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "farmers_milk_collection"
        ordering = ["-date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_liters__gt=0),
                name="ck_farmers_milk_collection_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.farmer.name} {self.date}: {self.quantity_liters} l"


class FarmerFreeProduct(models.Model):
    farmer = models.ForeignKey(Farmer, on_delete=models.CASCADE, related_name="free_products")
    year = models.PositiveIntegerField()
    month = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(12)])
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="farmer_free_products")
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("0.001"))],
    )
    unit = models.CharField(max_length=16, default="pc")
    notes = models.TextField(blank=True)
    issued_at = models.DateTimeField(blank=True, null=True)
    issued_by = models.ForeignKey(
        StaffMember,
        on_delete=models.SET_NULL,
        related_name="issued_free_products",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "farmers_free_product"
        ordering = ["year", "month", "created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["farmer", "year", "month", "product"],
                name="uq_farmers_free_product_farmer_period_product",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.farmer.name} {self.year}-{self.month:02d}: {self.quantity} {self.product.name}"

    @property
    def is_issued(self) -> bool:
        return self.issued_at is not None
