from django.db import models
from django.db.models import Q

from apps.catalog.models import Product
from apps.core.models import StaffMember


class Production(models.Model):
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="productions")
    quantity_produced = models.DecimalField(max_digits=12, decimal_places=3)
    date = models.DateField()
    batch_number = models.CharField(max_length=128)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        StaffMember,
        on_delete=models.PROTECT,
        related_name="productions",
        blank=True,
        null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "production_production"
        ordering = ["-date", "-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "batch_number"],
                name="uq_production_product_batch_number",
            ),
            models.CheckConstraint(
                condition=Q(quantity_produced__gt=0),
                name="ck_production_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.batch_number} ({self.quantity_produced})"
