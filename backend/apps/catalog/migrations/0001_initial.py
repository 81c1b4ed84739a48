import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255, unique=True)),
                ("code", models.CharField(max_length=32, unique=True)),
                ("category", models.CharField(blank=True, max_length=64)),
                ("unit", models.CharField(default="pc", max_length=16)),
                ("selling_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "catalog_product",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RecipeLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "quantity_required",
                    models.DecimalField(
                        decimal_places=4,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.0001"))],
                    ),
                ),
                ("unit", models.CharField(max_length=16)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                (
                    "inventory_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recipe_lines",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recipe_lines",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "db_table": "catalog_recipe_line",
                "ordering": ["product", "sort_order", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "inventory_item"),
                        name="uq_catalog_recipe_line_product_item",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(quantity_required__gt=0),
                        name="ck_catalog_recipe_line_quantity_positive",
                    ),
                ],
            },
        ),
    ]
