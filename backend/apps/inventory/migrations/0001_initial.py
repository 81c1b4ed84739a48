import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="InventoryItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("raw_material", "raw_material"),
                            ("packaging", "packaging"),
                            ("finished_goods", "finished_goods"),
                            ("utility", "utility"),
                        ],
                        max_length=32,
                    ),
                ),
                ("unit", models.CharField(max_length=16)),
                ("quantity", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=12)),
                ("min_quantity", models.DecimalField(decimal_places=3, default=Decimal("0"), max_digits=12)),
                ("price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                (
                    "valuation_mode",
                    models.CharField(
                        choices=[("stored", "stored"), ("derived", "derived")],
                        default="stored",
                        max_length=16,
                    ),
                ),
                ("density_kg_per_liter", models.DecimalField(blank=True, decimal_places=3, max_digits=6, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "inventory_item",
                "ordering": ["category", "name"],
                "constraints": [
                    models.UniqueConstraint(fields=("name", "category"), name="uq_inventory_item_name_category"),
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=0),
                        name="ck_inventory_item_quantity_non_negative",
                    ),
                ],
            },
        ),
    ]
