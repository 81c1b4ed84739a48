import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("inventory", "0001_initial"),
        ("production", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="InventoryBatch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("batch_number", models.CharField(max_length=128)),
                ("quantity", models.DecimalField(decimal_places=3, max_digits=12)),
                ("production_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[("available", "available"), ("allocated", "allocated")],
                        default="available",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "inventory_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="batches",
                        to="inventory.inventoryitem",
                    ),
                ),
                (
                    "production",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="batches",
                        to="production.production",
                    ),
                ),
            ],
            options={
                "db_table": "inventory_batch",
                "ordering": ["production_date", "created_at", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("inventory_item", "batch_number"),
                        name="uq_inventory_batch_item_batch_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="ck_inventory_batch_quantity_positive",
                    ),
                ],
            },
        ),
    ]
