import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Production",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity_produced", models.DecimalField(decimal_places=3, max_digits=12)),
                ("date", models.DateField()),
                ("batch_number", models.CharField(max_length=128)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="productions",
                        to="core.staffmember",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="productions",
                        to="catalog.product",
                    ),
                ),
            ],
            options={
                "db_table": "production_production",
                "ordering": ["-date", "-created_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "batch_number"),
                        name="uq_production_product_batch_number",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(quantity_produced__gt=0),
                        name="ck_production_quantity_positive",
                    ),
                ],
            },
        ),
    ]
