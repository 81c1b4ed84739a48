from decimal import Decimal

from django.db import migrations


def seed_milk_item(apps, schema_editor):
    InventoryItem = apps.get_model("inventory", "InventoryItem")
    InventoryItem.objects.get_or_create(
        name="Milk",
        category="raw_material",
        defaults={
            "unit": "l",
            "valuation_mode": "derived",
            "density_kg_per_liter": Decimal("1"),
        },
    )


class Migration(migrations.Migration):
    dependencies = [
        ("inventory", "0002_inventorybatch"),
    ]

    operations = [
        migrations.RunPython(seed_milk_item, migrations.RunPython.noop),
    ]
