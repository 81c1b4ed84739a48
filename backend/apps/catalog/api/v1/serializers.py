from rest_framework import serializers

from apps.catalog.models import Product, RecipeLine


class RecipeLineSerializer(serializers.ModelSerializer):
    inventory_item_name = serializers.CharField(source="inventory_item.name", read_only=True)

    class Meta:
        model = RecipeLine
        fields = ("id", "inventory_item", "inventory_item_name", "quantity_required", "unit", "sort_order")
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    recipe = RecipeLineSerializer(source="recipe_lines", many=True, read_only=True)

    class Meta:
        model = Product
        fields = (
            "id",
            "name",
            "code",
            "category",
            "unit",
            "selling_price",
            "is_active",
            "recipe",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields
