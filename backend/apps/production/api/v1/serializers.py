from rest_framework import serializers

from apps.catalog.models import Product
from apps.production.models import Production


class ProductionSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    created_by_name = serializers.CharField(source="created_by.name", read_only=True, default=None)

    class Meta:
        model = Production
        fields = (
            "id",
            "product",
            "product_name",
            "quantity_produced",
            "date",
            "batch_number",
            "notes",
            "created_by",
            "created_by_name",
            "created_at",
        )
        read_only_fields = fields


class ProductionCreateSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.filter(is_active=True))
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    date = serializers.DateField(required=False)
    notes = serializers.CharField(allow_blank=True, default="")

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than 0.")
        return value
