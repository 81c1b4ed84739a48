from rest_framework import serializers

from apps.catalog.models import Product
from apps.farmers.models import Farmer, FarmerFreeProduct, MilkCollection


class FarmerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Farmer
        fields = ("id", "name", "phone", "address", "is_active", "created_at", "updated_at")
        read_only_fields = fields


class MilkCollectionSerializer(serializers.ModelSerializer):
    farmer_name = serializers.CharField(source="farmer.name", read_only=True)

    class Meta:
        model = MilkCollection
        fields = ("id", "farmer", "farmer_name", "date", "time", "quantity_liters", "recorded_by", "created_at")
        read_only_fields = fields


class MilkCollectionCreateSerializer(serializers.Serializer):
    farmer = serializers.PrimaryKeyRelatedField(queryset=Farmer.objects.filter(is_active=True))
    quantity_liters = serializers.DecimalField(max_digits=12, decimal_places=3)
    date = serializers.DateField(required=False)
    time = serializers.TimeField(required=False)

    def validate_quantity_liters(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity_liters must be greater than 0.")
        return value


class FarmerFreeProductSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = FarmerFreeProduct
        fields = (
            "id",
            "farmer",
            "year",
            "month",
            "product",
            "product_name",
            "quantity",
            "unit",
            "notes",
            "issued_at",
            "issued_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class PeriodSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    month = serializers.IntegerField(min_value=1, max_value=12)


class FreeProductItemSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    unit = serializers.CharField(default="pc")
    notes = serializers.CharField(allow_blank=True, default="")

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than 0.")
        return value


class FreeProductsWriteSerializer(PeriodSerializer):
    items = FreeProductItemSerializer(many=True, allow_empty=False)
