from decimal import Decimal

from rest_framework import serializers

from apps.inventory.ledger import FIFO_ORDER
from apps.inventory.models import InventoryBatch, InventoryItem


class InventoryBatchSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryBatch
        fields = ("id", "batch_number", "production", "quantity", "production_date", "status", "created_at")
        read_only_fields = fields


class InventoryItemSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = InventoryItem
        fields = (
            "id",
            "name",
            "category",
            "unit",
            "quantity",
            "min_quantity",
            "price",
            "expiry_date",
            "valuation_mode",
            "is_low_stock",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class InventoryItemDetailSerializer(InventoryItemSerializer):
    batches = serializers.SerializerMethodField()

    class Meta(InventoryItemSerializer.Meta):
        fields = InventoryItemSerializer.Meta.fields + ("batches",)
        read_only_fields = fields

    def get_batches(self, obj):
        return InventoryBatchSerializer(obj.batches.order_by(*FIFO_ORDER), many=True).data


class StockAdjustmentSerializer(serializers.Serializer):
    delta = serializers.DecimalField(max_digits=12, decimal_places=3)
    reason = serializers.CharField(allow_blank=True, default="")

    def validate_delta(self, value):
        if value == Decimal("0"):
            raise serializers.ValidationError("delta must not be 0.")
        return value
