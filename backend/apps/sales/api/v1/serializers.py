from rest_framework import serializers

from apps.catalog.models import Product
from apps.core.models import StaffMember
from apps.inventory.models import InventoryItem
from apps.production.models import Production
from apps.sales.models import Allocation, Cheque, Payment, PaymentFreeItem, PaymentMethod, Return, Sale, SaleItem


def _positive(value, field_name):
    if value <= 0:
        raise serializers.ValidationError(f"{field_name} must be greater than 0.")
    return value


def _non_negative(value, field_name):
    if value < 0:
        raise serializers.ValidationError(f"{field_name} must not be negative.")
    return value


class AllocationSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    salesperson_name = serializers.CharField(source="salesperson.name", read_only=True)

    class Meta:
        model = Allocation
        fields = (
            "id",
            "production",
            "product",
            "product_name",
            "salesperson",
            "salesperson_name",
            "batch_number",
            "quantity_allocated",
            "status",
            "allocation_date",
            "allocated_by",
            "notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class AllocationCreateSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    salesperson = serializers.PrimaryKeyRelatedField(
        queryset=StaffMember.objects.filter(role=StaffMember.Role.SALESPERSON, is_active=True)
    )
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    production = serializers.PrimaryKeyRelatedField(queryset=Production.objects.all(), required=False)
    inventory_item = serializers.PrimaryKeyRelatedField(queryset=InventoryItem.objects.all(), required=False)
    allocation_date = serializers.DateField(required=False)
    notes = serializers.CharField(allow_blank=True, default="")

    def validate_quantity(self, value):
        return _positive(value, "quantity")

    def validate(self, attrs):
        if ("production" in attrs) == ("inventory_item" in attrs):
            raise serializers.ValidationError("Exactly one of production or inventory_item is required.")
        return attrs


class AllocationBulkSerializer(serializers.Serializer):
    allocations = AllocationCreateSerializer(many=True, allow_empty=False)


class SaleItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = SaleItem
        fields = ("id", "product", "product_name", "quantity", "free_quantity", "unit_price")
        read_only_fields = fields


class ReturnSerializer(serializers.ModelSerializer):
    class Meta:
        model = Return
        fields = ("id", "sale", "product", "quantity_returned", "replacement_quantity", "reason", "created_at")
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    items = SaleItemSerializer(many=True, read_only=True)
    returns = ReturnSerializer(many=True, read_only=True)

    class Meta:
        model = Sale
        fields = (
            "id",
            "channel",
            "salesperson",
            "customer_name",
            "sale_date",
            "notes",
            "is_reversed",
            "reversed_at",
            "reversal_reason",
            "items",
            "returns",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class SaleItemWriteSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.filter(is_active=True))
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, default=0)
    free_quantity = serializers.DecimalField(max_digits=12, decimal_places=3, default=0)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)

    def validate_quantity(self, value):
        return _non_negative(value, "quantity")

    def validate_free_quantity(self, value):
        return _non_negative(value, "free_quantity")

    def validate(self, attrs):
        if attrs.get("quantity", 0) + attrs.get("free_quantity", 0) <= 0:
            raise serializers.ValidationError("quantity or free_quantity must be greater than 0.")
        return attrs


class SaleCreateSerializer(serializers.Serializer):
    customer_name = serializers.CharField(allow_blank=True, default="")
    sale_date = serializers.DateField(required=False)
    notes = serializers.CharField(allow_blank=True, default="")
    items = SaleItemWriteSerializer(many=True, allow_empty=False)


class SaleReverseSerializer(serializers.Serializer):
    confirmation = serializers.CharField()
    reason = serializers.CharField(allow_blank=True, default="")


class ReturnItemWriteSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity_returned = serializers.DecimalField(max_digits=12, decimal_places=3, default=0)
    replacement_quantity = serializers.DecimalField(max_digits=12, decimal_places=3, default=0)

    def validate_quantity_returned(self, value):
        return _non_negative(value, "quantity_returned")

    def validate_replacement_quantity(self, value):
        return _non_negative(value, "replacement_quantity")


class ReturnCreateSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, default="")
    items = ReturnItemWriteSerializer(many=True, allow_empty=False)


class ChequeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Cheque
        fields = ("cheque_number", "bank_name", "cheque_date", "status")
        read_only_fields = ("status",)


class PaymentFreeItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentFreeItem
        fields = ("product", "quantity")
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    cheque = ChequeSerializer(read_only=True)
    free_items = PaymentFreeItemSerializer(many=True, read_only=True)

    class Meta:
        model = Payment
        fields = ("id", "sale", "amount", "method", "paid_on", "notes", "cheque", "free_items", "created_at")
        read_only_fields = fields


class PaymentFreeItemWriteSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)

    def validate_quantity(self, value):
        return _non_negative(value, "quantity")


class PaymentCreateSerializer(serializers.Serializer):
    sale = serializers.PrimaryKeyRelatedField(queryset=Sale.objects.all())
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    paid_on = serializers.DateField(required=False)
    notes = serializers.CharField(allow_blank=True, default="")
    cheque = ChequeSerializer(required=False)
    free_items = PaymentFreeItemWriteSerializer(many=True, required=False)

    def validate_amount(self, value):
        return _non_negative(value, "amount")

    def validate(self, attrs):
        if attrs["method"] == PaymentMethod.CHEQUE and not attrs.get("cheque"):
            raise serializers.ValidationError({"cheque": ["cheque details are required for cheque payments."]})
        return attrs
