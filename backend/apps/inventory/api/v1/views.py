from django.shortcuts import get_object_or_404
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.api.actors import get_actor
from apps.core.models import StaffMember
from apps.inventory.api.v1.serializers import (
    InventoryItemDetailSerializer,
    InventoryItemSerializer,
    StockAdjustmentSerializer,
)
from apps.inventory.models import InventoryItem
from apps.inventory.services import adjust_stock, low_stock_items


class InventoryItemListView(APIView):
    def get(self, request):
        queryset = InventoryItem.objects.all().order_by("category", "name")
        category = request.query_params.get("category")
        if category:
            queryset = queryset.filter(category=category)
        query = (request.query_params.get("q") or "").strip()
        if query:
            queryset = queryset.filter(name__icontains=query)
        return Response(InventoryItemSerializer(queryset, many=True).data)


class InventoryItemDetailView(APIView):
    def get(self, request, item_id):
        item = get_object_or_404(InventoryItem, pk=item_id)
        return Response(InventoryItemDetailSerializer(item).data)


class InventoryItemAdjustView(APIView):
    def post(self, request, item_id):
        actor = get_actor(request, roles={StaffMember.Role.ADMIN})
        item = get_object_or_404(InventoryItem, pk=item_id)
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = adjust_stock(
            item,
            serializer.validated_data["delta"],
            actor,
            reason=serializer.validated_data["reason"],
        )
        return Response(InventoryItemSerializer(item).data)


class LowStockView(APIView):
    def get(self, request):
        return Response(InventoryItemSerializer(low_stock_items(), many=True).data)
