from django.urls import path

from apps.inventory.api.v1.views import (
    InventoryItemAdjustView,
    InventoryItemDetailView,
    InventoryItemListView,
    LowStockView,
)


urlpatterns = [
    path("inventory/items/", InventoryItemListView.as_view(), name="inventory-item-list"),
    path("inventory/items/<uuid:item_id>/", InventoryItemDetailView.as_view(), name="inventory-item-detail"),
    path("inventory/items/<uuid:item_id>/adjust", InventoryItemAdjustView.as_view(), name="inventory-item-adjust"),
    path("inventory/low-stock", LowStockView.as_view(), name="inventory-low-stock"),
]
