from django.contrib import admin

from apps.inventory.models import InventoryBatch, InventoryItem


class InventoryBatchInline(admin.TabularInline):
    model = InventoryBatch
    extra = 0
    readonly_fields = ("batch_number", "production", "quantity", "production_date", "status", "created_at")
    can_delete = False


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "unit", "quantity", "min_quantity", "valuation_mode")
    list_filter = ("category", "valuation_mode")
    search_fields = ("name",)
    readonly_fields = ("quantity",)
    inlines = [InventoryBatchInline]


@admin.register(InventoryBatch)
class InventoryBatchAdmin(admin.ModelAdmin):
    list_display = ("batch_number", "inventory_item", "quantity", "production_date", "status", "created_at")
    list_filter = ("status", "production_date")
    search_fields = ("batch_number", "inventory_item__name")
