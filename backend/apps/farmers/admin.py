from django.contrib import admin

from apps.farmers.models import Farmer, FarmerFreeProduct, MilkCollection


@admin.register(Farmer)
class FarmerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "phone")


@admin.register(MilkCollection)
class MilkCollectionAdmin(admin.ModelAdmin):
    list_display = ("farmer", "date", "time", "quantity_liters", "recorded_by")
    list_filter = ("date",)
    search_fields = ("farmer__name",)


@admin.register(FarmerFreeProduct)
class FarmerFreeProductAdmin(admin.ModelAdmin):
    list_display = ("farmer", "year", "month", "product", "quantity", "unit", "issued_at")
    list_filter = ("year", "month")
    search_fields = ("farmer__name", "product__name")
