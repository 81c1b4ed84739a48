from django.contrib import admin

from apps.production.models import Production


@admin.register(Production)
class ProductionAdmin(admin.ModelAdmin):
    list_display = ("batch_number", "product", "quantity_produced", "date", "created_by", "created_at")
    list_filter = ("date", "product")
    search_fields = ("batch_number", "product__name", "notes")
    readonly_fields = ("product", "quantity_produced", "date", "batch_number", "created_by", "created_at")
