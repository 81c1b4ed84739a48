from django.contrib import admin

from apps.catalog.models import Product, RecipeLine


class RecipeLineInline(admin.TabularInline):
    model = RecipeLine
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "category", "unit", "selling_price", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("name", "code")
    inlines = [RecipeLineInline]
