from django.contrib import admin

from apps.sales.models import Allocation, Cheque, Payment, PaymentFreeItem, Return, Sale, SaleItem


@admin.register(Allocation)
class AllocationAdmin(admin.ModelAdmin):
    list_display = ("batch_number", "product", "salesperson", "quantity_allocated", "status", "allocation_date")
    list_filter = ("status", "allocation_date")
    search_fields = ("batch_number", "product__name", "salesperson__name")


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0


class ReturnInline(admin.TabularInline):
    model = Return
    extra = 0


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ("id", "channel", "salesperson", "customer_name", "sale_date", "is_reversed")
    list_filter = ("channel", "is_reversed", "sale_date")
    search_fields = ("customer_name", "salesperson__name")
    inlines = [SaleItemInline, ReturnInline]


class ChequeInline(admin.StackedInline):
    model = Cheque
    extra = 0


class PaymentFreeItemInline(admin.TabularInline):
    model = PaymentFreeItem
    extra = 0


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "sale", "amount", "method", "paid_on")
    list_filter = ("method", "paid_on")
    inlines = [ChequeInline, PaymentFreeItemInline]
