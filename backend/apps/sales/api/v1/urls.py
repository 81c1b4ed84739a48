from django.urls import path

from apps.sales.api.v1.views import (
    AllocationListView,
    MyInventoryView,
    PaymentListView,
    SaleDetailView,
    SaleListView,
    SaleReturnsView,
    SaleReverseView,
)


urlpatterns = [
    path("allocations/", AllocationListView.as_view(), name="allocation-list"),
    path("allocations/my-inventory", MyInventoryView.as_view(), name="allocation-my-inventory"),
    path("sales/", SaleListView.as_view(), name="sale-list"),
    path("sales/<uuid:sale_id>/", SaleDetailView.as_view(), name="sale-detail"),
    path("sales/<uuid:sale_id>/reverse", SaleReverseView.as_view(), name="sale-reverse"),
    path("sales/<uuid:sale_id>/returns", SaleReturnsView.as_view(), name="sale-returns"),
    path("payments/", PaymentListView.as_view(), name="payment-list"),
]
