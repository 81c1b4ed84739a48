from django.urls import path

from apps.farmers.api.v1.views import (
    FarmerFreeProductsIssueView,
    FarmerFreeProductsView,
    FarmerListView,
    FarmerMonthlyStatementView,
    MilkCollectionListView,
    MilkSummaryView,
)


urlpatterns = [
    path("farmers/", FarmerListView.as_view(), name="farmer-list"),
    path("farmers/collections/", MilkCollectionListView.as_view(), name="milk-collection-list"),
    path("farmers/milk-summary", MilkSummaryView.as_view(), name="milk-summary"),
    path(
        "farmers/<uuid:farmer_id>/free-products/",
        FarmerFreeProductsView.as_view(),
        name="farmer-free-products",
    ),
    path(
        "farmers/<uuid:farmer_id>/free-products/issue",
        FarmerFreeProductsIssueView.as_view(),
        name="farmer-free-products-issue",
    ),
    path(
        "farmers/<uuid:farmer_id>/monthly",
        FarmerMonthlyStatementView.as_view(),
        name="farmer-monthly-statement",
    ),
]
