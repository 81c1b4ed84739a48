from django.urls import path

from apps.production.api.v1.views import ProductionCapacityView, ProductionListView


urlpatterns = [
    path("production/", ProductionListView.as_view(), name="production-list"),
    path("production/capacity", ProductionCapacityView.as_view(), name="production-capacity"),
]
