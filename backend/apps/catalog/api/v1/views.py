from rest_framework import viewsets

from apps.catalog.api.v1.serializers import ProductSerializer
from apps.catalog.models import Product


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer

    def get_queryset(self):
        queryset = Product.objects.prefetch_related("recipe_lines__inventory_item").order_by("name")
        active_only = self.request.query_params.get("active")
        if active_only in {"1", "true", "True"}:
            queryset = queryset.filter(is_active=True)
        query = (self.request.query_params.get("q") or "").strip()
        if query:
            queryset = queryset.filter(name__icontains=query)
        return queryset
