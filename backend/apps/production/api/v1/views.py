from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.api.actors import get_actor
from apps.core.idempotency import run_idempotent
from apps.core.models import StaffMember
from apps.production.api.v1.serializers import ProductionCreateSerializer, ProductionSerializer
from apps.production.models import Production
from apps.production.services import production_capacity, record_production


class ProductionListView(APIView):
    def get(self, request):
        queryset = Production.objects.select_related("product", "created_by")
        product_id = request.query_params.get("product")
        if product_id:
            queryset = queryset.filter(product_id=product_id)
        date_from = request.query_params.get("date_from")
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        date_to = request.query_params.get("date_to")
        if date_to:
            queryset = queryset.filter(date__lte=date_to)
        return Response(ProductionSerializer(queryset, many=True).data)

    def post(self, request):
        actor = get_actor(request, roles={StaffMember.Role.ADMIN, StaffMember.Role.PRODUCTION})

        def handler():
            serializer = ProductionCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            production = record_production(
                serializer.validated_data["product"],
                serializer.validated_data["quantity"],
                day=serializer.validated_data.get("date"),
                notes=serializer.validated_data["notes"],
                actor=actor,
            )
            return status.HTTP_201_CREATED, ProductionSerializer(production).data

        return run_idempotent(request, "api", "production_create", handler)


class ProductionCapacityView(APIView):
    def get(self, request):
        return Response(production_capacity())
