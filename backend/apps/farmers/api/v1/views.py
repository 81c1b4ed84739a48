from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.api.actors import get_actor
from apps.core.models import StaffMember
from apps.farmers.api.v1.serializers import (
    FarmerFreeProductSerializer,
    FarmerSerializer,
    FreeProductsWriteSerializer,
    MilkCollectionCreateSerializer,
    MilkCollectionSerializer,
    PeriodSerializer,
)
from apps.farmers.models import Farmer, MilkCollection
from apps.farmers.services import (
    free_products_for,
    issue_free_products,
    milk_summary,
    monthly_statement,
    record_collection,
    set_free_products,
)


def _period_from_query(request):
    today = timezone.localdate()
    serializer = PeriodSerializer(
        data={
            "year": request.query_params.get("year", today.year),
            "month": request.query_params.get("month", today.month),
        }
    )
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data["year"], serializer.validated_data["month"]


class FarmerListView(APIView):
    def get(self, request):
        include_inactive = request.query_params.get("include_inactive") in {"1", "true", "True"}
        queryset = Farmer.objects.all() if include_inactive else Farmer.objects.filter(is_active=True)
        return Response(FarmerSerializer(queryset.order_by("name"), many=True).data)


class MilkCollectionListView(APIView):
    def get(self, request):
        queryset = MilkCollection.objects.select_related("farmer")
        farmer_id = request.query_params.get("farmer")
        if farmer_id:
            queryset = queryset.filter(farmer_id=farmer_id)
        day = request.query_params.get("date")
        if day:
            queryset = queryset.filter(date=day)
        return Response(MilkCollectionSerializer(queryset, many=True).data)

    def post(self, request):
        actor = get_actor(request, roles={StaffMember.Role.ADMIN, StaffMember.Role.PRODUCTION})
        serializer = MilkCollectionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        collection = record_collection(
            serializer.validated_data["farmer"],
            serializer.validated_data["quantity_liters"],
            day=serializer.validated_data.get("date"),
            at=serializer.validated_data.get("time"),
            actor=actor,
        )
        return Response(MilkCollectionSerializer(collection).data, status=status.HTTP_201_CREATED)


class MilkSummaryView(APIView):
    def get(self, request):
        return Response(milk_summary())


class FarmerFreeProductsView(APIView):
    def get(self, request, farmer_id):
        farmer = get_object_or_404(Farmer, pk=farmer_id)
        year, month = _period_from_query(request)
        return Response(FarmerFreeProductSerializer(free_products_for(farmer, year, month), many=True).data)

    def post(self, request, farmer_id):
        get_actor(request, roles={StaffMember.Role.ADMIN})
        farmer = get_object_or_404(Farmer, pk=farmer_id)
        serializer = FreeProductsWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rows = set_free_products(
            farmer,
            serializer.validated_data["year"],
            serializer.validated_data["month"],
            serializer.validated_data["items"],
        )
        return Response(FarmerFreeProductSerializer(rows, many=True).data, status=status.HTTP_201_CREATED)


class FarmerFreeProductsIssueView(APIView):
    def post(self, request, farmer_id):
        actor = get_actor(request, roles={StaffMember.Role.ADMIN})
        farmer = get_object_or_404(Farmer, pk=farmer_id)
        serializer = PeriodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = issue_free_products(
            farmer,
            serializer.validated_data["year"],
            serializer.validated_data["month"],
            actor=actor,
        )
        return Response(result)


class FarmerMonthlyStatementView(APIView):
    def get(self, request, farmer_id):
        farmer = get_object_or_404(Farmer, pk=farmer_id)
        year, month = _period_from_query(request)
        return Response(monthly_statement(farmer, year, month))
