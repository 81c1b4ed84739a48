import hmac

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.api.actors import get_actor
from apps.core.idempotency import run_idempotent
from apps.core.models import StaffMember
from apps.sales.api.v1.serializers import (
    AllocationBulkSerializer,
    AllocationCreateSerializer,
    AllocationSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
    ReturnCreateSerializer,
    ReturnSerializer,
    SaleCreateSerializer,
    SaleReverseSerializer,
    SaleSerializer,
)
from apps.sales.models import Allocation, Payment, Sale
from apps.sales.services.allocation import allocate, allocate_bulk, salesperson_inventory
from apps.sales.services.deduction import record_sale
from apps.sales.services.payments import record_payment
from apps.sales.services.restoration import process_return, reverse_sale


ADMIN_ONLY = {StaffMember.Role.ADMIN}
SELLERS = {StaffMember.Role.ADMIN, StaffMember.Role.SALESPERSON}


class AllocationListView(APIView):
    def get(self, request):
        queryset = Allocation.objects.select_related("product", "salesperson")
        for param, lookup in (
            ("salesperson", "salesperson_id"),
            ("product", "product_id"),
            ("status", "status"),
            ("date", "allocation_date"),
        ):
            value = request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{lookup: value})
        return Response(AllocationSerializer(queryset, many=True).data)

    def post(self, request):
        actor = get_actor(request, roles=ADMIN_ONLY)
        if "allocations" in request.data:
            serializer = AllocationBulkSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            allocations = allocate_bulk([dict(row) for row in serializer.validated_data["allocations"]], actor)
            return Response(AllocationSerializer(allocations, many=True).data, status=status.HTTP_201_CREATED)

        serializer = AllocationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allocation = allocate(actor=actor, **serializer.validated_data)
        return Response(AllocationSerializer(allocation).data, status=status.HTTP_201_CREATED)


class MyInventoryView(APIView):
    def get(self, request):
        actor = get_actor(request, roles={StaffMember.Role.SALESPERSON})
        return Response(salesperson_inventory(actor))


class SaleListView(APIView):
    def get(self, request):
        queryset = Sale.objects.prefetch_related("items__product", "returns")
        salesperson_id = request.query_params.get("salesperson")
        if salesperson_id:
            queryset = queryset.filter(salesperson_id=salesperson_id)
        day = request.query_params.get("date")
        if day:
            queryset = queryset.filter(sale_date=day)
        return Response(SaleSerializer(queryset, many=True).data)

    def post(self, request):
        actor = get_actor(request, roles=SELLERS)

        def handler():
            serializer = SaleCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            sale = record_sale(
                actor,
                [dict(item) for item in serializer.validated_data["items"]],
                customer_name=serializer.validated_data["customer_name"],
                sale_date=serializer.validated_data.get("sale_date"),
                notes=serializer.validated_data["notes"],
            )
            return status.HTTP_201_CREATED, SaleSerializer(sale).data

        return run_idempotent(request, "api", "sale_create", handler)


class SaleDetailView(APIView):
    def get(self, request, sale_id):
        sale = get_object_or_404(Sale, pk=sale_id)
        return Response(SaleSerializer(sale).data)


class SaleReverseView(APIView):
    def post(self, request, sale_id):
        actor = get_actor(request, roles=ADMIN_ONLY)
        sale = get_object_or_404(Sale, pk=sale_id)
        serializer = SaleReverseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        expected = getattr(settings, "DAIRY_REVERSAL_SECRET", "")
        if not expected or not hmac.compare_digest(serializer.validated_data["confirmation"], expected):
            raise exceptions.PermissionDenied("Invalid reversal confirmation.")
        sale = reverse_sale(sale, actor, reason=serializer.validated_data["reason"])
        return Response(SaleSerializer(sale).data)


class SaleReturnsView(APIView):
    def get(self, request, sale_id):
        sale = get_object_or_404(Sale, pk=sale_id)
        return Response(ReturnSerializer(sale.returns.all(), many=True).data)

    def post(self, request, sale_id):
        actor = get_actor(request, roles=SELLERS)
        sale = get_object_or_404(Sale, pk=sale_id)
        if actor.role == StaffMember.Role.SALESPERSON and sale.salesperson_id != actor.pk:
            raise exceptions.PermissionDenied("Salespeople can only process returns on their own sales.")
        serializer = ReturnCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        records = process_return(
            sale,
            [dict(item) for item in serializer.validated_data["items"]],
            serializer.validated_data["reason"],
            actor,
        )
        return Response(ReturnSerializer(records, many=True).data, status=status.HTTP_201_CREATED)


class PaymentListView(APIView):
    def get(self, request):
        queryset = Payment.objects.select_related("cheque").prefetch_related("free_items")
        sale_id = request.query_params.get("sale")
        if sale_id:
            queryset = queryset.filter(sale_id=sale_id)
        return Response(PaymentSerializer(queryset, many=True).data)

    def post(self, request):
        actor = get_actor(request, roles=SELLERS)

        def handler():
            serializer = PaymentCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data
            payment = record_payment(
                data["sale"],
                data["amount"],
                data["method"],
                actor,
                paid_on=data.get("paid_on"),
                notes=data["notes"],
                cheque=data.get("cheque"),
                free_items=[dict(item) for item in data.get("free_items", [])],
            )
            return status.HTTP_201_CREATED, PaymentSerializer(payment).data

        return run_idempotent(request, "api", "payment_create", handler)
