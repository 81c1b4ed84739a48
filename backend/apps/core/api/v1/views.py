from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.api.actors import get_actor
from apps.core.api.v1.serializers import StaffMemberSerializer
from apps.core.models import StaffMember


class HealthView(APIView):
    authentication_classes = []
    permission_classes = []

    def get(self, request):
        return Response({"status": "ok", "service": "dairyops", "version": "v1"})


class StaffMemberListView(APIView):
    def get(self, request):
        queryset = StaffMember.objects.filter(is_active=True)
        role = request.query_params.get("role")
        if role:
            queryset = queryset.filter(role=role)
        return Response(StaffMemberSerializer(queryset, many=True).data)

    def post(self, request):
        get_actor(request, roles={StaffMember.Role.ADMIN})
        serializer = StaffMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        member = serializer.save()
        return Response(StaffMemberSerializer(member).data, status=status.HTTP_201_CREATED)
