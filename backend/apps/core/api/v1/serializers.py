from rest_framework import serializers

from apps.core.models import StaffMember


class StaffMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffMember
        fields = ("id", "name", "role", "is_active", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")
