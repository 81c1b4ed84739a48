from django.contrib import admin

from apps.core.models import IdempotentRequest, Setting, StaffMember


@admin.register(StaffMember)
class StaffMemberAdmin(admin.ModelAdmin):
    list_display = ("name", "role", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("name",)


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ("key", "updated_at")
    search_fields = ("key",)


@admin.register(IdempotentRequest)
class IdempotentRequestAdmin(admin.ModelAdmin):
    list_display = ("operation", "source", "status", "idempotency_key", "started_at", "finished_at")
    list_filter = ("operation", "status")
    search_fields = ("idempotency_key",)
