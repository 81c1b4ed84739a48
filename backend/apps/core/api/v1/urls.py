from django.urls import path

from apps.core.api.v1.views import HealthView, StaffMemberListView


urlpatterns = [
    path("health", HealthView.as_view(), name="health"),
    path("staff/", StaffMemberListView.as_view(), name="staff-list"),
]
