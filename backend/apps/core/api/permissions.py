from rest_framework.permissions import SAFE_METHODS, BasePermission

from apps.core.api.actors import actor_header
from apps.core.api.authentication import api_key_header


class HasValidApiKey(BasePermission):
    @property
    def message(self):
        return f"A valid {api_key_header()} header is required."

    def has_permission(self, request, view):
        if request.method == "OPTIONS":
            return True
        return bool(request.auth)


class ActorRequiredForWrites(BasePermission):
    @property
    def message(self):
        return f"{actor_header()} header is required for write operations."

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return bool(request.headers.get(actor_header()))
