from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from rest_framework import authentication, exceptions


def api_key_header() -> str:
    return getattr(settings, "DAIRY_API_KEY_HEADER", "X-API-Key")


class ApiKeyAuthentication(authentication.BaseAuthentication):
    """Authenticates service callers by a shared key; the acting staff member is resolved per view."""

    def authenticate(self, request):
        api_key = request.headers.get(api_key_header())
        if not api_key:
            return None

        if api_key not in set(getattr(settings, "DAIRY_API_KEYS", [])):
            raise exceptions.AuthenticationFailed("Invalid API key.")

        return (AnonymousUser(), api_key)
