from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions

from apps.core.models import StaffMember


def actor_header() -> str:
    return getattr(settings, "DAIRY_ACTOR_HEADER", "X-Actor-Id")


def get_actor(request, roles=None) -> StaffMember:
    """Resolve the staff member acting on this request from the actor header."""
    header = actor_header()
    actor_id = request.headers.get(header)
    if not actor_id:
        raise exceptions.NotAuthenticated(f"{header} header is required.")
    try:
        actor = StaffMember.objects.get(pk=actor_id, is_active=True)
    except (StaffMember.DoesNotExist, DjangoValidationError, ValueError) as exc:
        raise exceptions.AuthenticationFailed("Unknown or inactive actor.") from exc
    if roles and actor.role not in roles:
        raise exceptions.PermissionDenied(f"Role {actor.role} cannot perform this action.")
    return actor
