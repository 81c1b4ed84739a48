import json

from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response

from apps.core.models import IdempotentRequest


def normalize_payload(data):
    return json.loads(json.dumps(data, default=str))


def find_completed_request(source: str, operation: str, idempotency_key: str):
    if not idempotency_key:
        return None
    return (
        IdempotentRequest.objects.filter(
            source=source,
            operation=operation,
            idempotency_key=idempotency_key,
            status=IdempotentRequest.Status.COMPLETED,
        )
        .order_by("-started_at")
        .first()
    )


def start_request(source: str, operation: str, idempotency_key: str, payload):
    return IdempotentRequest.objects.create(
        source=source,
        operation=operation,
        idempotency_key=idempotency_key or None,
        status=IdempotentRequest.Status.STARTED,
        payload=normalize_payload(payload),
    )


def complete_request(entry: IdempotentRequest, status_code: int, data):
    entry.status = IdempotentRequest.Status.COMPLETED
    entry.finished_at = timezone.now()
    entry.result = {
        "status_code": status_code,
        "data": normalize_payload(data),
    }
    entry.save(update_fields=["status", "finished_at", "result", "updated_at"])


def fail_request(entry: IdempotentRequest, status_code: int, errors):
    entry.status = IdempotentRequest.Status.FAILED
    entry.finished_at = timezone.now()
    entry.result = {
        "status_code": status_code,
        "errors": normalize_payload(errors),
    }
    entry.save(update_fields=["status", "finished_at", "result", "updated_at"])


def run_idempotent(request, source: str, operation: str, handler):
    """Execute `handler()` once per `Idempotency-Key`, replaying the stored response on retries.

    `handler` returns `(status_code, data)`. Any exception it raises is recorded on the
    request entry and propagated unchanged.
    """
    idempotency_key = request.headers.get("Idempotency-Key")
    if not idempotency_key:
        return Response(
            {"code": "idempotency_key_required", "detail": "Idempotency-Key header is required.", "field_errors": {}},
            status=status.HTTP_400_BAD_REQUEST,
        )

    existing = find_completed_request(source, operation, idempotency_key)
    if existing:
        result = existing.result or {}
        return Response(result.get("data", {}), status=result.get("status_code", status.HTTP_200_OK))

    entry = start_request(source, operation, idempotency_key, request.data)
    try:
        status_code, data = handler()
    except Exception as exc:
        status_code = getattr(exc, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR)
        fail_request(entry, status_code, {"detail": str(exc)})
        raise
    complete_request(entry, status_code, data)
    return Response(data, status=status_code)
