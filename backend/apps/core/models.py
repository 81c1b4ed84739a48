import uuid

from django.db import models


class StaffMember(models.Model):
    class Role(models.TextChoices):
        ADMIN = "ADMIN", "ADMIN"
        SALESPERSON = "SALESPERSON", "SALESPERSON"
        PRODUCTION = "PRODUCTION", "PRODUCTION"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    role = models.CharField(max_length=16, choices=Role.choices)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "core_staff_member"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN


class Setting(models.Model):
    key = models.CharField(max_length=128, primary_key=True)
    value = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "core_setting"
        ordering = ["key"]

    def __str__(self) -> str:
        return self.key

    @classmethod
    def get_value(cls, key: str, default=None):
        row = cls.objects.filter(key=key).first()
        if row is None:
            return default
        return row.value


class IdempotentRequest(models.Model):
    class Status(models.TextChoices):
        STARTED = "started", "started"
        COMPLETED = "completed", "completed"
        FAILED = "failed", "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    source = models.CharField(max_length=64)
    operation = models.CharField(max_length=64)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.STARTED)
    idempotency_key = models.CharField(max_length=255, blank=True, null=True)
    payload = models.JSONField(default=dict, blank=True)
    result = models.JSONField(default=dict, blank=True)
    started_at = models.DateTimeField(auto_now_add=True)
    finished_at = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "core_idempotent_request"
        ordering = ["-started_at"]
        indexes = [
            models.Index(fields=["operation", "idempotency_key"], name="idx_core_idem_op_key"),
        ]

    def __str__(self) -> str:
        return f"{self.source}:{self.operation}:{self.status}"
