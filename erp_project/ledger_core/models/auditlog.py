from django.conf import settings  # To access global project settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .organization import Organization


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Business trail of posting actions
    # Nullable because some actions are not tied to one organization
    organization = models.ForeignKey(
        Organization,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Which user performed the action
    # (Nullable when the action was automated, e.g. a Celery task)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # post, void, verify, approve, reconcile, ...
    action = models.CharField(max_length=50)
    # "SalesInvoice", "Voucher", "Organization"
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    # Before/after details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["organization", "user"], name="auditlog_org_user_idx"),
            models.Index(fields=["organization", "created_at"], name="auditlog_org_created_idx"),
        ]

    def __str__(self):
        time = self.created_at
        return f"[{time:%Y-%m-%d %H:%M}] {self.user} {self.action} {self.object_type}({self.object_id})"

    def clean(self):
        # Ensure the user is a member of the organization being logged
        if self.user and self.organization and not self.user.is_superuser:
            if not self.user.memberships.filter(
                organization=self.organization, is_active=True
            ).exists():
                raise ValidationError(
                    "AuditLog.user must be a member of AuditLog.organization"
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
