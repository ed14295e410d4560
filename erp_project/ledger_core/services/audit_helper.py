from typing import Optional
from ..models import AuditLog, Organization


def log_action(
    *,
    action: str,
    instance,
    user=None,
    organization: Optional[Organization] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Runs inside the caller's transaction, so a rollback drops the row too.
    """

    if not organization:
        organization = getattr(instance, "organization", None)

    AuditLog.objects.create(
        organization=organization,
        user=user if getattr(user, "is_authenticated", False) else None,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
