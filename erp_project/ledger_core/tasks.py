import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def reconcile_organization_balances(organization_id, repair=False):
    """Check (and optionally repair) cached account balances against the ledger."""
    # import lazily to avoid circular imports at module import time
    from .models import Organization
    from .services import check_trial_balance_invariant, reconcile_account_balances

    organization = Organization.objects.get(pk=organization_id)
    drift = reconcile_account_balances(organization, repair=repair)

    check = check_trial_balance_invariant(organization)
    if not check.is_balanced:
        logger.error(
            "Trial balance out of balance",
            extra={
                "organization": organization_id,
                "total_debit": str(check.total_debit),
                "total_credit": str(check.total_credit),
            },
        )

    return {
        "organization": organization_id,
        "drift": drift,
        "trial_balance_ok": check.is_balanced,
    }


@shared_task
def reconcile_all_organizations(repair=False):
    from .models import Organization

    ids = list(Organization.objects.values_list("pk", flat=True))
    for organization_id in ids:
        reconcile_organization_balances.delay(organization_id, repair=repair)
    return len(ids)
