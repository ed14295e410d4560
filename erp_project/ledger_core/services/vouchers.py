import logging

from django.db import transaction
from django.db.models import Count, Sum

from ..exceptions import NotFound, ValidationFailed
from ..models import Voucher, VoucherEntry
from ..models.money import quantize
from .audit_helper import log_action
from .ledger import post_voucher_entries, void_voucher_entries
from .numbering import save_with_number

logger = logging.getLogger(__name__)

MIN_VOID_REASON_LENGTH = 5


# ----------------------------
# Voucher construction
# ----------------------------
@transaction.atomic
def create_voucher(
    organization,
    voucher_type,
    voucher_date,
    entries,
    narration="",
    reference_type="manual",
    reference_number="",
    reference_id=None,
    user=None,
):
    """
    Create a numbered draft voucher from EntryLine items.
    Totals come from the saved entries, never from the caller.
    """
    voucher = Voucher(
        organization=organization,
        voucher_type=voucher_type,
        voucher_date=voucher_date,
        narration=narration,
        reference_type=reference_type,
        reference_number=reference_number or "",
        reference_id=reference_id,
        created_by=user,
    )
    save_with_number(voucher)

    for line_no, line in enumerate(entries, start=1):
        VoucherEntry.objects.create(
            voucher=voucher,
            line_no=line_no,
            account_id=line.account_id,
            entry_type=line.entry_type,
            amount=line.amount,
            description=line.description or "",
        )

    # signals kept the row in sync; refresh the instance we hand back
    voucher.refresh_from_db(fields=["total_debit", "total_credit"])
    return voucher


def _lock_voucher(organization, voucher_id):
    try:
        return Voucher.objects.select_for_update().get(
            pk=voucher_id, organization=organization
        )
    except Voucher.DoesNotExist:
        raise NotFound(f"Voucher {voucher_id} not found.") from None


# ----------------------------
# Manual voucher workflows
# ----------------------------
def post_voucher(organization, voucher_id, user=None):
    """draft → posted, with ledger rows, in one transaction"""
    with transaction.atomic():
        voucher = _lock_voucher(organization, voucher_id)
        voucher.post(user=user)
        post_voucher_entries(voucher, user=user)
        log_action(
            action="post",
            instance=voucher,
            user=user,
            changes={
                "voucher_number": voucher.voucher_number,
                "total": str(voucher.total_debit),
            },
        )

    logger.info(
        "Voucher posted",
        extra={"organization": organization.pk, "voucher_number": voucher.voucher_number},
    )
    return voucher


def void_voucher(organization, voucher_id, user=None, reason=""):
    """posted → void, reversing its ledger rows"""
    reason = (reason or "").strip()
    if len(reason) < MIN_VOID_REASON_LENGTH:
        raise ValidationFailed(
            [f"Void reason must be at least {MIN_VOID_REASON_LENGTH} characters"]
        )

    with transaction.atomic():
        voucher = _lock_voucher(organization, voucher_id)
        voucher.void(user=user, reason=reason)
        reversed_count = void_voucher_entries(voucher, user=user, reason=reason)
        log_action(
            action="void",
            instance=voucher,
            user=user,
            changes={"reason": reason, "ledger_entries": reversed_count},
        )

    logger.info(
        "Voucher voided",
        extra={"organization": organization.pk, "voucher_number": voucher.voucher_number},
    )
    return voucher


def delete_draft_voucher(organization, voucher_id, user=None):
    with transaction.atomic():
        voucher = _lock_voucher(organization, voucher_id)
        number = voucher.voucher_number
        log_action(
            action="delete",
            instance=voucher,
            user=user,
            changes={"voucher_number": number},
        )
        voucher.delete()  # InvalidState unless draft
    return number


def voucher_statistics(organization, fiscal_year=None):
    """
    Per voucher type: counts by status and posted amount.
    {"JV": {"draft": 1, "posted": 3, "void": 0, "total": 4, "posted_amount": "..."}, ...}
    """
    qs = Voucher.objects.for_organization(organization)
    if fiscal_year:
        qs = qs.filter(fiscal_year=str(fiscal_year))

    stats = {
        code: {"draft": 0, "posted": 0, "void": 0, "total": 0, "posted_amount": "0.00"}
        for code, _label in Voucher._meta.get_field("voucher_type").choices
    }
    for row in qs.values("voucher_type", "status").annotate(
        count=Count("pk"), amount=Sum("total_debit")
    ):
        bucket = stats[row["voucher_type"]]
        bucket[row["status"]] = row["count"]
        bucket["total"] += row["count"]
        if row["status"] == "posted":
            bucket["posted_amount"] = str(quantize(row["amount"]))
    return stats
