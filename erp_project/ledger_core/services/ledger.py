import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from ..conf import ledger_setting
from ..exceptions import ValidationFailed
from ..models import Account, LedgerEntry, VoucherEntry
from ..models.money import ZERO, quantize
from .audit_helper import log_action

logger = logging.getLogger(__name__)

INVERSE = {"debit": "credit", "credit": "debit"}


def account_violations(organization, accounts):
    """Reasons the given accounts cannot receive postings."""
    violations = []
    for account in accounts:
        if account.organization_id != organization.pk:
            violations.append(
                f"Account {account.code} belongs to another organization"
            )
        elif account.is_deleted:
            violations.append(f"Account {account.code} is deleted")
        elif not account.is_active:
            violations.append(f"Account {account.code} is inactive")
        elif account.is_group:
            violations.append(
                f"Account {account.code} is a group account and cannot receive postings"
            )
    return violations


def _lock_accounts(account_ids):
    # pk order everywhere, so two posters never wait on each other in a cycle
    locked = (
        Account.all_objects.select_for_update()
        .filter(pk__in=set(account_ids))
        .order_by("pk")
    )
    return {account.pk: account for account in locked}


@transaction.atomic
def post_voucher_entries(voucher, user=None):
    """
    Write one ledger row per voucher entry and move account balances.
    Joins the caller's transaction; returns the created rows.
    """
    entries = list(voucher.entries.order_by("line_no", "pk"))
    accounts = _lock_accounts(e.account_id for e in entries)

    violations = account_violations(voucher.organization, accounts.values())
    if violations:
        raise ValidationFailed(violations)

    created = []
    for entry in entries:
        account = accounts[entry.account_id]
        new_balance = account.apply_balance_delta(entry.entry_type, entry.amount)

        ledger_entry = LedgerEntry.objects.create(
            organization=voucher.organization,
            account=account,
            voucher=voucher,
            voucher_number=voucher.voucher_number,
            voucher_type=voucher.voucher_type,
            entry_date=voucher.voucher_date,
            fiscal_year=voucher.fiscal_year,
            fiscal_period=voucher.fiscal_period,
            entry_type=entry.entry_type,
            amount=entry.amount,
            balance=new_balance,
            description=entry.description,
            narration=voucher.narration,
            reference_type=voucher.reference_type,
            reference_number=voucher.reference_number,
            reference_id=voucher.reference_id,
            created_by=user,
        )
        Account.all_objects.filter(pk=account.pk).update(current_balance=new_balance)
        VoucherEntry.objects.filter(pk=entry.pk).update(ledger_entry=ledger_entry)
        created.append(ledger_entry)

    logger.info(
        "Ledger entries written",
        extra={
            "organization": voucher.organization_id,
            "voucher_number": voucher.voucher_number,
            "entries": len(created),
        },
    )
    return created


@transaction.atomic
def void_voucher_entries(voucher, user=None, reason=""):
    """
    Reverse every active ledger row of `voucher` and mark it void.
    Rows that are already void are left alone. Returns how many were voided.
    """
    active = list(
        LedgerEntry.objects.active()
        .for_voucher(voucher)
        .order_by("pk")
    )
    if not active:
        return 0

    accounts = _lock_accounts(e.account_id for e in active)
    now = timezone.now()
    for ledger_entry in active:
        account = accounts[ledger_entry.account_id]
        new_balance = account.apply_balance_delta(
            INVERSE[ledger_entry.entry_type], ledger_entry.amount
        )
        Account.all_objects.filter(pk=account.pk).update(current_balance=new_balance)

        ledger_entry.status = "void"
        ledger_entry.voided_at = now
        ledger_entry.voided_by = user
        ledger_entry.void_reason = reason
        ledger_entry.save(
            update_fields=["status", "voided_at", "voided_by", "void_reason"]
        )

    logger.info(
        "Ledger entries voided",
        extra={
            "organization": voucher.organization_id,
            "voucher_number": voucher.voucher_number,
            "entries": len(active),
        },
    )
    return len(active)


@dataclass(frozen=True)
class TrialBalanceCheck:
    total_debit: Decimal
    total_credit: Decimal

    @property
    def difference(self):
        return quantize(self.total_debit - self.total_credit)

    @property
    def is_balanced(self):
        return self.total_debit == self.total_credit


def check_trial_balance_invariant(organization):
    """Σ active debits against Σ active credits for the organization."""
    totals = {
        row["entry_type"]: row["total"]
        for row in LedgerEntry.objects.active(organization)
        .values("entry_type")
        .annotate(total=Sum("amount"))
    }
    return TrialBalanceCheck(
        total_debit=quantize(totals.get("debit") or ZERO),
        total_credit=quantize(totals.get("credit") or ZERO),
    )


def expected_balance(account):
    """Opening balance plus the signed sum of active ledger rows."""
    sums = {
        row["entry_type"]: row["total"]
        for row in LedgerEntry.objects.active()
        .filter(account=account)
        .values("entry_type")
        .annotate(total=Sum("amount"))
    }
    debit = sums.get("debit") or ZERO
    credit = sums.get("credit") or ZERO
    movement = debit - credit if account.normal_balance == "debit" else credit - debit
    return quantize(account.opening_balance + movement)


def reconcile_account_balances(organization, repair=False, user=None):
    """
    Compare each account's cached balance with the ledger.
    Returns a list of drift records; with repair=True the cache is rewritten.
    """
    tolerance = ledger_setting("BALANCE_TOLERANCE")
    drift = []

    with transaction.atomic():
        accounts = Account.all_objects.for_organization(organization).order_by("pk")
        if repair:
            accounts = accounts.select_for_update()

        for account in accounts:
            expected = expected_balance(account)
            if abs(expected - account.current_balance) < tolerance:
                continue
            drift.append(
                {
                    "account_id": account.pk,
                    "code": account.code,
                    "cached": str(account.current_balance),
                    "expected": str(expected),
                    "difference": str(quantize(account.current_balance - expected)),
                }
            )
            if repair:
                Account.all_objects.filter(pk=account.pk).update(
                    current_balance=expected
                )

        if drift:
            logger.warning(
                "Account balance drift detected",
                extra={
                    "organization": organization.pk,
                    "accounts": len(drift),
                    "repaired": repair,
                },
            )
            if repair:
                log_action(
                    action="reconcile",
                    instance=organization,
                    user=user,
                    organization=organization,
                    changes={"accounts": drift},
                )
    return drift
