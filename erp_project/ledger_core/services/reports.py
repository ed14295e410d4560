from django.db.models import Sum

from ..conf import ledger_setting
from ..exceptions import NotFound
from ..models import Account, LedgerEntry
from ..models.money import ZERO, quantize


def _signed(account, debit, credit):
    # movement in the account's own direction
    if account.normal_balance == "debit":
        return debit - credit
    return credit - debit


def _side_totals(queryset):
    totals = {
        row["entry_type"]: row["total"]
        for row in queryset.values("entry_type").annotate(total=Sum("amount"))
    }
    return totals.get("debit") or ZERO, totals.get("credit") or ZERO


# ----------------------------
# Account ledger
# ----------------------------
def get_account_ledger(
    organization, account_id, start_date=None, end_date=None, include_void=False
):
    """
    Ledger rows of one account in date order, with opening and
    closing balances for the window. Void rows are listed only
    when asked for and never move the balances.
    """
    try:
        account = Account.objects.for_organization(organization).get(pk=account_id)
    except Account.DoesNotExist:
        raise NotFound(f"Account {account_id} not found.") from None

    base = LedgerEntry.objects.for_organization(organization).filter(account=account)
    active = base.filter(status="active")

    opening = account.opening_balance
    if start_date:
        debit, credit = _side_totals(active.filter(entry_date__lt=start_date))
        opening += _signed(account, debit, credit)

    rows = base if include_void else active
    if start_date:
        rows = rows.filter(entry_date__gte=start_date)
    if end_date:
        rows = rows.filter(entry_date__lte=end_date)

    entries = []
    total_debit = ZERO
    total_credit = ZERO
    for row in rows.order_by("entry_date", "created_at", "pk"):
        is_debit = row.entry_type == "debit"
        if row.status == "active":
            if is_debit:
                total_debit += row.amount
            else:
                total_credit += row.amount
        entries.append(
            {
                "id": row.pk,
                "date": row.entry_date.isoformat(),
                "voucher_number": row.voucher_number,
                "voucher_type": row.voucher_type,
                "description": row.description,
                "debit": str(quantize(row.amount)) if is_debit else "0.00",
                "credit": "0.00" if is_debit else str(quantize(row.amount)),
                "balance": str(quantize(row.balance)),
                "status": row.status,
            }
        )

    closing = opening + _signed(account, total_debit, total_credit)
    return {
        "account": {
            "id": account.pk,
            "code": account.code,
            "name": account.name,
            "normal_balance": account.normal_balance,
        },
        "opening_balance": str(quantize(opening)),
        "entries": entries,
        "total_debit": str(quantize(total_debit)),
        "total_credit": str(quantize(total_credit)),
        "closing_balance": str(quantize(closing)),
    }


# ----------------------------
# Trial balance
# ----------------------------
def get_trial_balance(organization, fiscal_year=None, fiscal_period=None):
    """
    Per posting (leaf) account: debit / credit movement and the net
    balance including the opening balance. Only active rows count.
    """
    entries = LedgerEntry.objects.active(organization)
    if fiscal_year:
        entries = entries.filter(fiscal_year=str(fiscal_year))
    if fiscal_period:
        entries = entries.filter(fiscal_period=fiscal_period)

    movement = {}
    for row in entries.values("account_id", "entry_type").annotate(total=Sum("amount")):
        movement.setdefault(row["account_id"], {})[row["entry_type"]] = row["total"]

    accounts = (
        Account.objects.for_organization(organization)
        .filter(is_group=False)
        .order_by("code")
    )

    lines = []
    totals = {
        "debit": ZERO, "credit": ZERO, "net_debit": ZERO, "net_credit": ZERO,
    }
    for account in accounts:
        sides = movement.get(account.pk, {})
        debit = sides.get("debit") or ZERO
        credit = sides.get("credit") or ZERO
        if not (debit or credit or account.opening_balance):
            continue

        # express the balance on the debit side
        opening_dr = (
            account.opening_balance
            if account.normal_balance == "debit"
            else -account.opening_balance
        )
        net = opening_dr + debit - credit
        net_debit = net if net > 0 else ZERO
        net_credit = -net if net < 0 else ZERO

        lines.append(
            {
                "account_id": account.pk,
                "code": account.code,
                "name": account.name,
                "ac_type": account.ac_type,
                "opening_balance": str(quantize(account.opening_balance)),
                "debit": str(quantize(debit)),
                "credit": str(quantize(credit)),
                "net_debit": str(quantize(net_debit)),
                "net_credit": str(quantize(net_credit)),
            }
        )
        totals["debit"] += debit
        totals["credit"] += credit
        totals["net_debit"] += net_debit
        totals["net_credit"] += net_credit

    tolerance = ledger_setting("BALANCE_TOLERANCE")
    return {
        "fiscal_year": fiscal_year,
        "fiscal_period": fiscal_period,
        "accounts": lines,
        "total_debit": str(quantize(totals["debit"])),
        "total_credit": str(quantize(totals["credit"])),
        "total_net_debit": str(quantize(totals["net_debit"])),
        "total_net_credit": str(quantize(totals["net_credit"])),
        "is_balanced": abs(totals["net_debit"] - totals["net_credit"]) <= tolerance,
    }
