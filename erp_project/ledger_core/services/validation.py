from dataclasses import dataclass
from decimal import Decimal

from ..conf import ledger_setting
from ..models.money import ZERO, quantize


@dataclass(frozen=True)
class EntryLine:
    """In-memory voucher line, checked before anything is written."""

    account_id: int
    entry_type: str  # "debit" | "credit"
    amount: Decimal
    description: str = ""


def sum_sides(lines):
    """Return (total_debit, total_credit) for the lines.
    Lines without an amount are skipped."""
    debit = ZERO
    credit = ZERO
    for line in lines:
        if line.amount is None:
            continue
        if line.entry_type == "debit":
            debit += line.amount
        else:
            credit += line.amount
    return quantize(debit), quantize(credit)


# ------------------------------------
# Double-entry rules
# ------------------------------------
def check_double_entry(lines, tolerance=None):
    """
    Return the ordered list of violations for a set of voucher lines.
    An empty list means the lines form a valid voucher.
    """
    if tolerance is None:
        tolerance = ledger_setting("BALANCE_TOLERANCE")
    lines = list(lines)
    violations = []

    if len(lines) < 2:
        violations.append("Voucher must have at least 2 entries")

    for index, line in enumerate(lines, start=1):
        if line.entry_type not in ("debit", "credit"):
            violations.append(f"Entry {index} has invalid entry type {line.entry_type!r}")
        if line.amount is None or line.amount <= 0:
            violations.append(f"Entry {index} amount must be greater than zero")

    total_debit, total_credit = sum_sides(lines)
    if abs(total_debit - total_credit) > tolerance:
        violations.append(
            f"Voucher is not balanced. Debit: {total_debit}, Credit: {total_credit}"
        )

    if not any(line.entry_type == "debit" for line in lines):
        violations.append("Voucher must have at least one debit entry")
    if not any(line.entry_type == "credit" for line in lines):
        violations.append("Voucher must have at least one credit entry")

    # same account twice on the same side
    seen = set()
    for line in lines:
        key = (line.account_id, line.entry_type)
        if key in seen:
            violations.append(
                f"Duplicate account {line.account_id} in {line.entry_type} entries"
            )
        seen.add(key)

    return violations
