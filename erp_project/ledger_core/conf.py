from decimal import Decimal

from django.conf import settings

# Defaults for settings.LEDGER, overridable per deployment
DEFAULTS = {
    # max |debits - credits| accepted for a voucher
    "BALANCE_TOLERANCE": Decimal("0.01"),
    # max |invoice qty - GRN qty| for a purchase line to count as matched
    "MATCH_QUANTITY_TOLERANCE": Decimal("0.01"),
    # attempts at allocating a voucher number before giving up
    "VOUCHER_NUMBER_MAX_ATTEMPTS": 3,
    # fallback account codes per posting role
    "DEFAULT_ACCOUNT_CODES": {
        "cash": "1101",
        "input_tax": "1150",
        "receivable": "1200",
        "payable": "2101",
        "sales_tax": "2102",
        "revenue": "4001",
        "purchases": "5101",
    },
}


def ledger_setting(name):
    """Read one LEDGER setting, falling back to DEFAULTS."""
    overrides = getattr(settings, "LEDGER", {}) or {}
    if name == "DEFAULT_ACCOUNT_CODES":
        # merge so a deployment can override a single role
        return {**DEFAULTS[name], **overrides.get(name, {})}
    return overrides.get(name, DEFAULTS[name])
