import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import transaction

from ..conf import ledger_setting
from ..exceptions import ConfigurationError, NotFound
from ..models import Account, PostingAccountMapping
from .audit_helper import log_action

logger = logging.getLogger(__name__)


def find_account_by_code(organization, code):
    """Non-deleted account of `organization` with `code`."""
    code = (code or "").strip().upper()
    account = (
        Account.objects.for_organization(organization)
        .filter(code=code)
        .first()
    )
    if account is None:
        raise NotFound(f"Account with code {code} not found.")
    return account


@dataclass
class PostingAccounts:
    """Accounts resolved once per posting, keyed by role."""

    accounts: dict = field(default_factory=dict)

    def __getitem__(self, role):
        return self.accounts[role]

    def __getattr__(self, role):
        try:
            return self.__dict__["accounts"][role]
        except KeyError:
            raise AttributeError(role) from None

    def ids(self):
        return sorted(account.pk for account in self.accounts.values())


def _usable(account, organization):
    return (
        account is not None
        and account.organization_id == organization.pk
        and not account.is_deleted
    )


def resolve_posting_accounts(organization, roles, overrides=None):
    """
    Resolve each role to an account:
    document override > configured mapping > well-known default code.
    Raises ConfigurationError naming the code that could not be found.
    """
    overrides = overrides or {}
    default_codes = ledger_setting("DEFAULT_ACCOUNT_CODES")
    mappings = {
        m.role: m.account
        for m in PostingAccountMapping.objects.for_organization(organization)
        .filter(role__in=roles)
        .select_related("account")
    }

    resolved = {}
    for role in roles:
        account = overrides.get(role)
        if not _usable(account, organization):
            account = mappings.get(role)
        if not _usable(account, organization):
            code = default_codes.get(role)
            if code is None:
                raise ConfigurationError(None, role=role)
            try:
                account = find_account_by_code(organization, code)
            except NotFound:
                logger.warning(
                    "Posting account missing",
                    extra={"organization": organization.pk, "role": role, "code": code},
                )
                raise ConfigurationError(code, role=role) from None
        resolved[role] = account
    return PostingAccounts(resolved)


# ------------------------------------
# Default chart of accounts
# ------------------------------------
# (code, name, type, category, parent code, is_group, extra)
DEFAULT_CHART = [
    ("1000", "Assets", "asset", "current_asset", None, True, {}),
    ("1100", "Current Assets", "asset", "current_asset", "1000", True, {}),
    ("1101", "Cash in Hand", "asset", "current_asset", "1100", False, {}),
    ("1102", "Cash at Bank", "asset", "current_asset", "1100", False, {}),
    ("1103", "Petty Cash", "asset", "current_asset", "1100", False, {}),
    ("1150", "Input Tax Receivable", "asset", "current_asset", "1100", False,
     {"is_tax_account": True, "tax_rate": Decimal("18")}),
    ("1200", "Accounts Receivable", "asset", "current_asset", "1000", False, {}),
    ("1300", "Inventory", "asset", "current_asset", "1000", False, {}),
    ("1400", "Fixed Assets", "asset", "fixed_asset", "1000", True, {}),
    ("1401", "Land", "asset", "fixed_asset", "1400", False, {}),
    ("1402", "Building", "asset", "fixed_asset", "1400", False, {}),
    ("1403", "Furniture & Fixtures", "asset", "fixed_asset", "1400", False, {}),
    ("1404", "Vehicles", "asset", "fixed_asset", "1400", False, {}),
    ("1405", "Computer Equipment", "asset", "fixed_asset", "1400", False, {}),
    ("2000", "Liabilities", "liability", "current_liability", None, True, {}),
    ("2100", "Current Liabilities", "liability", "current_liability", "2000", True, {}),
    ("2101", "Accounts Payable", "liability", "current_liability", "2100", False, {}),
    ("2102", "Sales Tax Payable", "liability", "current_liability", "2100", False,
     {"is_tax_account": True, "tax_rate": Decimal("18")}),
    ("2103", "Accrued Expenses", "liability", "current_liability", "2100", False, {}),
    ("2104", "Salaries Payable", "liability", "current_liability", "2100", False, {}),
    ("2400", "Long-term Liabilities", "liability", "long_term_liability", "2000", True, {}),
    ("2401", "Long-term Loans", "liability", "long_term_liability", "2400", False, {}),
    ("3000", "Equity", "equity", "owner_equity", None, True, {}),
    ("3001", "Owner's Capital", "equity", "owner_equity", "3000", False, {}),
    ("3002", "Retained Earnings", "equity", "retained_earnings", "3000", False, {}),
    ("3003", "Drawings", "equity", "owner_equity", "3000", False, {}),
    ("4000", "Revenue", "revenue", "sales_revenue", None, True, {}),
    ("4001", "Sales Revenue", "revenue", "sales_revenue", "4000", False, {}),
    ("4002", "Service Revenue", "revenue", "sales_revenue", "4000", False, {}),
    ("4100", "Other Income", "revenue", "other_revenue", "4000", True, {}),
    ("4101", "Interest Income", "revenue", "other_revenue", "4100", False, {}),
    ("5000", "Expenses", "expense", "operating_expense", None, True, {}),
    ("5100", "Cost of Goods Sold", "expense", "cost_of_goods_sold", "5000", True, {}),
    ("5101", "Purchases", "expense", "cost_of_goods_sold", "5100", False, {}),
    ("5102", "Freight In", "expense", "cost_of_goods_sold", "5100", False, {}),
    ("5200", "Operating Expenses", "expense", "operating_expense", "5000", True, {}),
    ("5201", "Salaries & Wages", "expense", "operating_expense", "5200", False, {}),
    ("5202", "Rent Expense", "expense", "operating_expense", "5200", False, {}),
    ("5203", "Utilities", "expense", "operating_expense", "5200", False, {}),
    ("5204", "Office Supplies", "expense", "operating_expense", "5200", False, {}),
    ("5205", "Telephone & Internet", "expense", "operating_expense", "5200", False, {}),
    ("5206", "Repairs & Maintenance", "expense", "operating_expense", "5200", False, {}),
    ("5207", "Advertising", "expense", "operating_expense", "5200", False, {}),
    ("5208", "Depreciation", "expense", "operating_expense", "5200", False, {}),
    ("5800", "Financial Expenses", "expense", "financial_expense", "5000", True, {}),
    ("5801", "Bank Charges", "expense", "financial_expense", "5800", False, {}),
    ("5802", "Interest Expense", "expense", "financial_expense", "5800", False, {}),
]


@transaction.atomic
def seed_chart_of_accounts(organization):
    """
    Create the default chart for `organization`; existing codes are kept.
    Returns the number of accounts created.
    """
    existing = set(
        Account.all_objects.for_organization(organization).values_list("code", flat=True)
    )

    # First pass: create every account without a parent
    created = {}
    for code, name, ac_type, category, _parent, is_group, extra in DEFAULT_CHART:
        if code in existing:
            continue
        created[code] = Account.objects.create(
            organization=organization,
            code=code,
            name=name,
            ac_type=ac_type,
            category=category,
            is_group=is_group,
            is_system_account=True,
            **extra,
        )

    # Second pass: link parents top-down so levels come out right
    by_code = {
        a.code: a for a in Account.all_objects.for_organization(organization)
    }
    for code, _name, _type, _category, parent_code, _group, _extra in DEFAULT_CHART:
        if code not in created or parent_code is None:
            continue
        account = created[code]
        account.parent = created.get(parent_code) or by_code[parent_code]
        account.save()

    logger.info(
        "Seeded chart of accounts",
        extra={"organization": organization.pk, "accounts_created": len(created)},
    )
    return len(created)


@transaction.atomic
def soft_delete_account(organization, account_id, user=None):
    """Soft-delete one of `organization`'s accounts and audit it."""
    account = (
        Account.objects.for_organization(organization)
        .select_for_update()
        .filter(pk=account_id)
        .first()
    )
    if account is None:
        raise NotFound(f"Account {account_id} not found.")
    account.soft_delete()
    log_action(
        action="delete",
        instance=account,
        user=user,
        organization=organization,
        changes={"code": account.code},
    )
    return account
