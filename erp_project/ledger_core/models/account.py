from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import InvalidState
from ..managers import LiveTenantManager, TenantManager
from .organization import Organization
from .money import quantize

# Choice Lists
AC_TYPES = [
    # Used in Account model to classify general ledger accounts
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
    ("revenue", "Revenue"),
    ("expense", "Expense"),
]

# Define whether the account normally increases
# on the debit side or credit side
NORMAL_BALANCE = [
    ("debit", "Debit"),
    ("credit", "Credit"),
]

# Assets/Expenses → Debit, Liabilities/Equity/Revenue → Credit
NORMAL_BALANCE_BY_TYPE = {
    "asset": "debit",
    "expense": "debit",
    "liability": "credit",
    "equity": "credit",
    "revenue": "credit",
}

AC_CATEGORIES = [
    ("current_asset", "Current Asset"),
    ("fixed_asset", "Fixed Asset"),
    ("other_asset", "Other Asset"),
    ("current_liability", "Current Liability"),
    ("long_term_liability", "Long-term Liability"),
    ("other_liability", "Other Liability"),
    ("owner_equity", "Owner Equity"),
    ("retained_earnings", "Retained Earnings"),
    ("sales_revenue", "Sales Revenue"),
    ("other_revenue", "Other Revenue"),
    ("cost_of_goods_sold", "Cost of Goods Sold"),
    ("operating_expense", "Operating Expense"),
    ("financial_expense", "Financial Expense"),
    ("other_expense", "Other Expense"),
]

MAX_LEVEL = 5


class Account(models.Model):
    """
    Ledger account in the Chart of Accounts.
    - code is unique per organization
    - normal_balance always follows ac_type
    - current_balance is a cache of opening_balance + signed active entries
    """

    organization = models.ForeignKey(  # Each account belongs to one organization
        Organization,
        on_delete=models.CASCADE,
        related_name="accounts",
    )
    # Stored trimmed and upper-cased
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)  # "Cash in Hand"

    ac_type = models.CharField(
        max_length=10,
        choices=AC_TYPES,
    )
    category = models.CharField(max_length=30, choices=AC_CATEGORIES)

    # Derived from ac_type on every save
    normal_balance = models.CharField(
        max_length=6,
        choices=NORMAL_BALANCE,
        editable=False,
    )

    # Optional hierarchy (1000 Assets → 1100 Current Assets → 1101 Cash)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # can't delete a parent if children exist
        related_name="sub_accounts",
    )
    level = models.PositiveSmallIntegerField(default=1)

    # Group accounts only roll up their children, never receive postings
    is_group = models.BooleanField(default=False)

    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    current_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # "soft deactivate" accounts (stop new postings) without deleting history
    is_active = models.BooleanField(default=True)
    is_system_account = models.BooleanField(default=False)
    is_tax_account = models.BooleanField(default=False)
    tax_rate = models.DecimalField(
        max_digits=5, decimal_places=2, null=True, blank=True)
    description = models.TextField(blank=True)

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # for_organization() hides soft-deleted accounts
    objects = LiveTenantManager()
    all_objects = TenantManager()

    class Meta:
        indexes = [
            # For reports grouped by ac_type
            models.Index(fields=["organization", "ac_type"], name="account_org_type_idx"),
            models.Index(fields=["organization", "code"], name="account_org_code_idx"),
            models.Index(fields=["organization", "parent"], name="account_org_parent_idx"),
        ]

        """ Each organization defines its own chart of accounts.
               Codes repeat across organizations but must be unique within one. """
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "code"],
                name="uq_organization_account_code",
            )
        ]
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def clean(self):
        """Enforce organization consistency and hierarchy depth"""
        if self.parent_id:
            if self.parent.organization_id != self.organization_id:
                raise ValidationError(
                    "Parent & child accounts must belong to the same organization"
                )
            if self.parent_id == self.pk:
                raise ValidationError("An account cannot be its own parent.")
            if not self.parent.is_group:
                raise ValidationError("Parent account must be a group account.")
            self.level = self.parent.level + 1
        else:
            self.level = 1

        if self.level > MAX_LEVEL:
            raise ValidationError(
                f"Account hierarchy is limited to {MAX_LEVEL} levels."
            )

        stored = self._stored_state()
        if stored is None:
            return

        # the cached balance is signed by normal_balance and seeded from
        # opening_balance, so neither may move under existing ledger rows
        if self.has_ledger_activity():
            if stored["ac_type"] != self.ac_type:
                raise ValidationError(
                    "Account type cannot change once the account has ledger activity."
                )
            if quantize(stored["opening_balance"]) != quantize(self.opening_balance):
                raise ValidationError(
                    "Opening balance cannot change once the account has ledger activity."
                )

        if self.is_deleted and not stored["is_deleted"]:
            allowed, reason = self.can_delete()
            if not allowed:
                raise ValidationError(f"Cannot delete account {self.code}: {reason}")

    def _stored_state(self, lock=False):
        """Persisted values of the fields guarded by clean()."""
        if not self.pk:
            return None
        qs = Account.all_objects.filter(pk=self.pk)
        if lock:
            qs = qs.select_for_update()
        return qs.values(
            "ac_type", "opening_balance", "current_balance", "is_deleted"
        ).first()

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        # normal balance can never disagree with the type
        self.normal_balance = NORMAL_BALANCE_BY_TYPE.get(self.ac_type, "debit")

        with transaction.atomic():
            stored = self._stored_state(lock=True)
            self.full_clean()  # run validations before saving

            if stored is None:
                # a fresh account starts from its opening balance
                self.current_balance = quantize(self.opening_balance)
            else:
                shift = quantize(self.opening_balance) - quantize(stored["opening_balance"])
                if shift:
                    # carry the opening change into the cache
                    self.current_balance = quantize(stored["current_balance"] + shift)
                    update_fields = kwargs.get("update_fields")
                    if update_fields is not None:
                        kwargs["update_fields"] = {*update_fields, "current_balance"}
            return super().save(*args, **kwargs)

    # -------- balances --------

    def apply_balance_delta(self, entry_type, amount):
        """
        Move current_balance by `amount` on `entry_type` side.

        Same side as the normal balance increases it, the other side
        decreases it. Reversals pass the inverted entry type.
        Returns the new balance (the caller persists it).
        """
        amount = quantize(amount)
        if entry_type == self.normal_balance:
            self.current_balance = quantize(self.current_balance + amount)
        else:
            self.current_balance = quantize(self.current_balance - amount)
        return self.current_balance

    # -------- hierarchy --------

    def children(self):
        return self.sub_accounts.filter(is_deleted=False).order_by("code")

    def hierarchy_path(self):
        """Accounts from the root down to this one."""
        path = []
        node = self
        while node is not None:
            path.append(node)
            node = node.parent
        return list(reversed(path))

    # -------- deletion --------

    def has_ledger_activity(self):
        return self.ledger_entries.exists()

    def can_delete(self):
        """Return (allowed, reason)."""
        if self.is_system_account:
            return False, "System accounts cannot be deleted."
        if self.children().exists():
            return False, "Account has sub-accounts."
        if self.has_ledger_activity():
            return False, "Account has ledger activity."
        return True, ""

    def soft_delete(self):
        allowed, reason = self.can_delete()
        if not allowed:
            raise InvalidState(f"Cannot delete account {self.code}: {reason}")
        self.is_deleted = True
        self.is_active = False
        self.deleted_at = timezone.now()
        self.save(update_fields=["is_deleted", "is_active", "deleted_at", "updated_at"])


# Logical posting roles a document poster needs resolved
ACCOUNT_ROLES = [
    ("receivable", "Accounts Receivable"),
    ("payable", "Accounts Payable"),
    ("revenue", "Sales Revenue"),
    ("sales_tax", "Sales Tax Payable"),
    ("purchases", "Purchases"),
    ("input_tax", "Input Tax Receivable"),
    ("cash", "Cash"),
]


class PostingAccountMapping(models.Model):
    """Per-organization choice of account for a posting role."""

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="posting_mappings"
    )
    role = models.CharField(max_length=20, choices=ACCOUNT_ROLES)
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="posting_roles"
    )

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "role"], name="uq_posting_mapping_role"
            )
        ]

    def __str__(self):
        return f"{self.role} → {self.account.code}"

    def clean(self):
        if self.account_id and self.account.organization_id != self.organization_id:
            raise ValidationError(
                "Mapped account must belong to the same organization."
            )
        if self.account_id and self.account.is_group:
            raise ValidationError("A group account cannot be used for posting.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
