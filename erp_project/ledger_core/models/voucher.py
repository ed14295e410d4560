from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import InvalidState, ValidationFailed
from ..managers import TenantManager
from .account import Account
from .fiscal import fiscal_period_for, fiscal_year_for
from .money import ZERO, quantize
from .organization import Organization

VOUCHER_TYPES = [
    ("JV", "Journal Voucher"),
    ("PV", "Payment Voucher"),
    ("RV", "Receipt Voucher"),
    ("CV", "Contra Voucher"),
]

VOUCHER_STATUS = [
    ("draft", "Draft"),  # still editable
    ("posted", "Posted"),  # written to the ledger
    ("void", "Void"),  # reversed, kept for audit
]

ENTRY_TYPES = [
    ("debit", "Debit"),
    ("credit", "Credit"),
]

REFERENCE_TYPES = [
    ("invoice", "Sales Invoice"),
    ("purchase", "Purchase Invoice"),
    ("receipt", "Receipt"),
    ("payment", "Payment"),
    ("manual", "Manual"),
    ("other", "Other"),
]


# ---------- Voucher (Header) & VoucherEntry ----------
class Voucher(models.Model):  # One balanced accounting transaction
    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="vouchers"
    )

    # "JV-2025-0001"; assigned by the numbering service
    voucher_number = models.CharField(max_length=32)
    voucher_type = models.CharField(max_length=2, choices=VOUCHER_TYPES)
    sequence = models.PositiveIntegerField()

    voucher_date = models.DateField()
    # Both derived from voucher_date on save
    fiscal_year = models.CharField(max_length=4, editable=False)
    fiscal_period = models.CharField(max_length=7, editable=False)
    narration = models.TextField(blank=True)

    # Cached sums of the entries (kept in sync by signals)
    total_debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=10, choices=VOUCHER_STATUS, default="draft")

    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    void_reason = models.TextField(blank=True)

    # Where the voucher came from (invoice, walk-in sale, manual entry)
    reference_type = models.CharField(
        max_length=20, choices=REFERENCE_TYPES, default="manual")
    reference_number = models.CharField(max_length=64, blank=True)
    reference_id = models.BigIntegerField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["organization", "voucher_date"], name="voucher_org_date_idx"),
            models.Index(fields=["organization", "status"], name="voucher_org_status_idx"),
            models.Index(fields=["organization", "reference_type", "reference_id"], name="voucher_org_reference_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "voucher_number"],
                name="uq_voucher_organization_number",
            ),
            models.UniqueConstraint(
                fields=["organization", "voucher_type", "fiscal_year", "sequence"],
                name="uq_voucher_type_year_sequence",
            ),
        ]
        ordering = ["voucher_date", "voucher_number"]

    def __str__(self):
        return f"{self.voucher_number} [{self.status}]"

    # -------- totals --------

    def compute_totals(self):
        """Return (debits, credits) summed from the entries"""
        debit = ZERO
        credit = ZERO
        for entry in self.entries.all():
            if entry.entry_type == "debit":
                debit += entry.amount
            else:
                credit += entry.amount
        return quantize(debit), quantize(credit)

    def recalc_totals(self):
        if not self.pk:
            self.total_debit = ZERO
            self.total_credit = ZERO
            return
        self.total_debit, self.total_credit = self.compute_totals()

    # -------- double entry --------

    def entry_lines(self):
        from ..services.validation import EntryLine

        return [
            EntryLine(
                account_id=entry.account_id,
                entry_type=entry.entry_type,
                amount=entry.amount,
                description=entry.description,
            )
            for entry in self.entries.order_by("line_no", "pk")
        ]

    def validate_double_entry(self):
        """Ordered list of double-entry violations (empty = valid)."""
        # lazy import to avoid circular import at module load time
        from ..services.validation import check_double_entry

        return check_double_entry(self.entry_lines())

    # -------- state --------

    def clean(self):
        if self.voucher_date:
            self.fiscal_year = fiscal_year_for(self.voucher_date)
            self.fiscal_period = fiscal_period_for(self.voucher_date)

        if self.pk:
            orig = Voucher.objects.filter(pk=self.pk).first()
            if orig and orig.status != "draft":
                # posted / void vouchers keep their accounting content
                for field in ("voucher_number", "voucher_date", "voucher_type", "sequence"):
                    if getattr(orig, field) != getattr(self, field):
                        raise ValidationError(
                            f"Cannot modify {field} on a {orig.status} voucher."
                        )
                if orig.status == "void" and self.status != "void":
                    raise ValidationError("A void voucher cannot be reopened.")

    def save(self, *args, **kwargs):
        if self.voucher_date:
            self.fiscal_year = fiscal_year_for(self.voucher_date)
            self.fiscal_period = fiscal_period_for(self.voucher_date)
        # number uniqueness is left to the database constraints
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)

    @transaction.atomic
    def post(self, user=None):
        """
        draft → posted.
        Checks the double-entry rules; ledger rows are written
        separately by the ledger entry writer.
        """
        if self.status != "draft":
            raise InvalidState(
                f"Voucher {self.voucher_number} is {self.status}, only drafts can be posted."
            )
        violations = self.validate_double_entry()
        if violations:
            raise ValidationFailed(violations)

        self.recalc_totals()
        self.status = "posted"
        self.posted_at = timezone.now()
        self.posted_by = user
        self.save(
            update_fields=[
                "status", "posted_at", "posted_by",
                "total_debit", "total_credit", "updated_at",
            ]
        )
        return self

    def void(self, user=None, reason=""):
        """posted → void (ledger reversal is the writer's job)"""
        if self.status == "draft":
            raise InvalidState(
                f"Voucher {self.voucher_number} is a draft; delete it instead of voiding."
            )
        if self.status == "void":
            raise InvalidState(f"Voucher {self.voucher_number} is already void.")

        self.status = "void"
        self.voided_at = timezone.now()
        self.voided_by = user
        self.void_reason = reason
        self.save(
            update_fields=[
                "status", "voided_at", "voided_by", "void_reason", "updated_at"
            ]
        )
        return self

    def delete(self, *args, **kwargs):
        # Only drafts can disappear; posted vouchers are voided instead
        if self.status != "draft":
            raise InvalidState(
                f"Cannot delete a {self.status} voucher. Void it instead."
            )
        return super().delete(*args, **kwargs)


class VoucherEntry(models.Model):  # One debit or credit line
    voucher = models.ForeignKey(
        Voucher,
        on_delete=models.CASCADE,
        related_name="entries",
    )
    line_no = models.PositiveIntegerField(default=1)

    # Must point to one Account (can't delete account if lines exist)
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="voucher_entries"
    )
    entry_type = models.CharField(max_length=6, choices=ENTRY_TYPES)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    description = models.CharField(max_length=400, blank=True)

    # Ledger row produced when the voucher was posted
    ledger_entry = models.OneToOneField(
        "LedgerEntry",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="voucher_entry",
    )

    class Meta:
        ordering = ["line_no", "pk"]
        indexes = [models.Index(fields=["voucher", "account"], name="voucher_entry_account_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="voucher_entry_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.voucher.voucher_number} #{self.line_no} {self.entry_type} {self.amount}"

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Entry amount must be greater than zero.")

        if self.account_id and self.voucher_id:
            # Enforce tenant consistency
            if self.account.organization_id != self.voucher.organization_id:
                raise ValidationError(
                    "Entry account must belong to the voucher's organization."
                )
            if self.account.is_group:
                raise ValidationError(
                    f"Account {self.account.code} is a group account and cannot receive postings."
                )

        """ Entries of a posted or void voucher are frozen """
        if self.voucher_id and self.voucher.status != "draft":
            if not self.pk:
                raise ValidationError(
                    f"Cannot add entries to a {self.voucher.status} voucher."
                )
            orig = VoucherEntry.objects.get(pk=self.pk)
            for field in ("account_id", "entry_type", "amount", "description", "line_no"):
                if getattr(orig, field) != getattr(self, field):
                    raise ValidationError(
                        f"Cannot modify entries of a {self.voucher.status} voucher."
                    )

    def save(self, *args, **kwargs):
        if self.amount is not None:
            self.amount = quantize(self.amount)
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.voucher.status != "draft":
            raise InvalidState(
                f"Cannot delete entries of a {self.voucher.status} voucher."
            )
        return super().delete(*args, **kwargs)


class VoucherSequence(models.Model):
    """Last number handed out per (organization, type, fiscal year)."""

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="voucher_sequences"
    )
    voucher_type = models.CharField(max_length=2, choices=VOUCHER_TYPES)
    fiscal_year = models.CharField(max_length=4)
    last_value = models.PositiveIntegerField(default=0)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "voucher_type", "fiscal_year"],
                name="uq_voucher_sequence_scope",
            )
        ]

    def __str__(self):
        return f"{self.voucher_type}-{self.fiscal_year}: {self.last_value}"
