from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..exceptions import InvalidState
from ..managers import LedgerEntryManager
from .account import Account
from .organization import Organization
from .voucher import ENTRY_TYPES, REFERENCE_TYPES, VOUCHER_TYPES, Voucher

LEDGER_STATUS = [
    ("active", "Active"),
    ("void", "Void"),
]

# Only these may change on an existing row (active → void)
VOID_FIELDS = {"status", "voided_at", "voided_by", "void_reason"}


class LedgerEntry(models.Model):
    """
    Append-only ledger row. One per voucher entry, carrying a snapshot
    of the account balance right after it was applied.
    """

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="ledger_entries"
    )
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="ledger_entries"
    )
    voucher = models.ForeignKey(
        Voucher, on_delete=models.PROTECT, related_name="ledger_entries"
    )

    # Denormalized from the voucher for reporting
    voucher_number = models.CharField(max_length=32)
    voucher_type = models.CharField(max_length=2, choices=VOUCHER_TYPES)
    entry_date = models.DateField()
    fiscal_year = models.CharField(max_length=4)
    fiscal_period = models.CharField(max_length=7)

    entry_type = models.CharField(max_length=6, choices=ENTRY_TYPES)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    # Account balance after this entry was applied
    balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    description = models.CharField(max_length=400, blank=True)
    narration = models.TextField(blank=True)

    reference_type = models.CharField(
        max_length=20, choices=REFERENCE_TYPES, default="manual")
    reference_number = models.CharField(max_length=64, blank=True)
    reference_id = models.BigIntegerField(null=True, blank=True)

    status = models.CharField(
        max_length=6, choices=LEDGER_STATUS, default="active")
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    void_reason = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    # .active() / .for_voucher() on top of tenant scoping
    objects = LedgerEntryManager()

    class Meta:
        verbose_name_plural = "ledger entries"
        ordering = ["entry_date", "created_at", "pk"]
        indexes = [
            models.Index(fields=["organization", "account", "entry_date"], name="ledger_org_account_date_idx"),
            models.Index(fields=["organization", "fiscal_year", "fiscal_period"], name="ledger_org_period_idx"),
            models.Index(fields=["voucher"], name="ledger_voucher_idx"),
            models.Index(fields=["organization", "status"], name="ledger_org_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="ledger_entry_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.voucher_number} {self.account.code} {self.entry_type} {self.amount}"

    def clean(self):
        if self.account_id and self.account.organization_id != self.organization_id:
            raise ValidationError(
                "Ledger entry account must belong to the same organization."
            )
        if self.voucher_id and self.voucher.organization_id != self.organization_id:
            raise ValidationError(
                "Ledger entry voucher must belong to the same organization."
            )

    def save(self, *args, **kwargs):
        if self.pk:
            """ Append-only: an existing row may only go active → void """
            update_fields = kwargs.get("update_fields")
            if update_fields is None or not set(update_fields) <= VOID_FIELDS:
                raise InvalidState("Ledger entries are append-only.")
            orig = LedgerEntry.objects.get(pk=self.pk)
            if orig.status != "active" or self.status != "void":
                raise InvalidState("A ledger entry can only move from active to void.")
        else:
            self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvalidState("Ledger entries cannot be deleted.")
