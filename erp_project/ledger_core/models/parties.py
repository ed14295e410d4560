from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .account import Account
from .money import quantize
from .organization import Organization


class Counterparty(models.Model):
    """Shared fields for customers and suppliers."""

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE)
    code = models.CharField(max_length=32, blank=True)
    # Legal or trade name
    name = models.CharField(max_length=200)
    contact_email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    tax_number = models.CharField(max_length=32, blank=True)
    payment_terms_days = models.IntegerField(default=30)

    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    # Amount owed by (customer) or to (supplier) this party
    current_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    # name of the FK holding the default control account
    control_account_field = None

    class Meta:
        abstract = True

    def __str__(self):
        return self.name

    def clean(self):
        account = getattr(self, self.control_account_field)
        # Ensure control account belongs to the same organization
        if account and account.organization_id != self.organization_id:
            raise ValidationError(
                "Default control account must belong to the same organization"
            )
        if account and account.is_group:
            raise ValidationError("A group account cannot be a control account.")

    def save(self, *args, **kwargs):
        if not self.pk:
            self.current_balance = quantize(self.opening_balance)
        self.full_clean()
        return super().save(*args, **kwargs)

    def update_balance(self, amount):
        """Add `amount` to what is owed; persisted by the caller's transaction."""
        self.current_balance = quantize(self.current_balance + amount)
        type(self).objects.filter(pk=self.pk).update(
            current_balance=self.current_balance
        )
        return self.current_balance


# ---------- Customer ----------
# Receives sales invoices (AR side)
class Customer(Counterparty):
    # Overrides the organization's receivable account for this customer
    default_ar_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="customers_default_ar",
        help_text="Default AR account used for this customer",
    )
    credit_limit = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    control_account_field = "default_ar_account"

    class Meta:
        indexes = [models.Index(fields=["organization", "name"], name="customer_org_name_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "name"], name="uq_organization_customer_name"
            ),
        ]


# ---------- Supplier ----------
# Sends purchase invoices (AP side)
class Supplier(Counterparty):
    # Overrides the organization's payable account for this supplier
    default_ap_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="suppliers_default_ap",
        help_text="Default AP account used for this supplier",
    )

    control_account_field = "default_ap_account"

    class Meta:
        indexes = [models.Index(fields=["organization", "name"], name="supplier_org_name_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "name"], name="uq_organization_supplier_name"
            ),
        ]
