from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from ..exceptions import InvalidState
from ..managers import LiveTenantManager
from .account import Account
from .fiscal import fiscal_period_for, fiscal_year_for
from .money import ZERO, quantize
from .organization import Organization
from .parties import Customer, Supplier
from .voucher import Voucher

HUNDRED = Decimal("100")

SALES_STATUS = [
    ("draft", "Draft"),
    ("posted", "Posted"),
    ("partially_paid", "Partially Paid"),
    ("paid", "Paid"),
    ("cancelled", "Cancelled"),
]

PURCHASE_STATUS = [
    ("draft", "Draft"),
    ("verified", "Verified"),  # 3-way match done
    ("approved", "Approved"),
    ("posted", "Posted"),
    ("paid", "Paid"),
    ("cancelled", "Cancelled"),
]

MATCHING_STATUS = [
    ("pending", "Pending"),
    ("matched", "Matched"),
    ("mismatched", "Mismatched"),
    ("approved", "Approved"),  # variance accepted
]

WALK_IN_STATUS = [
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
    ("refunded", "Refunded"),
]

PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("card", "Card"),
    ("mobile_wallet", "Mobile Wallet"),
    ("other", "Other"),
]


def account_override(help_text):
    """Optional per-document account replacing the configured one."""
    return models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
        help_text=help_text,
    )


# ---------- Document header base ----------
class PostableDocument(models.Model):
    """
    Business document that produces exactly one voucher when posted.
    Totals are always recomputed from the lines.
    """

    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, related_name="+"
    )
    document_number = models.CharField(max_length=64)
    document_date = models.DateField()
    # Both derived from document_date on save
    fiscal_year = models.CharField(max_length=4, editable=False)
    fiscal_period = models.CharField(max_length=7, editable=False)

    # Sums of the lines
    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_discount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    taxable_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_tax = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    notes = models.TextField(blank=True)

    # Set once, by the poster
    is_posted = models.BooleanField(default=False)
    voucher = models.OneToOneField(
        Voucher,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )

    is_deleted = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # for_organization() hides soft-deleted documents
    objects = LiveTenantManager()

    # (from_status → allowed next statuses), set per document
    TRANSITIONS = {}
    # reference_type stamped on the produced voucher
    reference_type = "other"
    # fields that can't change once posted
    FROZEN_FIELDS = (
        "document_number", "document_date", "total_amount", "organization_id"
    )

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.document_number} [{self.status}]"

    def extra_charges(self):
        return ZERO

    def recalc_totals(self):
        """Recompute header totals from the lines"""
        # guard if no pk: there are no lines yet
        if not getattr(self, "pk", None):
            lines = []
        else:
            lines = list(self.lines.all())

        self.subtotal = quantize(sum((line.amount for line in lines), ZERO))
        self.total_discount = quantize(
            sum((line.discount_amount for line in lines), ZERO))
        self.taxable_amount = quantize(self.subtotal - self.total_discount)
        self.total_tax = quantize(sum((line.tax_amount for line in lines), ZERO))
        self.total_amount = quantize(
            self.taxable_amount + self.total_tax + self.extra_charges()
        )

    def clean(self):
        """ Posted documents are immutable """
        if self.pk:
            orig = type(self).objects.filter(pk=self.pk).first()
            if orig and orig.is_posted:
                changed = [
                    f for f in self.FROZEN_FIELDS
                    if getattr(orig, f) != getattr(self, f)
                ]
                if changed:
                    raise ValidationError(
                        f"Cannot modify {changed} on a posted document."
                    )
                if orig.voucher_id and orig.voucher_id != self.voucher_id:
                    raise ValidationError("The posted voucher link cannot change.")

    def save(self, *args, **kwargs):
        if self.document_date:
            self.fiscal_year = fiscal_year_for(self.document_date)
            self.fiscal_period = fiscal_period_for(self.document_date)
        if self.pk and not self.is_posted:
            # drafts always carry fresh totals
            self.recalc_totals()
        self.full_clean()  # will trigger clean()
        return super().save(*args, **kwargs)

    def transition_to(self, new_status):
        # Look up what states are allowed from current self.status
        if new_status not in self.TRANSITIONS.get(self.status, []):
            raise InvalidState(
                f"Cannot go from {self.status} to {new_status}")
        self.status = new_status
        self.save()

    def mark_posted(self, voucher, user=None):
        """Link the voucher and stamp posting metadata (one way)."""
        if self.voucher_id:
            raise InvalidState(f"{self} is already linked to a voucher.")
        self.voucher = voucher
        self.is_posted = True
        self.posted_at = timezone.now()
        self.posted_by = user
        if "posted" in dict(self._meta.get_field("status").choices):
            self.status = "posted"
        self.save()

    def soft_delete(self):
        if self.is_posted:
            raise InvalidState("Posted documents cannot be deleted.")
        self.is_deleted = True
        self.save(update_fields=["is_deleted", "updated_at"])

    def delete(self, *args, **kwargs):
        if self.is_posted:
            raise InvalidState("Posted documents cannot be deleted.")
        return super().delete(*args, **kwargs)


# ---------- Document line base ----------
class DocumentLine(models.Model):
    """
    One priced line: amount = qty x rate, discount on amount,
    tax on the amount after discount.
    """

    line_no = models.PositiveIntegerField(default=1)
    description = models.CharField(max_length=400, blank=True)
    quantity = models.DecimalField(
        max_digits=18, decimal_places=3, default=Decimal("1"))
    rate = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    discount_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"))
    tax_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"))

    # Computed
    amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    net_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        abstract = True
        ordering = ["line_no", "pk"]

    def __str__(self):
        return f"{self.description or 'Line'} x {self.quantity}"

    def compute_amounts(self):
        self.amount = quantize(self.quantity * self.rate)
        self.discount_amount = quantize(self.amount * self.discount_rate / HUNDRED)
        taxable = self.amount - self.discount_amount
        self.tax_amount = quantize(taxable * self.tax_rate / HUNDRED)
        self.net_amount = quantize(taxable + self.tax_amount)

    def clean(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("Quantity must be greater than zero.")
        if self.rate is not None and self.rate < 0:
            raise ValidationError("Rate cannot be negative.")
        for field in ("discount_rate", "tax_rate"):
            value = getattr(self, field)
            if value is not None and not (ZERO <= value <= HUNDRED):
                raise ValidationError(f"{field} must be between 0 and 100.")
        # Lines are frozen once the document is posted
        if self.document.is_posted:
            raise ValidationError("Cannot change lines of a posted document.")

    def save(self, *args, **kwargs):
        self.compute_amounts()
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.document.is_posted:
            raise InvalidState("Cannot delete lines of a posted document.")
        return super().delete(*args, **kwargs)


# ---------- Sales Invoice ----------
class SalesInvoice(PostableDocument):
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="invoices"
    )
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=SALES_STATUS, default="draft")

    shipping_charges = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    other_charges = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    receivable_account = account_override("Overrides the receivable account")
    revenue_account = account_override("Overrides the revenue account")
    tax_account = account_override("Overrides the sales tax account")

    TRANSITIONS = {
        "draft": ["posted", "cancelled"],
        "posted": ["partially_paid", "paid"],
        "partially_paid": ["paid"],
        "paid": [],
        "cancelled": [],
    }
    reference_type = "invoice"

    class Meta:
        indexes = [
            models.Index(fields=["organization", "document_date"], name="sales_inv_org_date_idx"),
            models.Index(fields=["organization", "customer"], name="sales_inv_org_customer_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "document_number"],
                name="uq_sales_invoice_number",
            )
        ]

    @property
    def balance_due(self):
        return quantize(self.total_amount - self.amount_paid)

    def extra_charges(self):
        return quantize(self.shipping_charges) + quantize(self.other_charges)

    def clean(self):
        super().clean()
        if self.customer_id and self.customer.organization_id != self.organization_id:
            raise ValidationError("Customer must belong to the same organization.")
        if self.amount_paid > self.total_amount:
            raise ValidationError("Amount paid cannot exceed the invoice total.")

    def record_payment(self, amount):
        """Apply a settlement; only posted invoices can be paid."""
        amount = quantize(amount)
        if self.status not in ("posted", "partially_paid"):
            raise InvalidState(f"Cannot record a payment on a {self.status} invoice.")
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero.")
        if amount > self.balance_due:
            raise ValidationError(
                f"Payment {amount} exceeds balance due {self.balance_due}."
            )
        self.amount_paid = quantize(self.amount_paid + amount)
        self.transition_to("paid" if self.balance_due == ZERO else "partially_paid")

    def cancel(self):
        if self.is_posted:
            raise InvalidState("A posted invoice cannot be cancelled; void its voucher.")
        self.transition_to("cancelled")


class SalesInvoiceLine(DocumentLine):
    invoice = models.ForeignKey(
        SalesInvoice, on_delete=models.CASCADE, related_name="lines"
    )

    @property
    def document(self):
        return self.invoice


# ---------- Purchase Invoice ----------
class PurchaseInvoice(PostableDocument):
    supplier = models.ForeignKey(
        Supplier, on_delete=models.PROTECT, related_name="invoices"
    )
    supplier_invoice_number = models.CharField(max_length=64, blank=True)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=PURCHASE_STATUS, default="draft")

    # Source documents for the 3-way match
    purchase_order_ref = models.CharField(max_length=64, blank=True)
    grn_ref = models.CharField(max_length=64, blank=True)
    matching_status = models.CharField(
        max_length=12, choices=MATCHING_STATUS, default="pending")
    # Σ |invoice qty - GRN qty| over the lines
    quantity_variance = models.DecimalField(
        max_digits=18, decimal_places=3, default=Decimal("0"))

    verified_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )

    shipping_charges = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    other_charges = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    payable_account = account_override("Overrides the payable account")
    purchases_account = account_override("Overrides the purchases account")
    input_tax_account = account_override("Overrides the input tax account")

    TRANSITIONS = {
        "draft": ["verified", "posted", "cancelled"],
        "verified": ["approved", "posted", "cancelled"],
        "approved": ["posted", "cancelled"],
        "posted": ["paid"],
        "paid": [],
        "cancelled": [],
    }
    reference_type = "purchase"

    class Meta:
        indexes = [
            models.Index(fields=["organization", "document_date"], name="purchase_inv_org_date_idx"),
            models.Index(fields=["organization", "supplier"], name="purchase_inv_org_supplier_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "document_number"],
                name="uq_purchase_invoice_number",
            )
        ]

    @property
    def balance_due(self):
        return quantize(self.total_amount - self.amount_paid)

    def extra_charges(self):
        return quantize(self.shipping_charges) + quantize(self.other_charges)

    def clean(self):
        super().clean()
        if self.supplier_id and self.supplier.organization_id != self.organization_id:
            raise ValidationError("Supplier must belong to the same organization.")

    def cancel(self):
        if self.is_posted:
            raise InvalidState("A posted invoice cannot be cancelled; void its voucher.")
        self.transition_to("cancelled")


class PurchaseInvoiceLine(DocumentLine):
    invoice = models.ForeignKey(
        PurchaseInvoice, on_delete=models.CASCADE, related_name="lines"
    )
    # Quantities from the purchase order and goods received note
    po_quantity = models.DecimalField(
        max_digits=18, decimal_places=3, null=True, blank=True)
    grn_quantity = models.DecimalField(
        max_digits=18, decimal_places=3, null=True, blank=True)
    is_matched = models.BooleanField(default=False)
    quantity_variance = models.DecimalField(
        max_digits=18, decimal_places=3, default=Decimal("0"))

    @property
    def document(self):
        return self.invoice


# ---------- Walk-in (counter) sale ----------
class WalkInSale(PostableDocument):
    customer_name = models.CharField(max_length=200, blank=True)
    customer_phone = models.CharField(max_length=32, blank=True)
    status = models.CharField(
        max_length=20, choices=WALK_IN_STATUS, default="completed")

    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHODS, default="cash")
    amount_received = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    cash_account = account_override("Overrides the cash account")
    revenue_account = account_override("Overrides the revenue account")
    tax_account = account_override("Overrides the sales tax account")

    TRANSITIONS = {
        "completed": ["cancelled", "refunded"],
        "cancelled": [],
        "refunded": [],
    }
    reference_type = "receipt"

    class Meta:
        indexes = [models.Index(fields=["organization", "document_date"], name="walk_in_org_date_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "document_number"],
                name="uq_walk_in_sale_number",
            )
        ]

    @property
    def change_given(self):
        # never negative; short payment is not change
        return max(quantize(self.amount_received - self.total_amount), ZERO)

    def cancel(self):
        if self.is_posted:
            raise InvalidState("A posted sale cannot be cancelled; void its voucher.")
        self.transition_to("cancelled")


class WalkInSaleLine(DocumentLine):
    sale = models.ForeignKey(
        WalkInSale, on_delete=models.CASCADE, related_name="lines"
    )

    @property
    def document(self):
        return self.sale
