import logging

from django.db import transaction

from ..exceptions import (AlreadyPosted, InvalidState, NotFound,
                          ValidationFailed)
from ..models import (Customer, PurchaseInvoice, SalesInvoice, Supplier,
                      WalkInSale)
from ..models.money import ZERO, quantize
from .accounts import resolve_posting_accounts
from .audit_helper import log_action
from .ledger import account_violations, post_voucher_entries
from .validation import EntryLine, check_double_entry
from .vouchers import create_voucher

logger = logging.getLogger(__name__)


# ------------------------------------
# Shared posting steps
# ------------------------------------
def _load_for_posting(model, organization, document_id):
    """Lock the document row for the rest of the transaction."""
    try:
        return model.objects.select_for_update().get(
            pk=document_id, organization=organization, is_deleted=False
        )
    except model.DoesNotExist:
        raise NotFound(
            f"{model._meta.verbose_name.title()} {document_id} not found."
        ) from None


def _guard_postable(document, blocked_statuses):
    if document.is_posted:
        if document.voucher_id and document.voucher.status == "void":
            raise InvalidState(
                f"{document.document_number} was posted and its voucher "
                f"{document.voucher.voucher_number} voided; it cannot be posted again."
            )
        raise AlreadyPosted(f"{document.document_number} is already posted.")
    if document.status in blocked_statuses:
        raise InvalidState(
            f"Cannot post {document.document_number}: status is {document.status}."
        )


def _roles_for(document, always, tax_role):
    roles = list(always)
    if document.total_tax > ZERO:
        roles.append(tax_role)
    return roles


def _post_document_voucher(document, voucher_type, lines, accounts, narration, user):
    """Validate in memory, then create, post and write the voucher."""
    violations = check_double_entry(lines)
    violations += account_violations(document.organization, accounts.accounts.values())
    if violations:
        raise ValidationFailed(violations)

    voucher = create_voucher(
        document.organization,
        voucher_type,
        document.document_date,
        lines,
        narration=narration,
        reference_type=document.reference_type,
        reference_number=document.document_number,
        reference_id=document.pk,
        user=user,
    )
    voucher.post(user=user)
    post_voucher_entries(voucher, user=user)
    return voucher


def _finish(document, voucher, user):
    document.mark_posted(voucher, user=user)
    log_action(
        action="post",
        instance=document,
        user=user,
        changes={
            "voucher_number": voucher.voucher_number,
            "total_amount": str(document.total_amount),
        },
    )
    logger.info(
        "Document posted",
        extra={
            "organization": document.organization_id,
            "document": f"{document.__class__.__name__}:{document.document_number}",
            "voucher_number": voucher.voucher_number,
        },
    )


def _require_total(document):
    if document.total_amount <= ZERO:
        raise ValidationFailed(
            [f"{document.document_number} total must be greater than zero"]
        )


# ------------------------------------
# Entry derivation (pure)
# ------------------------------------
def sales_invoice_entries(invoice, accounts):
    """Dr receivable total; Cr revenue; Cr sales tax."""
    label = f"Invoice {invoice.document_number}"
    revenue = quantize(invoice.taxable_amount + invoice.extra_charges())
    lines = [
        EntryLine(accounts.receivable.pk, "debit", invoice.total_amount,
                  f"{label} - {invoice.customer.name}"),
        EntryLine(accounts.revenue.pk, "credit", revenue, f"Sales - {label}"),
    ]
    if invoice.total_tax > ZERO:
        lines.append(
            EntryLine(accounts.sales_tax.pk, "credit", invoice.total_tax,
                      f"Sales tax - {label}")
        )
    return lines


def purchase_invoice_entries(invoice, accounts):
    """Dr purchases; Dr input tax; Cr payable total."""
    label = f"Purchase invoice {invoice.document_number}"
    purchases = quantize(invoice.taxable_amount + invoice.extra_charges())
    lines = [
        EntryLine(accounts.purchases.pk, "debit", purchases, f"Purchases - {label}"),
    ]
    if invoice.total_tax > ZERO:
        lines.append(
            EntryLine(accounts.input_tax.pk, "debit", invoice.total_tax,
                      f"Input tax - {label}")
        )
    lines.append(
        EntryLine(accounts.payable.pk, "credit", invoice.total_amount,
                  f"{label} - {invoice.supplier.name}")
    )
    return lines


def walk_in_sale_entries(sale, accounts):
    """Dr cash total; Cr revenue taxable; Cr sales tax."""
    label = f"Walk-in sale {sale.document_number}"
    lines = [
        EntryLine(accounts.cash.pk, "debit", sale.total_amount,
                  f"{label} ({sale.get_payment_method_display()})"),
        EntryLine(accounts.revenue.pk, "credit", sale.taxable_amount, f"Sales - {label}"),
    ]
    if sale.total_tax > ZERO:
        lines.append(
            EntryLine(accounts.sales_tax.pk, "credit", sale.total_tax,
                      f"Sales tax - {label}")
        )
    return lines


# ------------------------------------
# Posters
# ------------------------------------
@transaction.atomic
def post_sales_invoice(organization, invoice_id, user=None):
    invoice = _load_for_posting(SalesInvoice, organization, invoice_id)
    _guard_postable(invoice, blocked_statuses=("cancelled",))
    invoice.recalc_totals()
    _require_total(invoice)

    accounts = resolve_posting_accounts(
        organization,
        _roles_for(invoice, ["receivable", "revenue"], "sales_tax"),
        overrides={
            "receivable": invoice.receivable_account or invoice.customer.default_ar_account,
            "revenue": invoice.revenue_account,
            "sales_tax": invoice.tax_account,
        },
    )
    lines = sales_invoice_entries(invoice, accounts)
    voucher = _post_document_voucher(
        invoice, "JV", lines, accounts,
        narration=f"Sales invoice {invoice.document_number} to {invoice.customer.name}",
        user=user,
    )

    customer = Customer.objects.select_for_update().get(pk=invoice.customer_id)
    customer.update_balance(invoice.total_amount)

    _finish(invoice, voucher, user)
    return voucher


@transaction.atomic
def post_purchase_invoice(organization, invoice_id, user=None):
    invoice = _load_for_posting(PurchaseInvoice, organization, invoice_id)
    # draft, verified and approved invoices can all be posted
    _guard_postable(invoice, blocked_statuses=("cancelled",))
    invoice.recalc_totals()
    _require_total(invoice)

    accounts = resolve_posting_accounts(
        organization,
        _roles_for(invoice, ["purchases", "payable"], "input_tax"),
        overrides={
            "payable": invoice.payable_account or invoice.supplier.default_ap_account,
            "purchases": invoice.purchases_account,
            "input_tax": invoice.input_tax_account,
        },
    )
    lines = purchase_invoice_entries(invoice, accounts)
    voucher = _post_document_voucher(
        invoice, "JV", lines, accounts,
        narration=f"Purchase invoice {invoice.document_number} from {invoice.supplier.name}",
        user=user,
    )

    supplier = Supplier.objects.select_for_update().get(pk=invoice.supplier_id)
    supplier.update_balance(invoice.total_amount)

    _finish(invoice, voucher, user)
    return voucher


@transaction.atomic
def post_walk_in_sale(organization, sale_id, user=None):
    sale = _load_for_posting(WalkInSale, organization, sale_id)
    _guard_postable(sale, blocked_statuses=("cancelled", "refunded"))
    sale.recalc_totals()
    _require_total(sale)

    accounts = resolve_posting_accounts(
        organization,
        _roles_for(sale, ["cash", "revenue"], "sales_tax"),
        overrides={
            "cash": sale.cash_account,
            "revenue": sale.revenue_account,
            "sales_tax": sale.tax_account,
        },
    )
    lines = walk_in_sale_entries(sale, accounts)
    voucher = _post_document_voucher(
        sale, "RV", lines, accounts,
        narration=f"Walk-in sale {sale.document_number}",
        user=user,
    )

    _finish(sale, voucher, user)
    return voucher
