from django.db.models.signals import post_delete, post_save, pre_delete
from django.dispatch import receiver

from .exceptions import InvalidState
from .models import (Account, LedgerEntry, PurchaseInvoice,
                     PurchaseInvoiceLine, SalesInvoice, SalesInvoiceLine,
                     Voucher, VoucherEntry, WalkInSale, WalkInSaleLine)

TOTAL_FIELDS = [
    "subtotal", "total_discount", "taxable_amount",
    "total_tax", "total_amount", "updated_at",
]

"""
    Recalculate voucher totals when an entry is added/updated/removed.
    Totals are never taken from the caller.
"""


@receiver((post_save, post_delete), sender=VoucherEntry)
def voucher_entry_changed(sender, instance, **kwargs):
    try:
        voucher = Voucher.objects.get(pk=instance.voucher_id)
    except Voucher.DoesNotExist:
        return
    voucher.recalc_totals()
    voucher.save(update_fields=["total_debit", "total_credit", "updated_at"])


"""Block deletion of entries that belong to a posted or void voucher."""


@receiver(pre_delete, sender=VoucherEntry)
def prevent_delete_frozen_voucher_entry(sender, instance, **kwargs):
    status = (
        Voucher.objects.filter(pk=instance.voucher_id)
        .values_list("status", flat=True)
        .first()
    )
    if status and status != "draft":
        raise InvalidState(f"Cannot delete entries of a {status} voucher.")


"""Ledger rows are append-only, even for bulk queryset deletes."""


@receiver(pre_delete, sender=LedgerEntry)
def prevent_delete_ledger_entry(sender, instance, **kwargs):
    raise InvalidState("Ledger entries cannot be deleted.")


"""Block deletion if the account has ever been posted to."""


@receiver(pre_delete, sender=Account)
def prevent_delete_account_with_ledger_entries(sender, instance, **kwargs):
    if LedgerEntry.objects.filter(account=instance).exists():
        raise InvalidState(
            f"Cannot delete account {instance.code}: it has ledger activity."
        )


"""
    Recalculate document totals when a line is added/updated/removed.
"""


def _refresh_document_totals(model, document_id):
    try:
        document = model.objects.get(pk=document_id)
    except model.DoesNotExist:
        return
    if document.is_posted:
        return
    document.recalc_totals()
    document.save(update_fields=TOTAL_FIELDS)


@receiver((post_save, post_delete), sender=SalesInvoiceLine)
def sales_invoice_line_changed(sender, instance, **kwargs):
    _refresh_document_totals(SalesInvoice, instance.invoice_id)


@receiver((post_save, post_delete), sender=PurchaseInvoiceLine)
def purchase_invoice_line_changed(sender, instance, **kwargs):
    _refresh_document_totals(PurchaseInvoice, instance.invoice_id)


@receiver((post_save, post_delete), sender=WalkInSaleLine)
def walk_in_sale_line_changed(sender, instance, **kwargs):
    _refresh_document_totals(WalkInSale, instance.sale_id)
