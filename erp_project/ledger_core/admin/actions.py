from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

from ledger_core.exceptions import LedgerError
from ledger_core.services import (post_purchase_invoice, post_sales_invoice,
                                  post_voucher, post_walk_in_sale,
                                  soft_delete_account, verify_purchase_invoice)

# ---------- Admin actions ----------


def _run_each(modeladmin, request, queryset, label, operation):
    """
    Apply `operation(organization, pk, user)` to each selected row.
    Every row posts in its own transaction; failures are reported
    per row and do not stop the batch.
    """
    success = 0
    failures = 0
    for obj in queryset:
        try:
            operation(obj.organization, obj.pk, user=request.user)
            success += 1
        except (LedgerError, ValidationError) as exc:
            failures += 1
            modeladmin.message_user(
                request,
                _("Could not %(label)s %(obj)s: %(err)s")
                % {"label": label, "obj": obj, "err": exc},
                level=messages.ERROR,
            )

    # Final summary message
    modeladmin.message_user(
        request,
        _("%(label)s: %(success)d done, %(failures)d failed.")
        % {"label": label, "success": success, "failures": failures},
        level=messages.SUCCESS if failures == 0 else messages.WARNING,
    )


@admin.action(description="Post selected vouchers to the ledger")
def post_vouchers(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset.filter(status="draft"), "post", post_voucher)


@admin.action(description="Post selected sales invoices")
def post_sales_invoices(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset, "post", post_sales_invoice)


@admin.action(description="Verify selected purchase invoices (3-way match)")
def verify_purchase_invoices(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset, "verify", verify_purchase_invoice)


@admin.action(description="Post selected purchase invoices")
def post_purchase_invoices(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset, "post", post_purchase_invoice)


@admin.action(description="Post selected walk-in sales")
def post_walk_in_sales(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset, "post", post_walk_in_sale)


@admin.action(description="Soft-delete selected accounts")
def soft_delete_accounts(modeladmin, request, queryset):
    _run_each(
        modeladmin, request, queryset.filter(is_deleted=False), "delete", soft_delete_account
    )
