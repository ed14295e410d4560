from django.contrib import admin
from django.db.models import Prefetch
from django.utils.html import format_html

from ledger_core.models import LedgerEntry, Voucher, VoucherEntry

from .actions import post_vouchers
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin

ENTRY_FIELDS = ("line_no", "account", "entry_type", "amount", "description")


class VoucherEntryInline(TenantAdminMixin, admin.TabularInline):
    """Show VoucherEntry rows on the Voucher page"""

    model = VoucherEntry
    tenant_lookup = "voucher__organization"
    extra = 0
    fields = ENTRY_FIELDS + ("ledger_entry",)
    readonly_fields = ("ledger_entry",)
    ordering = ("line_no",)

    def get_readonly_fields(self, request, obj=None):
        # Once the voucher leaves draft, its entries are locked
        if obj and obj.status != "draft":
            return ENTRY_FIELDS + ("ledger_entry",)
        return self.readonly_fields

    def has_add_permission(self, request, obj=None):
        if obj and obj.status != "draft":
            return False
        return super().has_add_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status != "draft":
            return False
        return super().has_delete_permission(request, obj)


# Register `Voucher` model
@admin.register(Voucher)
class VoucherAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "voucher_number",
        "organization",
        "voucher_type",
        "voucher_date",
        "status",
        "balanced",
        "reference_type",
        "reference_number",
    )
    list_filter = ("organization", "voucher_type", "status", "fiscal_year")
    search_fields = ("voucher_number", "narration", "reference_number")
    # numbering, totals and workflow stamps are owned by the services
    readonly_fields = (
        "voucher_number",
        "sequence",
        "fiscal_year",
        "fiscal_period",
        "total_debit",
        "total_credit",
        "status",
        "posted_at",
        "posted_by",
        "voided_at",
        "voided_by",
        "void_reason",
        "created_by",
    )
    inlines = [VoucherEntryInline]
    actions = [post_vouchers]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        entries = VoucherEntry.objects.select_related("account")
        return qs.select_related("organization").prefetch_related(
            Prefetch("entries", queryset=entries)
        )

    """ Computed column for balance check """
    def balanced(self, obj):
        return format_html(
            "<b>{}</b> / <small>{}</small>", obj.total_debit, obj.total_credit
        )

    balanced.short_description = "Debits / Credits"

    def has_delete_permission(self, request, obj=None):
        # posted/void vouchers are voided, never deleted
        if obj and obj.status != "draft":
            return False
        return super().has_delete_permission(request, obj)


# Register `LedgerEntry` model
@admin.register(LedgerEntry)
class LedgerEntryAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "entry_date",
        "voucher_number",
        "account",
        "entry_type",
        "amount",
        "balance",
        "status",
    )
    list_filter = ("organization", "status", "entry_type", "fiscal_year")
    search_fields = ("voucher_number", "account__code", "description")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "account")
