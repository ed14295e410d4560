from django.contrib import admin

from ledger_core.models import (Customer, PurchaseInvoice, PurchaseInvoiceLine,
                                SalesInvoice, SalesInvoiceLine, Supplier,
                                WalkInSale, WalkInSaleLine)

from .actions import (post_purchase_invoices, post_sales_invoices,
                      post_walk_in_sales, verify_purchase_invoices)
from .mixins import TenantAdminMixin

LINE_FIELDS = (
    "line_no", "description", "quantity", "rate",
    "discount_rate", "tax_rate", "amount", "discount_amount",
    "tax_amount", "net_amount",
)
# computed by DocumentLine.compute_amounts
COMPUTED_LINE_FIELDS = ("amount", "discount_amount", "tax_amount", "net_amount")

TOTAL_FIELDS = (
    "subtotal", "total_discount", "taxable_amount", "total_tax", "total_amount",
)
POSTING_FIELDS = (
    "fiscal_year", "fiscal_period", "is_posted", "voucher", "posted_at", "posted_by",
)


class DocumentLineInline(TenantAdminMixin, admin.TabularInline):
    extra = 0
    fields = LINE_FIELDS
    readonly_fields = COMPUTED_LINE_FIELDS

    # Posted documents keep their lines
    def get_readonly_fields(self, request, obj=None):
        if obj and obj.is_posted:
            return self.fields
        return self.readonly_fields

    def has_add_permission(self, request, obj=None):
        if obj and obj.is_posted:
            return False
        return super().has_add_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.is_posted:
            return False
        return super().has_delete_permission(request, obj)


class SalesInvoiceLineInline(DocumentLineInline):
    model = SalesInvoiceLine
    tenant_lookup = "invoice__organization"


class PurchaseInvoiceLineInline(DocumentLineInline):
    model = PurchaseInvoiceLine
    tenant_lookup = "invoice__organization"
    fields = LINE_FIELDS + ("po_quantity", "grn_quantity", "is_matched", "quantity_variance")
    readonly_fields = COMPUTED_LINE_FIELDS + ("is_matched", "quantity_variance")


class WalkInSaleLineInline(DocumentLineInline):
    model = WalkInSaleLine
    tenant_lookup = "sale__organization"


class PostableDocumentAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_filter = ("organization", "status", "is_posted", "fiscal_year")
    search_fields = ("document_number",)
    readonly_fields = TOTAL_FIELDS + POSTING_FIELDS

    def has_delete_permission(self, request, obj=None):
        if obj and obj.is_posted:
            return False
        return super().has_delete_permission(request, obj)


# Register `SalesInvoice` model
@admin.register(SalesInvoice)
class SalesInvoiceAdmin(PostableDocumentAdmin):
    list_display = (
        "document_number", "organization", "customer", "document_date",
        "total_amount", "amount_paid", "status", "voucher",
    )
    search_fields = ("document_number", "customer__name")
    readonly_fields = PostableDocumentAdmin.readonly_fields + ("status", "amount_paid")
    inlines = [SalesInvoiceLineInline]
    actions = [post_sales_invoices]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "customer", "voucher")


# Register `PurchaseInvoice` model
@admin.register(PurchaseInvoice)
class PurchaseInvoiceAdmin(PostableDocumentAdmin):
    list_display = (
        "document_number", "organization", "supplier", "document_date",
        "total_amount", "matching_status", "status", "voucher",
    )
    list_filter = PostableDocumentAdmin.list_filter + ("matching_status",)
    search_fields = ("document_number", "supplier__name", "supplier_invoice_number")
    readonly_fields = PostableDocumentAdmin.readonly_fields + (
        "status", "matching_status", "quantity_variance",
        "verified_at", "verified_by", "approved_at", "approved_by", "amount_paid",
    )
    inlines = [PurchaseInvoiceLineInline]
    actions = [verify_purchase_invoices, post_purchase_invoices]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("organization", "supplier", "voucher")


# Register `WalkInSale` model
@admin.register(WalkInSale)
class WalkInSaleAdmin(PostableDocumentAdmin):
    list_display = (
        "document_number", "organization", "customer_name", "document_date",
        "payment_method", "total_amount", "status", "is_posted",
    )
    list_filter = PostableDocumentAdmin.list_filter + ("payment_method",)
    inlines = [WalkInSaleLineInline]
    actions = [post_walk_in_sales]


@admin.register(Customer)
class CustomerAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "organization", "default_ar_account", "current_balance", "is_active")
    list_filter = ("organization", "is_active")
    search_fields = ("name", "code", "contact_email")
    readonly_fields = ("current_balance",)


@admin.register(Supplier)
class SupplierAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("name", "organization", "default_ap_account", "current_balance", "is_active")
    list_filter = ("organization", "is_active")
    search_fields = ("name", "code", "contact_email")
    readonly_fields = ("current_balance",)
