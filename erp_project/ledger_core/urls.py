from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("invoices/<int:invoice_id>/post/", views.post_sales_invoice_view, name="sales-invoice-post"),
    path("purchase-invoices/<int:invoice_id>/verify/", views.verify_purchase_invoice_view, name="purchase-invoice-verify"),
    path("purchase-invoices/<int:invoice_id>/approve/", views.approve_purchase_invoice_view, name="purchase-invoice-approve"),
    path("purchase-invoices/<int:invoice_id>/post/", views.post_purchase_invoice_view, name="purchase-invoice-post"),
    path("sales/<int:sale_id>/post/", views.post_walk_in_sale_view, name="walk-in-sale-post"),
    path("vouchers/<int:voucher_id>/post/", views.post_voucher_view, name="voucher-post"),
    path("vouchers/<int:voucher_id>/void/", views.void_voucher_view, name="voucher-void"),
    path("reports/trial-balance/", views.trial_balance_view, name="trial-balance"),
    path("reports/ledger/<int:account_id>/", views.account_ledger_view, name="account-ledger"),
]
