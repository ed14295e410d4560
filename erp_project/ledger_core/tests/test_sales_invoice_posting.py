from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import (AlreadyPosted, ConfigurationError, InvalidState,
                          NotFound, ValidationFailed)
from ..models import AuditLog, Customer, LedgerEntry, SalesInvoice, Voucher
from ..services import (check_trial_balance_invariant, post_sales_invoice,
                        void_voucher)
from .helpers import LedgerFixtures


class SalesInvoicePostingTests(LedgerFixtures, TestCase):
    def setUp(self):
        self.org = self.make_organization("alpha")
        self.user = self.make_member(self.org, "clerk")
        # 10 x 100 at 18% tax
        self.invoice = self.make_sales_invoice(self.org, lines=[("10", "100", "18")])

    def test_totals_come_from_the_lines(self):
        self.assertEqual(self.invoice.subtotal, Decimal("1000.00"))
        self.assertEqual(self.invoice.total_tax, Decimal("180.00"))
        self.assertEqual(self.invoice.total_amount, Decimal("1180.00"))

    def test_line_discount_is_taken_before_tax(self):
        invoice = self.make_sales_invoice(self.org, number="INV-002", lines=[("1", "200", "10")])
        line = invoice.lines.get()
        line.discount_rate = Decimal("10")
        line.save()
        invoice.refresh_from_db()
        self.assertEqual(invoice.total_discount, Decimal("20.00"))
        self.assertEqual(invoice.taxable_amount, Decimal("180.00"))
        self.assertEqual(invoice.total_tax, Decimal("18.00"))
        self.assertEqual(invoice.total_amount, Decimal("198.00"))

    def test_post_creates_balanced_journal_voucher(self):
        voucher = post_sales_invoice(self.org, self.invoice.pk, user=self.user)

        self.assertEqual(voucher.voucher_type, "JV")
        self.assertEqual(voucher.voucher_number, "JV-2025-0001")
        self.assertEqual(voucher.status, "posted")
        self.assertEqual(voucher.reference_type, "invoice")
        self.assertEqual(voucher.reference_id, self.invoice.pk)
        self.assertEqual(voucher.total_debit, Decimal("1180.00"))
        self.assertEqual(voucher.total_credit, Decimal("1180.00"))

        entries = [(e.account.code, e.entry_type, e.amount) for e in voucher.entries.all()]
        self.assertEqual(entries, [
            ("1200", "debit", Decimal("1180.00")),
            ("4001", "credit", Decimal("1000.00")),
            ("2102", "credit", Decimal("180.00")),
        ])

        self.assertEqual(self.balance(self.org, "1200"), Decimal("1180.00"))
        self.assertEqual(self.balance(self.org, "4001"), Decimal("1000.00"))
        self.assertEqual(self.balance(self.org, "2102"), Decimal("180.00"))
        self.assertTrue(check_trial_balance_invariant(self.org).is_balanced)

        self.invoice.refresh_from_db()
        self.assertTrue(self.invoice.is_posted)
        self.assertEqual(self.invoice.status, "posted")
        self.assertEqual(self.invoice.voucher, voucher)
        self.assertEqual(self.invoice.posted_by, self.user)
        self.assertEqual(self.invoice.customer.current_balance, Decimal("1180.00"))
        self.assertTrue(
            AuditLog.objects.filter(action="post", object_type="SalesInvoice",
                                    object_id=str(self.invoice.pk)).exists()
        )

    def test_shipping_is_credited_to_revenue(self):
        invoice = self.make_sales_invoice(
            self.org, number="INV-002", lines=[("1", "100", "0")],
            shipping_charges=Decimal("15"),
        )
        self.assertEqual(invoice.total_amount, Decimal("115.00"))
        voucher = post_sales_invoice(self.org, invoice.pk, user=self.user)
        entries = [(e.account.code, e.entry_type, e.amount) for e in voucher.entries.all()]
        # no tax line when there is no tax
        self.assertEqual(entries, [
            ("1200", "debit", Decimal("115.00")),
            ("4001", "credit", Decimal("115.00")),
        ])

    def test_posting_twice_raises_already_posted(self):
        post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        with self.assertRaises(AlreadyPosted):
            post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        self.assertEqual(Voucher.objects.count(), 1)
        self.assertEqual(LedgerEntry.objects.count(), 3)

    def test_voided_invoice_cannot_be_reposted(self):
        voucher = post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        void_voucher(self.org, voucher.pk, user=self.user, reason="Wrong customer")
        self.assertEqual(self.balance(self.org, "1200"), Decimal("0.00"))
        with self.assertRaises(InvalidState):
            post_sales_invoice(self.org, self.invoice.pk, user=self.user)

    def test_void_returns_accounts_to_pre_posting_balances(self):
        codes = ("1200", "4001", "2102")
        before = {code: self.balance(self.org, code) for code in codes}

        voucher = post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        void_voucher(self.org, voucher.pk, user=self.user, reason="Wrong customer")

        self.assertEqual({code: self.balance(self.org, code) for code in codes}, before)
        self.assertFalse(LedgerEntry.objects.active(self.org).exists())
        self.assertEqual(LedgerEntry.objects.for_voucher(voucher).count(), 3)
        check = check_trial_balance_invariant(self.org)
        self.assertTrue(check.is_balanced)

    def test_void_leaves_customer_balance_untouched(self):
        voucher = post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        void_voucher(self.org, voucher.pk, user=self.user, reason="Wrong customer")

        # counterparty balances only move when a document is posted
        customer = Customer.objects.get(pk=self.invoice.customer_id)
        self.assertEqual(customer.current_balance, Decimal("1180.00"))

    def test_cancelled_invoice_cannot_be_posted(self):
        self.invoice.cancel()
        with self.assertRaises(InvalidState):
            post_sales_invoice(self.org, self.invoice.pk, user=self.user)

    def test_empty_invoice_is_rejected(self):
        empty = self.make_sales_invoice(self.org, number="INV-EMPTY")
        with self.assertRaises(ValidationFailed):
            post_sales_invoice(self.org, empty.pk, user=self.user)
        self.assertEqual(Voucher.objects.count(), 0)

    def test_unknown_or_deleted_invoice_is_not_found(self):
        with self.assertRaises(NotFound):
            post_sales_invoice(self.org, 987654, user=self.user)
        self.invoice.soft_delete()
        with self.assertRaises(NotFound):
            post_sales_invoice(self.org, self.invoice.pk, user=self.user)

    def test_missing_chart_rolls_everything_back(self):
        bare = self.make_organization("bare", seed=False)
        invoice = self.make_sales_invoice(bare, lines=[("1", "50", "0")])
        with self.assertRaises(ConfigurationError) as ctx:
            post_sales_invoice(bare, invoice.pk)
        self.assertEqual(ctx.exception.code, "1200")
        self.assertFalse(Voucher.objects.for_organization(bare).exists())
        invoice.refresh_from_db()
        self.assertFalse(invoice.is_posted)

    def test_customer_default_receivable_is_used(self):
        bank = self.account(self.org, "1102")
        customer = Customer.objects.create(
            organization=self.org, name="Special", default_ar_account=bank
        )
        invoice = self.make_sales_invoice(
            self.org, number="INV-003", lines=[("1", "100", "0")], customer=customer
        )
        voucher = post_sales_invoice(self.org, invoice.pk)
        self.assertEqual(voucher.entries.get(entry_type="debit").account, bank)

    def test_posted_invoice_is_frozen(self):
        post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        invoice = SalesInvoice.objects.get(pk=self.invoice.pk)
        invoice.document_number = "INV-CHANGED"
        with self.assertRaises(ValidationError):
            invoice.save()
        line = invoice.lines.first()
        line.quantity = Decimal("1")
        with self.assertRaises(ValidationError):
            line.save()
        with self.assertRaises(InvalidState):
            invoice.soft_delete()

    def test_payments_move_status(self):
        post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        invoice = SalesInvoice.objects.get(pk=self.invoice.pk)
        invoice.record_payment(Decimal("180"))
        self.assertEqual(invoice.status, "partially_paid")
        self.assertEqual(invoice.balance_due, Decimal("1000.00"))
        with self.assertRaises(ValidationError):
            invoice.record_payment(Decimal("5000"))
        invoice.record_payment(Decimal("1000"))
        self.assertEqual(invoice.status, "paid")
