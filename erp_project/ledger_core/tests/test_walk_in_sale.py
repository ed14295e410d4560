from decimal import Decimal

from django.test import TestCase

from ..exceptions import AlreadyPosted, InvalidState
from ..models import PostingAccountMapping
from ..services import post_walk_in_sale
from .helpers import LedgerFixtures


class WalkInSalePostingTests(LedgerFixtures, TestCase):
    def setUp(self):
        self.org = self.make_organization("alpha")
        self.user = self.make_member(self.org, "cashier")

    def test_cash_sale_posts_receipt_voucher(self):
        sale = self.make_walk_in_sale(
            self.org, lines=[("1", "100", "18")], amount_received=Decimal("150")
        )
        self.assertEqual(sale.total_amount, Decimal("118.00"))
        self.assertEqual(sale.change_given, Decimal("32.00"))

        voucher = post_walk_in_sale(self.org, sale.pk, user=self.user)
        self.assertEqual(voucher.voucher_type, "RV")
        self.assertEqual(voucher.voucher_number, "RV-2025-0001")
        self.assertEqual(voucher.reference_type, "receipt")
        entries = [(e.account.code, e.entry_type, e.amount) for e in voucher.entries.all()]
        self.assertEqual(entries, [
            ("1101", "debit", Decimal("118.00")),
            ("4001", "credit", Decimal("100.00")),
            ("2102", "credit", Decimal("18.00")),
        ])
        self.assertEqual(self.balance(self.org, "1101"), Decimal("118.00"))

        sale.refresh_from_db()
        self.assertTrue(sale.is_posted)
        # walk-in sales stay "completed" once posted
        self.assertEqual(sale.status, "completed")

        with self.assertRaises(AlreadyPosted):
            post_walk_in_sale(self.org, sale.pk, user=self.user)

    def test_change_is_never_negative(self):
        sale = self.make_walk_in_sale(self.org, lines=[("2", "250", "0")], amount_received=Decimal("100"))
        self.assertEqual(sale.change_given, Decimal("0.00"))

    def test_card_sale_uses_mapped_cash_account(self):
        bank = self.account(self.org, "1102")
        PostingAccountMapping.objects.create(organization=self.org, role="cash", account=bank)
        sale = self.make_walk_in_sale(self.org, lines=[("2", "250", "0")], payment_method="card")

        voucher = post_walk_in_sale(self.org, sale.pk, user=self.user)
        debit = voucher.entries.get(entry_type="debit")
        self.assertEqual(debit.account, bank)
        self.assertIn("Card", debit.description)
        # no tax line without tax
        self.assertEqual(voucher.entries.count(), 2)

    def test_cancelled_or_refunded_sale_cannot_be_posted(self):
        sale = self.make_walk_in_sale(self.org, lines=[("1", "10", "0")])
        sale.cancel()
        with self.assertRaises(InvalidState):
            post_walk_in_sale(self.org, sale.pk, user=self.user)

        refunded = self.make_walk_in_sale(self.org, number="WS-002", lines=[("1", "10", "0")])
        refunded.transition_to("refunded")
        with self.assertRaises(InvalidState):
            post_walk_in_sale(self.org, refunded.pk, user=self.user)
