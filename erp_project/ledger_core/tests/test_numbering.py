import threading
from decimal import Decimal
from unittest import mock

from django.db import connection
from django.test import (TestCase, TransactionTestCase, override_settings,
                         skipUnlessDBFeature)

from ..exceptions import VoucherNumberConflict
from ..models import Customer, Voucher, VoucherSequence
from ..services import (EntryLine, create_voucher, next_voucher_number,
                        post_sales_invoice, reconcile_account_balances)
from ..services import numbering
from ..services.numbering import format_voucher_number, save_with_number
from .helpers import POSTING_DATE, LedgerFixtures


class VoucherNumberingTests(LedgerFixtures, TestCase):
    def setUp(self):
        self.org = self.make_organization("alpha")

    def lines(self):
        return [
            EntryLine(self.account(self.org, "1101").pk, "debit", Decimal("10")),
            EntryLine(self.account(self.org, "3001").pk, "credit", Decimal("10")),
        ]

    def test_format(self):
        self.assertEqual(format_voucher_number("RV", "2025", 7), "RV-2025-0007")
        self.assertEqual(format_voucher_number("JV", "2025", 12345), "JV-2025-12345")

    def test_numbers_are_sequential_per_type_and_year(self):
        self.assertEqual(next_voucher_number(self.org, "JV", "2025"), ("JV-2025-0001", 1))
        self.assertEqual(next_voucher_number(self.org, "JV", "2025"), ("JV-2025-0002", 2))
        self.assertEqual(next_voucher_number(self.org, "RV", "2025"), ("RV-2025-0001", 1))
        self.assertEqual(next_voucher_number(self.org, "JV", "2026"), ("JV-2026-0001", 1))

    def test_organizations_number_independently(self):
        other = self.make_organization("beta")
        next_voucher_number(self.org, "JV", "2025")
        self.assertEqual(next_voucher_number(other, "JV", "2025"), ("JV-2025-0001", 1))

    def test_counter_is_seeded_from_existing_vouchers(self):
        create_voucher(self.org, "JV", POSTING_DATE, self.lines())
        create_voucher(self.org, "JV", POSTING_DATE, self.lines())
        VoucherSequence.objects.all().delete()

        voucher = create_voucher(self.org, "JV", POSTING_DATE, self.lines())
        self.assertEqual(voucher.voucher_number, "JV-2025-0003")

    def test_collision_is_retried_with_a_fresh_number(self):
        create_voucher(self.org, "JV", POSTING_DATE, self.lines())
        stale = [("JV-2025-0001", 1), ("JV-2025-0002", 2)]

        with mock.patch.object(numbering, "next_voucher_number", side_effect=stale) as allocate:
            voucher = save_with_number(
                Voucher(organization=self.org, voucher_type="JV", voucher_date=POSTING_DATE)
            )

        self.assertEqual(voucher.voucher_number, "JV-2025-0002")
        self.assertEqual(voucher.sequence, 2)
        # the retry asks the allocator to resync with the table
        self.assertFalse(allocate.call_args_list[0].kwargs["resync"])
        self.assertTrue(allocate.call_args_list[1].kwargs["resync"])

    @override_settings(LEDGER={"VOUCHER_NUMBER_MAX_ATTEMPTS": 2})
    def test_gives_up_after_bounded_attempts(self):
        create_voucher(self.org, "JV", POSTING_DATE, self.lines())
        with mock.patch.object(
            numbering, "next_voucher_number", return_value=("JV-2025-0001", 1)
        ) as allocate:
            with self.assertRaises(VoucherNumberConflict):
                save_with_number(
                    Voucher(organization=self.org, voucher_type="JV", voucher_date=POSTING_DATE)
                )
        self.assertEqual(allocate.call_count, 2)
        self.assertEqual(Voucher.objects.count(), 1)

    def test_resync_skips_numbers_taken_behind_the_counter(self):
        create_voucher(self.org, "JV", POSTING_DATE, self.lines())
        VoucherSequence.objects.update(last_value=0)
        self.assertEqual(next_voucher_number(self.org, "JV", "2025", resync=True)[0], "JV-2025-0002")


class SameSeriesInvoices(LedgerFixtures):
    """N sales invoices of 100 each, all numbered in the JV-2025 series."""

    invoice_count = 4

    def make_invoices(self):
        self.org = self.make_organization("alpha")
        self.invoices = [
            self.make_sales_invoice(self.org, number=f"INV-{n:03d}", lines=[("1", "100", "0")])
            for n in range(1, self.invoice_count + 1)
        ]

    def assert_consistent(self, numbers):
        self.assertEqual(len(numbers), self.invoice_count)
        self.assertEqual(len(set(numbers)), self.invoice_count)
        self.assertEqual(
            sorted(numbers),
            [f"JV-2025-{n:04d}" for n in range(1, self.invoice_count + 1)],
        )
        total = Decimal("100.00") * self.invoice_count
        self.assertEqual(self.balance(self.org, "1200"), total)
        self.assertEqual(self.balance(self.org, "4001"), total)
        self.assertEqual(Customer.objects.get().current_balance, total)
        self.assertEqual(reconcile_account_balances(self.org), [])


class SequentialPostingTests(SameSeriesInvoices, TestCase):
    def setUp(self):
        self.make_invoices()

    def test_each_posting_takes_the_next_number(self):
        numbers = [
            post_sales_invoice(self.org, invoice.pk).voucher_number
            for invoice in self.invoices
        ]
        self.assert_consistent(numbers)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentPostingTests(SameSeriesInvoices, TransactionTestCase):
    def setUp(self):
        self.make_invoices()

    def test_parallel_postings_share_no_number_or_balance(self):
        barrier = threading.Barrier(self.invoice_count)
        numbers = []
        errors = []

        def post(invoice_id):
            try:
                barrier.wait()
                numbers.append(post_sales_invoice(self.org, invoice_id).voucher_number)
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        threads = [
            threading.Thread(target=post, args=(invoice.pk,)) for invoice in self.invoices
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assert_consistent(numbers)
