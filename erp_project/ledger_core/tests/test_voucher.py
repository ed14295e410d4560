from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import InvalidState, NotFound, ValidationFailed
from ..models import AuditLog, LedgerEntry, Voucher, VoucherEntry
from ..services import (EntryLine, check_trial_balance_invariant,
                        create_voucher, post_voucher, void_voucher,
                        voucher_statistics)
from ..services.vouchers import delete_draft_voucher
from .helpers import POSTING_DATE, LedgerFixtures


class VoucherLifecycleTests(LedgerFixtures, TestCase):
    def setUp(self):
        self.org = self.make_organization("alpha")
        self.user = self.make_member(self.org, "clerk")
        self.cash = self.account(self.org, "1101")
        self.capital = self.account(self.org, "3001")

    def draft(self, amount="500.00", credit_amount=None):
        return create_voucher(
            self.org,
            "JV",
            POSTING_DATE,
            [
                EntryLine(self.cash.pk, "debit", Decimal(amount), "Capital introduced"),
                EntryLine(self.capital.pk, "credit", Decimal(credit_amount or amount)),
            ],
            narration="Owner investment",
            user=self.user,
        )

    def test_create_voucher_is_numbered_draft_with_totals(self):
        voucher = self.draft()
        self.assertEqual(voucher.status, "draft")
        self.assertEqual(voucher.voucher_number, "JV-2025-0001")
        self.assertEqual(voucher.fiscal_year, "2025")
        self.assertEqual(voucher.fiscal_period, "2025-03")
        self.assertEqual(voucher.total_debit, Decimal("500.00"))
        self.assertEqual(voucher.total_credit, Decimal("500.00"))
        self.assertFalse(LedgerEntry.objects.for_voucher(voucher).exists())

    def test_post_writes_ledger_and_moves_balances(self):
        voucher = self.draft()
        post_voucher(self.org, voucher.pk, user=self.user)

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, "posted")
        self.assertEqual(voucher.posted_by, self.user)
        self.assertIsNotNone(voucher.posted_at)

        rows = list(LedgerEntry.objects.for_voucher(voucher).order_by("pk"))
        self.assertEqual([(r.account.code, r.entry_type, r.amount) for r in rows], [
            ("1101", "debit", Decimal("500.00")),
            ("3001", "credit", Decimal("500.00")),
        ])
        # balance snapshot right after the row was applied
        self.assertEqual(rows[0].balance, Decimal("500.00"))
        self.assertEqual(rows[0].voucher_number, voucher.voucher_number)
        self.assertEqual(rows[0].narration, "Owner investment")

        self.assertEqual(self.balance(self.org, "1101"), Decimal("500.00"))
        self.assertEqual(self.balance(self.org, "3001"), Decimal("500.00"))
        self.assertTrue(check_trial_balance_invariant(self.org).is_balanced)

        for entry in voucher.entries.all():
            self.assertIsNotNone(entry.ledger_entry_id)
        self.assertTrue(
            AuditLog.objects.for_organization(self.org).filter(action="post", object_type="Voucher").exists()
        )

    def test_unbalanced_voucher_is_rejected_and_stays_draft(self):
        voucher = self.draft(amount="500.00", credit_amount="400.00")
        with self.assertRaises(ValidationFailed) as ctx:
            post_voucher(self.org, voucher.pk, user=self.user)
        self.assertEqual(
            ctx.exception.violations,
            ["Voucher is not balanced. Debit: 500.00, Credit: 400.00"],
        )
        voucher.refresh_from_db()
        self.assertEqual(voucher.status, "draft")
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_inactive_account_blocks_posting_atomically(self):
        voucher = self.draft()
        self.capital.is_active = False
        self.capital.save()
        with self.assertRaises(ValidationFailed):
            post_voucher(self.org, voucher.pk, user=self.user)
        voucher.refresh_from_db()
        self.assertEqual(voucher.status, "draft")
        self.assertEqual(self.balance(self.org, "1101"), Decimal("0.00"))

    def test_group_account_cannot_be_used_in_an_entry(self):
        with self.assertRaises(ValidationError):
            create_voucher(
                self.org, "JV", POSTING_DATE,
                [
                    EntryLine(self.account(self.org, "1100").pk, "debit", Decimal("10")),
                    EntryLine(self.capital.pk, "credit", Decimal("10")),
                ],
            )

    def test_posting_twice_is_an_invalid_state(self):
        voucher = self.draft()
        post_voucher(self.org, voucher.pk, user=self.user)
        with self.assertRaises(InvalidState):
            post_voucher(self.org, voucher.pk, user=self.user)

    def test_void_reverses_balances_and_keeps_rows(self):
        voucher = self.draft()
        post_voucher(self.org, voucher.pk, user=self.user)
        void_voucher(self.org, voucher.pk, user=self.user, reason="Entered twice")

        voucher.refresh_from_db()
        self.assertEqual(voucher.status, "void")
        self.assertEqual(voucher.void_reason, "Entered twice")
        self.assertEqual(self.balance(self.org, "1101"), Decimal("0.00"))
        self.assertEqual(self.balance(self.org, "3001"), Decimal("0.00"))

        rows = LedgerEntry.objects.for_voucher(voucher)
        self.assertEqual(rows.count(), 2)
        self.assertFalse(rows.filter(status="active").exists())
        self.assertFalse(LedgerEntry.objects.active(self.org).exists())

    def test_void_needs_a_reason(self):
        voucher = self.draft()
        post_voucher(self.org, voucher.pk, user=self.user)
        with self.assertRaises(ValidationFailed):
            void_voucher(self.org, voucher.pk, user=self.user, reason="  no ")

    def test_void_rules(self):
        voucher = self.draft()
        with self.assertRaises(InvalidState):
            void_voucher(self.org, voucher.pk, reason="Draft cannot be voided")

        post_voucher(self.org, voucher.pk)
        void_voucher(self.org, voucher.pk, reason="First void")
        with self.assertRaises(InvalidState):
            void_voucher(self.org, voucher.pk, reason="Second void")

    def test_only_drafts_can_be_deleted(self):
        voucher = self.draft()
        number = delete_draft_voucher(self.org, voucher.pk, user=self.user)
        self.assertEqual(number, "JV-2025-0001")
        self.assertFalse(Voucher.objects.filter(pk=voucher.pk).exists())

        posted = self.draft()
        post_voucher(self.org, posted.pk)
        with self.assertRaises(InvalidState):
            delete_draft_voucher(self.org, posted.pk)

    def test_posted_entries_are_frozen(self):
        voucher = self.draft()
        post_voucher(self.org, voucher.pk)
        entry = voucher.entries.first()
        entry.amount = Decimal("1.00")
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(InvalidState):
            VoucherEntry.objects.get(pk=entry.pk).delete()
        with self.assertRaises(ValidationError):
            VoucherEntry.objects.create(
                voucher=voucher, account=self.cash, entry_type="debit", amount=Decimal("1")
            )

    def test_posted_voucher_header_is_frozen(self):
        voucher = self.draft()
        post_voucher(self.org, voucher.pk)
        voucher.refresh_from_db()
        voucher.voucher_number = "JV-2025-9999"
        with self.assertRaises(ValidationError):
            voucher.save()

    def test_ledger_rows_are_append_only(self):
        voucher = self.draft()
        post_voucher(self.org, voucher.pk)
        row = LedgerEntry.objects.for_voucher(voucher).first()

        row.amount = Decimal("1.00")
        with self.assertRaises(InvalidState):
            row.save()
        with self.assertRaises(InvalidState):
            row.delete()
        with self.assertRaises(InvalidState):
            LedgerEntry.objects.filter(pk=row.pk).delete()

    def test_unknown_voucher(self):
        with self.assertRaises(NotFound):
            post_voucher(self.org, 424242)

    def test_statistics(self):
        posted = self.draft()
        post_voucher(self.org, posted.pk)
        self.draft(amount="20.00")

        stats = voucher_statistics(self.org, fiscal_year=2025)
        self.assertEqual(stats["JV"]["posted"], 1)
        self.assertEqual(stats["JV"]["draft"], 1)
        self.assertEqual(stats["JV"]["total"], 2)
        self.assertEqual(stats["JV"]["posted_amount"], "500.00")
        self.assertEqual(stats["RV"]["total"], 0)
