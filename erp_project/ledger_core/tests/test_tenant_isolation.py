from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from ..exceptions import NotFound
from ..models import (Account, AuditLog, OrganizationMembership, SalesInvoice,
                      Voucher)
from ..services import (EntryLine, create_voucher, find_account_by_code,
                        get_account_ledger, post_sales_invoice)
from .helpers import POSTING_DATE, LedgerFixtures


class TenantIsolationTests(LedgerFixtures, TestCase):
    def setUp(self):
        self.org_a = self.make_organization("company-a")
        self.org_b = self.make_organization("company-b")
        self.user_a = self.make_member(self.org_a, "alice")
        self.inv_a = self.make_sales_invoice(self.org_a, number="A-1", lines=[("1", "200", "0")])
        self.inv_b = self.make_sales_invoice(self.org_b, number="B-1", lines=[("1", "100", "0")])

    def test_for_organization_returns_only_that_organization(self):
        self.assertListEqual(
            list(SalesInvoice.objects.for_organization(self.org_a).values_list("pk", flat=True)),
            [self.inv_a.pk],
        )
        codes_a = set(Account.objects.for_organization(self.org_a).values_list("pk", flat=True))
        codes_b = set(Account.objects.for_organization(self.org_b).values_list("pk", flat=True))
        self.assertFalse(codes_a & codes_b)

    def test_same_document_number_in_two_organizations(self):
        other = self.make_sales_invoice(self.org_b, number="A-1", lines=[("1", "5", "0")])
        self.assertEqual(other.document_number, self.inv_a.document_number)

    def test_cannot_post_another_organizations_invoice(self):
        with self.assertRaises(NotFound):
            post_sales_invoice(self.org_a, self.inv_b.pk, user=self.user_a)
        self.assertFalse(Voucher.objects.exists())

    def test_posting_touches_only_own_accounts(self):
        post_sales_invoice(self.org_a, self.inv_a.pk, user=self.user_a)
        post_sales_invoice(self.org_b, self.inv_b.pk)

        self.assertEqual(find_account_by_code(self.org_a, "1200").current_balance, Decimal("200.00"))
        self.assertEqual(find_account_by_code(self.org_b, "1200").current_balance, Decimal("100.00"))
        # each organization numbers its own vouchers
        numbers = set(Voucher.objects.values_list("organization__slug", "voucher_number"))
        self.assertEqual(numbers, {("company-a", "JV-2025-0001"), ("company-b", "JV-2025-0001")})

    def test_entry_cannot_use_foreign_account(self):
        with self.assertRaises(ValidationError):
            create_voucher(
                self.org_a, "JV", POSTING_DATE,
                [
                    EntryLine(find_account_by_code(self.org_a, "1101").pk, "debit", Decimal("1")),
                    EntryLine(find_account_by_code(self.org_b, "3001").pk, "credit", Decimal("1")),
                ],
            )

    def test_ledger_report_hides_foreign_account(self):
        foreign = find_account_by_code(self.org_b, "1101")
        with self.assertRaises(NotFound):
            get_account_ledger(self.org_a, foreign.pk)

    def test_audit_user_must_belong_to_organization(self):
        with self.assertRaises(ValidationError):
            AuditLog.objects.create(
                organization=self.org_b, user=self.user_a,
                action="post", object_type="SalesInvoice", object_id="1",
            )

    def test_default_organization_must_be_a_membership(self):
        User = get_user_model()
        bob = User.objects.create_user(username="bob", password="pw12345")
        bob.default_organization = self.org_a
        bob.save()
        with self.assertRaises(ValidationError):
            OrganizationMembership.objects.create(user=bob, organization=self.org_b)
        self.assertEqual(list(User.objects.for_organization(self.org_a)), [self.user_a])
