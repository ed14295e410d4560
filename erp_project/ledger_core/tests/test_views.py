import json
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.test import TestCase
from django.urls import reverse

from ..models import Account, OrganizationMembership, Voucher
from ..services import post_sales_invoice
from .helpers import LedgerFixtures


class PostingViewTests(LedgerFixtures, TestCase):
    def setUp(self):
        self.org = self.make_organization("alpha")
        self.user = self.make_member(self.org, "clerk")
        self.client.force_login(self.user)
        self.invoice = self.make_sales_invoice(self.org, lines=[("10", "100", "18")])

    def test_post_sales_invoice(self):
        url = reverse("ledger_core:sales-invoice-post", args=[self.invoice.pk])
        response = self.client.post(url)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["voucher_number"], "JV-2025-0001")
        self.assertEqual(body["status"], "posted")

        # second attempt conflicts
        response = self.client.post(url)
        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()["ok"])

    def test_get_is_not_allowed(self):
        url = reverse("ledger_core:sales-invoice-post", args=[self.invoice.pk])
        self.assertEqual(self.client.get(url).status_code, 405)

    def test_unknown_document_is_404(self):
        url = reverse("ledger_core:sales-invoice-post", args=[999999])
        self.assertEqual(self.client.post(url).status_code, 404)

    def test_anonymous_request_has_no_organization(self):
        self.client.logout()
        url = reverse("ledger_core:sales-invoice-post", args=[self.invoice.pk])
        self.assertEqual(self.client.post(url).status_code, 403)

    def test_switched_organization_requires_membership(self):
        other = self.make_organization("beta")
        session = self.client.session
        session["active_organization_id"] = other.pk
        session.save()
        url = reverse("ledger_core:sales-invoice-post", args=[self.invoice.pk])
        self.assertEqual(self.client.post(url).status_code, 403)

    def test_missing_chart_is_400_with_code(self):
        bare = self.make_organization("bare", seed=False)
        invoice = self.make_sales_invoice(bare, lines=[("1", "10", "0")])
        session = self.client.session
        session["active_organization_id"] = bare.pk
        session.save()

        # not a member of "bare" yet
        self.assertEqual(
            self.client.post(reverse("ledger_core:sales-invoice-post", args=[invoice.pk])).status_code,
            403,
        )
        OrganizationMembership.objects.create(user=self.user, organization=bare)
        response = self.client.post(reverse("ledger_core:sales-invoice-post", args=[invoice.pk]))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "1200")

    def test_void_voucher_reason_rules(self):
        voucher = post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        url = reverse("ledger_core:voucher-void", args=[voucher.pk])

        response = self.client.post(url, data=json.dumps({"reason": "no"}), content_type="application/json")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(len(response.json()["violations"]), 1)

        response = self.client.post(url, data={"reason": "Customer returned goods"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Voucher.objects.get(pk=voucher.pk).status, "void")

    def test_purchase_workflow_endpoints(self):
        invoice = self.make_purchase_invoice(self.org, lines=[("4", "10", "0", "3")])
        verify = self.client.post(reverse("ledger_core:purchase-invoice-verify", args=[invoice.pk]))
        self.assertEqual(verify.json()["matching_status"], "mismatched")

        approve_url = reverse("ledger_core:purchase-invoice-approve", args=[invoice.pk])
        self.assertEqual(self.client.post(approve_url).status_code, 409)
        approve = self.client.post(
            approve_url, data=json.dumps({"accept_variance": True}), content_type="application/json"
        )
        self.assertEqual(approve.status_code, 200)
        self.assertEqual(approve.json()["status"], "approved")

        posted = self.client.post(reverse("ledger_core:purchase-invoice-post", args=[invoice.pk]))
        self.assertEqual(posted.status_code, 200)

    def test_reports(self):
        post_sales_invoice(self.org, self.invoice.pk, user=self.user)
        response = self.client.get(reverse("ledger_core:trial-balance"), {"fiscal_year": "2025"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["is_balanced"])

        receivable = self.account(self.org, "1200")
        response = self.client.get(reverse("ledger_core:account-ledger", args=[receivable.pk]))
        self.assertEqual(response.json()["closing_balance"], "1180.00")
        self.assertEqual(Decimal(response.json()["entries"][0]["debit"]), Decimal("1180"))


class AdminTests(LedgerFixtures, TestCase):
    def setUp(self):
        self.org = self.make_organization("alpha")
        self.clerk = self.make_member(self.org, "clerk")
        invoice = self.make_sales_invoice(self.org, lines=[("1", "100", "0")])
        self.voucher = post_sales_invoice(self.org, invoice.pk, user=self.clerk)
        self.other = self.make_organization("beta")
        self.make_sales_invoice(self.other, number="B-1", lines=[("1", "5", "0")])

    def test_changelists_render_for_superuser(self):
        admin_user = get_user_model().objects.create_superuser("root", "root@example.com", "pw12345")
        self.client.force_login(admin_user)
        for name in ("voucher", "ledgerentry", "salesinvoice", "purchaseinvoice",
                     "walkinsale", "account", "auditlog", "customer"):
            response = self.client.get(reverse(f"admin:ledger_core_{name}_changelist"))
            self.assertEqual(response.status_code, 200, name)
        response = self.client.get(reverse("admin:ledger_core_voucher_change", args=[self.voucher.pk]))
        self.assertEqual(response.status_code, 200)

    def test_staff_sees_only_own_organization(self):
        self.clerk.is_staff = True
        self.clerk.save()
        self.clerk.user_permissions.add(
            Permission.objects.get(codename="view_salesinvoice")
        )
        self.client.force_login(self.clerk)
        response = self.client.get(reverse("admin:ledger_core_salesinvoice_changelist"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [obj.document_number for obj in response.context["cl"].result_list], ["INV-001"]
        )

    def test_account_form_locks_ledger_owned_fields(self):
        admin_user = get_user_model().objects.create_superuser("root", "root@example.com", "pw12345")
        self.client.force_login(admin_user)

        receivable = self.account(self.org, "1200")
        response = self.client.get(reverse("admin:ledger_core_account_change", args=[receivable.pk]))
        self.assertEqual(response.status_code, 200)
        form_fields = response.context["adminform"].form.fields
        for name in ("ac_type", "opening_balance", "is_deleted", "current_balance"):
            self.assertNotIn(name, form_fields)

        # an untouched account keeps its type editable
        inventory = self.account(self.org, "1300")
        response = self.client.get(reverse("admin:ledger_core_account_change", args=[inventory.pk]))
        self.assertIn("ac_type", response.context["adminform"].form.fields)

    def test_soft_delete_action_respects_delete_rules(self):
        admin_user = get_user_model().objects.create_superuser("root", "root@example.com", "pw12345")
        self.client.force_login(admin_user)
        spare = Account.objects.create(
            organization=self.org, code="6001", name="Spare",
            ac_type="expense", category="other_expense",
        )
        receivable = self.account(self.org, "1200")

        response = self.client.post(
            reverse("admin:ledger_core_account_changelist"),
            {"action": "soft_delete_accounts", "_selected_action": [spare.pk, receivable.pk]},
        )
        self.assertEqual(response.status_code, 302)
        self.assertTrue(Account.all_objects.get(pk=spare.pk).is_deleted)
        self.assertFalse(Account.all_objects.get(pk=receivable.pk).is_deleted)
