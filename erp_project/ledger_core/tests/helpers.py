import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model

from ..models import (Customer, Organization, OrganizationMembership,
                      PurchaseInvoice, PurchaseInvoiceLine, SalesInvoice,
                      SalesInvoiceLine, Supplier, WalkInSale, WalkInSaleLine)
from ..services import find_account_by_code, seed_chart_of_accounts

User = get_user_model()

POSTING_DATE = datetime.date(2025, 3, 15)


class LedgerFixtures:
    """setUp helpers shared by the posting tests."""

    def make_organization(self, slug, seed=True):
        organization = Organization.objects.create(name=slug.title(), slug=slug)
        if seed:
            seed_chart_of_accounts(organization)
        return organization

    def make_member(self, organization, username, role="accountant"):
        user = User.objects.create_user(username=username, password="pw12345")
        OrganizationMembership.objects.create(
            user=user, organization=organization, role=role
        )
        user.default_organization = organization
        user.save(update_fields=["default_organization"])
        return user

    def account(self, organization, code):
        return find_account_by_code(organization, code)

    def balance(self, organization, code):
        return self.account(organization, code).current_balance

    def make_sales_invoice(self, organization, number="INV-001", lines=None, **kwargs):
        customer = kwargs.pop("customer", None) or Customer.objects.get_or_create(
            organization=organization, name="Acme Traders"
        )[0]
        invoice = SalesInvoice.objects.create(
            organization=organization,
            customer=customer,
            document_number=number,
            document_date=kwargs.pop("document_date", POSTING_DATE),
            **kwargs,
        )
        # (quantity, rate, tax_rate)
        for line_no, (qty, rate, tax) in enumerate(lines or [], start=1):
            SalesInvoiceLine.objects.create(
                invoice=invoice,
                line_no=line_no,
                description=f"Item {line_no}",
                quantity=Decimal(qty),
                rate=Decimal(rate),
                tax_rate=Decimal(tax),
            )
        invoice.refresh_from_db()
        return invoice

    def make_purchase_invoice(self, organization, number="PI-001", lines=None, **kwargs):
        supplier = kwargs.pop("supplier", None) or Supplier.objects.get_or_create(
            organization=organization, name="Steel Mills"
        )[0]
        invoice = PurchaseInvoice.objects.create(
            organization=organization,
            supplier=supplier,
            document_number=number,
            document_date=kwargs.pop("document_date", POSTING_DATE),
            **kwargs,
        )
        # (quantity, rate, tax_rate, grn_quantity)
        for line_no, (qty, rate, tax, grn) in enumerate(lines or [], start=1):
            PurchaseInvoiceLine.objects.create(
                invoice=invoice,
                line_no=line_no,
                quantity=Decimal(qty),
                rate=Decimal(rate),
                tax_rate=Decimal(tax),
                po_quantity=Decimal(qty),
                grn_quantity=None if grn is None else Decimal(grn),
            )
        invoice.refresh_from_db()
        return invoice

    def make_walk_in_sale(self, organization, number="WS-001", lines=None, **kwargs):
        sale = WalkInSale.objects.create(
            organization=organization,
            document_number=number,
            document_date=kwargs.pop("document_date", POSTING_DATE),
            **kwargs,
        )
        for line_no, (qty, rate, tax) in enumerate(lines or [], start=1):
            WalkInSaleLine.objects.create(
                sale=sale,
                line_no=line_no,
                quantity=Decimal(qty),
                rate=Decimal(rate),
                tax_rate=Decimal(tax),
            )
        sale.refresh_from_db()
        return sale
