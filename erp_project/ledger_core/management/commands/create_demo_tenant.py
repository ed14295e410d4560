import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify

from ledger_core.models import (Customer, Organization, OrganizationMembership,
                                SalesInvoice, SalesInvoiceLine)
from ledger_core.services import post_sales_invoice, seed_chart_of_accounts

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo organization with a user, the default chart of accounts "
        "and one posted sales invoice."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--organization-name",
            default="Demo Organization",
            help="Name of the demo organization to create.",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )

    def _unique_slug(self, name, max_tries=100):
        # "Demo Org" → "demo-org" → "demo-org-1" → ...
        base = slugify(name) or "organization"
        slug = base
        for i in range(1, max_tries + 1):
            if not Organization.objects.filter(slug=slug).exists():
                return slug
            slug = f"{base}-{i}"
        raise RuntimeError("Couldn't generate unique slug")

    @transaction.atomic
    def handle(self, *args, **options):
        name = options["organization_name"]
        username = options["username"]
        password = options["password"]

        # 1. Organization + chart of accounts
        organization, created = Organization.objects.get_or_create(
            name=name, defaults={"slug": self._unique_slug(name)}
        )
        seeded = seed_chart_of_accounts(organization)
        self.stdout.write(
            self.style.SUCCESS(f"Organization: {organization} ({seeded} accounts created)")
        )

        # 2. User with an owner membership
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com"},
        )
        if created:
            user.set_password(password)
            user.save()
        OrganizationMembership.objects.get_or_create(
            user=user, organization=organization, defaults={"role": "owner"}
        )
        user.default_organization = organization
        user.save(update_fields=["default_organization"])
        self.stdout.write(self.style.SUCCESS(f"User: {user.username} (pw={password})"))

        # 3. Customer and an invoice: 10 x 100 at 18% tax
        customer, _ = Customer.objects.get_or_create(
            organization=organization, name="Walk-up Traders"
        )
        number = f"INV-{datetime.date.today():%Y}-{SalesInvoice.objects.filter(organization=organization).count() + 1:04d}"
        invoice = SalesInvoice.objects.create(
            organization=organization,
            customer=customer,
            document_number=number,
            document_date=datetime.date.today(),
            created_by=user,
        )
        SalesInvoiceLine.objects.create(
            invoice=invoice,
            description="Consulting hours",
            quantity=Decimal("10"),
            rate=Decimal("100.00"),
            tax_rate=Decimal("18"),
        )

        # 4. Post it
        voucher = post_sales_invoice(organization, invoice.pk, user=user)
        self.stdout.write(
            self.style.SUCCESS(
                f"Posted {invoice.document_number} as {voucher.voucher_number} "
                f"(total {voucher.total_debit})"
            )
        )
