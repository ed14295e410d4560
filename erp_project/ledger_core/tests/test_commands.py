from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from ..models import Account, Organization, SalesInvoice
from ..services.accounts import DEFAULT_CHART


@pytest.mark.django_db
def test_seed_chart_of_accounts_command():
    organization = Organization.objects.create(name="Seeded", slug="seeded")
    out = StringIO()
    call_command("seed_chart_of_accounts", "seeded", stdout=out)
    assert f"Created {len(DEFAULT_CHART)} accounts" in out.getvalue()
    assert Account.objects.for_organization(organization).count() == len(DEFAULT_CHART)


@pytest.mark.django_db
def test_seed_chart_of_accounts_unknown_slug():
    with pytest.raises(CommandError):
        call_command("seed_chart_of_accounts", "nope")


@pytest.mark.django_db
def test_create_demo_tenant_posts_an_invoice():
    call_command("create_demo_tenant", organization_name="Demo Co", stdout=StringIO())
    organization = Organization.objects.get(name="Demo Co")
    invoice = SalesInvoice.objects.for_organization(organization).get()
    assert invoice.is_posted
    assert invoice.voucher.total_debit == invoice.total_amount
