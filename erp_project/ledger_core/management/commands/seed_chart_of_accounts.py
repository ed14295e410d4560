from django.core.management.base import BaseCommand, CommandError

from ledger_core.models import Organization
from ledger_core.services import seed_chart_of_accounts


class Command(BaseCommand):
    help = "Create the default chart of accounts for an organization."

    def add_arguments(self, parser):
        parser.add_argument("organization", help="Slug of the organization.")

    def handle(self, *args, **options):
        try:
            organization = Organization.objects.get(slug=options["organization"])
        except Organization.DoesNotExist:
            raise CommandError(f"Organization {options['organization']!r} not found")

        created = seed_chart_of_accounts(organization)
        self.stdout.write(
            self.style.SUCCESS(f"Created {created} accounts for {organization}")
        )
