from django.core.management.base import BaseCommand, CommandError

from ledger_core.models import Organization
from ledger_core.services import (check_trial_balance_invariant,
                                  reconcile_account_balances)
from ledger_core.tasks import reconcile_organization_balances


class Command(BaseCommand):
    help = (
        "Compare cached account balances with the ledger "
        "and optionally rewrite the ones that drifted."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--organization",
            help="Slug of a single organization (default: all).",
        )
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Rewrite drifted balances instead of only reporting them.",
        )
        parser.add_argument(
            "--async",
            dest="run_async",
            action="store_true",
            help="Queue one Celery task per organization instead of running inline.",
        )

    def handle(self, *args, **options):
        organizations = Organization.objects.order_by("pk")
        if options["organization"]:
            organizations = organizations.filter(slug=options["organization"])
            if not organizations.exists():
                raise CommandError(
                    f"Organization {options['organization']!r} not found"
                )

        for organization in organizations:
            if options["run_async"]:
                reconcile_organization_balances.delay(
                    organization.pk, repair=options["repair"]
                )
                self.stdout.write(f"Queued reconciliation for {organization}")
                continue

            drift = reconcile_account_balances(organization, repair=options["repair"])
            for row in drift:
                self.stdout.write(
                    self.style.WARNING(
                        f"{organization.slug} {row['code']}: cached {row['cached']}, "
                        f"ledger {row['expected']}"
                    )
                )

            check = check_trial_balance_invariant(organization)
            if not check.is_balanced:
                self.stdout.write(
                    self.style.ERROR(
                        f"{organization.slug}: debits {check.total_debit} != "
                        f"credits {check.total_credit}"
                    )
                )

            verb = "repaired" if options["repair"] else "found"
            self.stdout.write(
                self.style.SUCCESS(f"{organization.slug}: {len(drift)} drifted accounts {verb}")
            )
