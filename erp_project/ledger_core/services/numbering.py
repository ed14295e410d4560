import logging

from django.db import IntegrityError, transaction
from django.db.models import Max

from ..conf import ledger_setting
from ..exceptions import VoucherNumberConflict
from ..models import Voucher, VoucherSequence

logger = logging.getLogger(__name__)


def format_voucher_number(voucher_type, fiscal_year, sequence):
    # JV-2025-0001
    return f"{voucher_type}-{fiscal_year}-{sequence:04d}"


def _highest_sequence(organization, voucher_type, fiscal_year):
    return (
        Voucher.objects.filter(
            organization=organization,
            voucher_type=voucher_type,
            fiscal_year=fiscal_year,
        ).aggregate(top=Max("sequence"))["top"]
        or 0
    )


def next_voucher_number(organization, voucher_type, fiscal_year, resync=False):
    """
    Reserve the next (number, sequence) for the scope.

    The counter row stays locked until the caller's transaction ends,
    so concurrent posters in the same scope queue up behind it.
    """
    with transaction.atomic():
        counter, created = (
            VoucherSequence.objects.select_for_update().get_or_create(
                organization=organization,
                voucher_type=voucher_type,
                fiscal_year=fiscal_year,
                defaults={
                    # seed from vouchers numbered before the counter existed
                    "last_value": _highest_sequence(
                        organization, voucher_type, fiscal_year
                    )
                },
            )
        )
        if resync and not created:
            counter.last_value = max(
                counter.last_value,
                _highest_sequence(organization, voucher_type, fiscal_year),
            )
        counter.last_value += 1
        counter.save(update_fields=["last_value"])

    sequence = counter.last_value
    return format_voucher_number(voucher_type, fiscal_year, sequence), sequence


def save_with_number(voucher):
    """
    Number and insert `voucher`, retrying a bounded number of times
    when the unique constraint reports a collision.
    """
    attempts = ledger_setting("VOUCHER_NUMBER_MAX_ATTEMPTS")
    fiscal_year = f"{voucher.voucher_date.year:04d}"

    for attempt in range(1, attempts + 1):
        number, sequence = next_voucher_number(
            voucher.organization,
            voucher.voucher_type,
            fiscal_year,
            resync=attempt > 1,
        )
        voucher.voucher_number = number
        voucher.sequence = sequence
        try:
            # savepoint: a collision must not poison the outer transaction
            with transaction.atomic():
                voucher.save()
            return voucher
        except IntegrityError:
            voucher.pk = None
            logger.warning(
                "Voucher number collision, retrying",
                extra={
                    "organization": voucher.organization_id,
                    "voucher_number": number,
                    "attempt": attempt,
                },
            )

    raise VoucherNumberConflict(
        f"Could not allocate a {voucher.voucher_type} number for {fiscal_year} "
        f"after {attempts} attempts."
    )
