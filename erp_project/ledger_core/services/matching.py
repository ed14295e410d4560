import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from ..conf import ledger_setting
from ..exceptions import InvalidState, NotFound
from ..models import PurchaseInvoice
from .audit_helper import log_action

logger = logging.getLogger(__name__)


def verify_three_way_match(invoice, tolerance=None):
    """
    Compare invoice quantities with goods received, line by line.
    Updates the lines and invoice.matching_status / quantity_variance
    (saved by the caller) and returns the matching status.
    """
    if tolerance is None:
        tolerance = ledger_setting("MATCH_QUANTITY_TOLERANCE")

    total_variance = Decimal("0")
    all_matched = True
    for line in invoice.lines.all():
        # nothing received counts as a full variance
        received = line.grn_quantity if line.grn_quantity is not None else Decimal("0")
        variance = abs(line.quantity - received)
        line.quantity_variance = variance
        line.is_matched = line.grn_quantity is not None and variance <= tolerance
        line.save(update_fields=["quantity_variance", "is_matched"])

        total_variance += variance
        all_matched = all_matched and line.is_matched

    invoice.quantity_variance = total_variance
    invoice.matching_status = "matched" if all_matched else "mismatched"
    return invoice.matching_status


def _lock_purchase_invoice(organization, invoice_id):
    try:
        return PurchaseInvoice.objects.select_for_update().get(
            pk=invoice_id, organization=organization, is_deleted=False
        )
    except PurchaseInvoice.DoesNotExist:
        raise NotFound(f"Purchase invoice {invoice_id} not found.") from None


@transaction.atomic
def verify_purchase_invoice(organization, invoice_id, user=None):
    """draft → verified, running the 3-way match"""
    invoice = _lock_purchase_invoice(organization, invoice_id)
    if invoice.status != "draft":
        raise InvalidState(
            f"Only draft invoices can be verified; {invoice.document_number} is {invoice.status}."
        )

    status = verify_three_way_match(invoice)
    invoice.verified_at = timezone.now()
    invoice.verified_by = user
    invoice.transition_to("verified")

    log_action(
        action="verify",
        instance=invoice,
        user=user,
        changes={
            "matching_status": status,
            "quantity_variance": str(invoice.quantity_variance),
        },
    )
    logger.info(
        "Purchase invoice verified",
        extra={
            "organization": organization.pk,
            "document": invoice.document_number,
            "matching_status": status,
        },
    )
    return invoice


@transaction.atomic
def approve_purchase_invoice(organization, invoice_id, user=None, accept_variance=False):
    """verified → approved; a quantity mismatch must be accepted explicitly"""
    invoice = _lock_purchase_invoice(organization, invoice_id)
    if invoice.status != "verified":
        raise InvalidState(
            f"Only verified invoices can be approved; {invoice.document_number} is {invoice.status}."
        )
    if invoice.matching_status == "mismatched":
        if not accept_variance:
            raise InvalidState(
                f"{invoice.document_number} has a quantity variance of "
                f"{invoice.quantity_variance}; approve with accept_variance to continue."
            )
        invoice.matching_status = "approved"

    invoice.approved_at = timezone.now()
    invoice.approved_by = user
    invoice.transition_to("approved")

    log_action(
        action="approve",
        instance=invoice,
        user=user,
        changes={
            "matching_status": invoice.matching_status,
            "accept_variance": accept_variance,
        },
    )
    return invoice
