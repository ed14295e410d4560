import json
import logging
from functools import wraps

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .exceptions import (AlreadyPosted, ConfigurationError, InvalidState,
                         LedgerError, NotFound, ValidationFailed)
from .services import (approve_purchase_invoice, get_account_ledger,
                       get_trial_balance, post_purchase_invoice,
                       post_sales_invoice, post_voucher, post_walk_in_sale,
                       verify_purchase_invoice, void_voucher)

logger = logging.getLogger(__name__)


def _error(message, status, **extra):
    return JsonResponse({"ok": False, "error": message, **extra}, status=status)


def ledger_view(view):
    """Require an organization and turn ledger errors into JSON responses."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if getattr(request, "organization", None) is None:
            return _error("No active organization.", 403)
        try:
            return view(request, *args, **kwargs)
        except NotFound as e:
            return _error(str(e), 404)
        except (AlreadyPosted, InvalidState) as e:
            return _error(str(e), 409)
        except ValidationFailed as e:
            return _error(str(e), 422, violations=e.violations)
        except ConfigurationError as e:
            return _error(str(e), 400, code=e.code)
        except ValidationError as e:
            return _error("; ".join(e.messages), 400)
        except LedgerError as e:
            logger.exception("Unhandled ledger error")
            return _error(str(e), 500)

    return wrapper


def _payload(request):
    # JSON body first, then form data
    if request.body and request.content_type == "application/json":
        try:
            return json.loads(request.body)
        except ValueError:
            raise ValidationError("Request body is not valid JSON.")
    return request.POST


def _user(request):
    return request.user if request.user.is_authenticated else None


def _posted(document_voucher):
    return JsonResponse(
        {
            "ok": True,
            "voucher_id": document_voucher.pk,
            "voucher_number": document_voucher.voucher_number,
            "status": document_voucher.status,
        }
    )


# ---------- Document posting ----------
@csrf_exempt
@require_POST
@ledger_view
def post_sales_invoice_view(request, invoice_id):
    voucher = post_sales_invoice(request.organization, invoice_id, user=_user(request))
    return _posted(voucher)


@csrf_exempt
@require_POST
@ledger_view
def post_purchase_invoice_view(request, invoice_id):
    voucher = post_purchase_invoice(request.organization, invoice_id, user=_user(request))
    return _posted(voucher)


@csrf_exempt
@require_POST
@ledger_view
def verify_purchase_invoice_view(request, invoice_id):
    invoice = verify_purchase_invoice(request.organization, invoice_id, user=_user(request))
    return JsonResponse(
        {
            "ok": True,
            "status": invoice.status,
            "matching_status": invoice.matching_status,
            "quantity_variance": str(invoice.quantity_variance),
        }
    )


@csrf_exempt
@require_POST
@ledger_view
def approve_purchase_invoice_view(request, invoice_id):
    accept = _payload(request).get("accept_variance") in (True, "true", "1", "on")
    invoice = approve_purchase_invoice(
        request.organization, invoice_id, user=_user(request), accept_variance=accept
    )
    return JsonResponse(
        {"ok": True, "status": invoice.status, "matching_status": invoice.matching_status}
    )


@csrf_exempt
@require_POST
@ledger_view
def post_walk_in_sale_view(request, sale_id):
    voucher = post_walk_in_sale(request.organization, sale_id, user=_user(request))
    return _posted(voucher)


# ---------- Manual vouchers ----------
@csrf_exempt
@require_POST
@ledger_view
def post_voucher_view(request, voucher_id):
    voucher = post_voucher(request.organization, voucher_id, user=_user(request))
    return _posted(voucher)


@csrf_exempt
@require_POST
@ledger_view
def void_voucher_view(request, voucher_id):
    reason = _payload(request).get("reason", "")
    voucher = void_voucher(
        request.organization, voucher_id, user=_user(request), reason=reason
    )
    return _posted(voucher)


# ---------- Reports ----------
@require_GET
@ledger_view
def trial_balance_view(request):
    report = get_trial_balance(
        request.organization,
        fiscal_year=request.GET.get("fiscal_year") or None,
        fiscal_period=request.GET.get("fiscal_period") or None,
    )
    return JsonResponse(report)


@require_GET
@ledger_view
def account_ledger_view(request, account_id):
    report = get_account_ledger(
        request.organization,
        account_id,
        start_date=request.GET.get("start_date") or None,
        end_date=request.GET.get("end_date") or None,
        include_void=request.GET.get("include_void") in ("1", "true"),
    )
    return JsonResponse(report)
