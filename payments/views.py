import json
import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.http import HttpResponseRedirect, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from config.utils import read_json
from panels.models import Panel
from tickets.models import Purchase
from .exceptions import InvalidSignature, PaymentError, ProviderConfigMissing, UnknownProvider
from .models import Provider, WebhookEvent
from .providers import get_client
from .reconciliation import Outcome, reconcile
from .services import initiate_panel_payment, initiate_purchase_payment

logger = logging.getLogger('payments')

# Paystack events that change a payment; the rest are only acknowledged
PAYSTACK_EVENTS = ('charge.success', 'charge.failed', 'refund.processed')


def _error(exc: PaymentError):
    body = {"success": False, "error": str(exc)}
    if exc.reference:
        body["reference"] = exc.reference
    return JsonResponse(body, status=exc.status_code)


def _provider(method) -> str:
    method = (method or '').lower().strip()
    if method not in Provider.values:
        raise UnknownProvider(f"Unsupported payment method {method or '(empty)'}")
    return method


def _checkout_payload(payment):
    return {
        "reference": payment.reference,
        "provider": payment.provider,
        "checkoutUrl": payment.checkout_url,
        "accessCode": payment.external_id,
        "amount": float(payment.amount),
        "currency": payment.currency,
        "status": payment.status,
    }


@csrf_exempt
@require_POST
def purchase_initiate(request):
    data = read_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    purchase_id = str(data.get('purchaseId') or '')
    purchase = Purchase.objects.filter(pk=purchase_id).first() if purchase_id.isdigit() else None
    if purchase is None:
        return JsonResponse({"success": False, "error": "Purchase not found"}, status=404)

    try:
        payment = initiate_purchase_payment(purchase, _provider(data.get('method')), data.get('callbackUrl'))
    except PaymentError as e:
        logger.error("Purchase %s initiation failed: %s", purchase.pk, e)
        return _error(e)
    return JsonResponse({"success": True, "data": _checkout_payload(payment)}, status=201)


@csrf_exempt
@login_required
@require_POST
def panel_initiate(request):
    data = read_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    panel_id = str(data.get('panelId') or '')
    panel = Panel.objects.filter(pk=panel_id, user=request.user).first() if panel_id.isdigit() else None
    if panel is None:
        return JsonResponse({"success": False, "error": "Panel not found"}, status=404)

    try:
        payment = initiate_panel_payment(panel, data.get('plan') or 'monthly',
                                         _provider(data.get('method')), data.get('callbackUrl'))
    except PaymentError as e:
        logger.error("Panel %s initiation failed: %s", panel.pk, e)
        return _error(e)
    return JsonResponse({"success": True, "data": _checkout_payload(payment)}, status=201)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def verify(request):
    """
    POST: the frontend asks to confirm a reference, answered with JSON.
    GET: the provider sends the payer back here; answered with a redirect.
    """
    if request.method == 'GET':
        reference = request.GET.get('reference') or request.GET.get('trxref') or ''
        try:
            result = reconcile(reference, provider=request.GET.get('method'), source='callback')
            ok = result.succeeded
        except PaymentError as e:
            logger.error("Callback verification of %s failed: %s", reference, e)
            ok = False
        query = urlencode({'payment': 'success' if ok else 'failed', 'reference': reference})
        return HttpResponseRedirect(f"{settings.SITE_URL.rstrip('/')}/?{query}")

    data = read_json(request)
    if data is None:
        return JsonResponse({"success": False, "error": "Invalid JSON body"}, status=400)

    try:
        result = reconcile(
            data.get('reference') or '',
            provider=data.get('method'),
            access_code=data.get('accessCode'),
            project_id=data.get('projectId'),
        )
    except PaymentError as e:
        logger.error("Verification of %s failed: %s", data.get('reference'), e)
        return _error(e)

    body = {
        "success": result.succeeded,
        "outcome": result.outcome,
        "data": {
            **result.verification.as_dict(),
            "paymentStatus": result.status,
        },
    }
    if result.outcome == Outcome.NOT_FOUND:
        body["error"] = "Payment not found"
    elif result.outcome == Outcome.AMOUNT_MISMATCH:
        body["error"] = "Amount mismatch"
        return JsonResponse(body, status=400)
    return JsonResponse(body)


def _webhook_subject(provider, payload):
    """Returns (event name, reference, access code) of a delivery."""
    if provider == Provider.PAYSTACK:
        data = payload.get('data') if isinstance(payload.get('data'), dict) else {}
        return payload.get('event') or '', data.get('reference') or '', None
    data = payload.get('data') if isinstance(payload.get('data'), dict) else payload
    return (payload.get('event') or 'transaction', data.get('reference') or '',
            data.get('accessCode') or data.get('access_code'))


def _webhook(request, provider):
    if request.method == 'GET':
        return JsonResponse({"message": f"{Provider(provider).label} webhook endpoint is active"})

    raw = request.body
    client = get_client(provider)
    record = WebhookEvent(provider=provider)
    access_code = None

    try:
        payload = json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError):
        payload = None
    if isinstance(payload, dict):
        event, reference, access_code = _webhook_subject(provider, payload)
        record.event, record.reference = str(event)[:64], str(reference)[:64]
        record.payload = payload

    try:
        record.signature_valid = client.verify_signature(raw, request.META.get(client.signature_header, ''))
    except ProviderConfigMissing as e:
        record.outcome = 'config_missing'
        record.save()
        logger.error("%s webhook received but no secret is configured", provider)
        return _error(e)

    if not record.signature_valid:
        record.outcome = 'invalid_signature'
        record.save()
        logger.warning("%s webhook with bad signature (ref=%s)", provider, record.reference or '?')
        return _error(InvalidSignature(reference=record.reference))

    if not isinstance(payload, dict):
        record.outcome = 'malformed'
        record.save()
        return JsonResponse({"error": "Malformed payload"}, status=400)

    if provider == Provider.PAYSTACK and record.event not in PAYSTACK_EVENTS:
        record.outcome = 'ignored_event'
        record.save()
        logger.info("Paystack event %s acknowledged (ref=%s)", record.event, record.reference or '?')
        return JsonResponse({"received": True, "message": f"Event {record.event} ignored"})

    if not record.reference:
        record.outcome = 'malformed'
        record.save()
        return JsonResponse({"error": "Missing reference"}, status=400)

    try:
        result = reconcile(record.reference, provider=provider, access_code=access_code,
                           source='webhook', webhook_payload=payload)
    except PaymentError as e:
        record.outcome = type(e).__name__
        record.save()
        logger.error("%s webhook for %s failed: %s", provider, record.reference, e)
        return _error(e)
    except Exception:
        record.outcome = 'error'
        record.save()
        logger.exception("%s webhook for %s crashed", provider, record.reference)
        return JsonResponse({"error": "Webhook processing failed"}, status=500)

    record.outcome = result.outcome
    record.save()
    if not result.acknowledged:
        return JsonResponse({"received": False, "outcome": result.outcome, "reference": result.reference},
                            status=400)
    return JsonResponse({"received": True, "outcome": result.outcome, "status": result.status})


@csrf_exempt
@require_http_methods(["GET", "POST"])
def paystack_webhook(request):
    return _webhook(request, Provider.PAYSTACK)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def etegram_webhook(request):
    return _webhook(request, Provider.ETEGRAM)
