from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from config.utils import read_json
from .models import Panel
from .services import DuplicateSubdomain, check_subdomain, create_panel, verify_domain


def _panel_payload(panel, with_payments=False):
    payload = {
        "id": panel.id,
        "name": panel.name,
        "subdomain": panel.subdomain,
        "hostname": panel.hostname,
        "customDomain": panel.custom_domain or None,
        "ownerEmail": panel.owner_email,
        "ownerPhone": panel.owner_phone,
        "status": panel.status,
        "paymentStatus": panel.payment_status,
        "setupPaid": panel.setup_paid,
        "createdAt": panel.created_at.isoformat(),
        "domains": [
            {"id": d.id, "domain": d.domain, "verificationStatus": d.verification_status,
             "createdAt": d.created_at.isoformat()}
            for d in panel.domains.all()
        ],
    }
    if with_payments:
        payload["payments"] = [
            {"id": p.id, "amount": float(p.amount), "status": p.status, "reference": p.reference,
             "type": p.kind, "checkoutUrl": p.checkout_url, "createdAt": p.created_at.isoformat()}
            for p in panel.payments.order_by('-created_at')
        ]
    return payload


# request keys -> PanelForm fields
PANEL_FIELDS = {
    'name': 'name',
    'subdomain': 'subdomain',
    'customDomain': 'custom_domain',
    'ownerEmail': 'owner_email',
    'ownerPhone': 'owner_phone',
}


@csrf_exempt
@login_required
@require_http_methods(["GET", "POST"])
def panel_list(request):
    if request.method == 'GET':
        panels = request.user.panels.prefetch_related('domains', 'payments').order_by('-created_at')
        return JsonResponse({"panels": [_panel_payload(p, with_payments=True) for p in panels]})

    data = read_json(request)
    if data is None:
        return JsonResponse({"error": "Invalid JSON body"}, status=400)

    fields = {field: data.get(key) or '' for key, field in PANEL_FIELDS.items()}
    try:
        panel = create_panel(request.user, fields)
    except ValidationError as e:
        return JsonResponse({"error": "Invalid panel data", "fields": e.message_dict}, status=400)
    except DuplicateSubdomain:
        return JsonResponse({"error": "Subdomain already exists"}, status=409)
    return JsonResponse({"panel": _panel_payload(panel)}, status=201)


@csrf_exempt
@login_required
@require_http_methods(["GET", "DELETE"])
def panel_detail(request, pk):
    panel = get_object_or_404(Panel, pk=pk, user=request.user)
    if request.method == 'DELETE':
        panel.delete()
        return JsonResponse({"success": True})
    return JsonResponse({"panel": _panel_payload(panel, with_payments=True)})


@csrf_exempt
@require_POST
def subdomain_check(request):
    data = read_json(request)
    subdomain = (data or {}).get('subdomain')
    if not subdomain or not isinstance(subdomain, str):
        return JsonResponse({"valid": False, "message": "Subdomain is required"}, status=400)
    valid, message = check_subdomain(subdomain)
    return JsonResponse({"valid": valid, "message": message})


@csrf_exempt
@require_POST
def domain_verify(request):
    data = read_json(request)
    domain = (data or {}).get('domain')
    if not domain or not isinstance(domain, str):
        return JsonResponse({"valid": False, "message": "Domain is required"}, status=400)
    try:
        result = verify_domain(domain)
    except ValidationError as e:
        return JsonResponse({"valid": False, "message": " ".join(e.messages)}, status=400)
    return JsonResponse(result)
