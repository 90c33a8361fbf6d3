import math

from django.contrib.admin.views.decorators import staff_member_required
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.http import HttpResponse, HttpResponseForbidden, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from config.utils import read_json
from .models import Ticket
from .services import create_purchase
from .utils import build_ticket_pdf

# request keys → Purchase fields
ATTENDEE_FIELDS = {
    'sessionId': 'session_id',
    'attendeeName': 'attendee_name',
    'attendeeEmail': 'attendee_email',
    'attendeePhone': 'attendee_phone',
    'attendeeCompany': 'attendee_company',
    'attendeeJobTitle': 'attendee_job_title',
}


def _validation_payload(exc: ValidationError):
    if hasattr(exc, 'error_dict'):
        return {"error": "Invalid purchase data", "fields": exc.message_dict}
    return {"error": " ".join(exc.messages)}


def _ticket_payload(t: Ticket):
    payment = getattr(t.purchase, 'payment', None)
    return {
        "ticketId": t.ticket_code,
        "ticketType": t.ticket_type.code,
        "event": t.event.slug,
        "attendeeName": t.attendee_name,
        "attendeeEmail": t.attendee_email,
        "attendeePhone": t.purchase.attendee_phone,
        "attendeeCompany": t.purchase.attendee_company,
        "attendeeJobTitle": t.purchase.attendee_job_title,
        "isUsed": t.is_used,
        "createdAt": t.created_at.isoformat(),
        "purchase": {
            "id": t.purchase_id,
            "reference": payment.reference if payment else None,
            "status": payment.status if payment else None,
            "totalAmount": str(t.purchase.total_amount),
        },
    }


@csrf_exempt
@require_POST
def purchase_create(request):
    """Stores the attendee and the ticket selection; payment is started separately."""
    data = read_json(request)
    if data is None:
        return JsonResponse({"error": "Invalid JSON body"}, status=400)

    attendee = {field: data.get(key) or '' for key, field in ATTENDEE_FIELDS.items()}
    try:
        purchase = create_purchase(
            event_slug=str(data.get('event') or ''),
            attendee=attendee,
            items=data.get('tickets'),
        )
    except ValidationError as e:
        return JsonResponse(_validation_payload(e), status=400)

    return JsonResponse({
        "purchase": {
            "id": purchase.id,
            "totalAmount": str(purchase.total_amount),
            "items": [
                {"ticketType": i.ticket_type.code, "quantity": i.quantity, "unitPrice": str(i.unit_price)}
                for i in purchase.items.select_related('ticket_type')
            ],
        }
    }, status=201)


@staff_member_required
@require_GET
def ticket_list(request):
    try:
        page = max(1, int(request.GET.get('page') or 1))
        limit = max(1, int(request.GET.get('limit') or 10))
    except ValueError:
        return JsonResponse({"error": "page and limit must be integers"}, status=400)
    search = (request.GET.get('search') or '').strip()

    qs = Ticket.objects.select_related('purchase', 'purchase__payment', 'event', 'ticket_type')
    if search:
        qs = qs.filter(
            Q(attendee_name__icontains=search)
            | Q(attendee_email__icontains=search)
            | Q(ticket_code__icontains=search)
            | Q(purchase__attendee_phone__icontains=search)
            | Q(purchase__attendee_company__icontains=search)
            | Q(purchase__attendee_job_title__icontains=search)
            | Q(ticket_type__code__icontains=search)
            | Q(ticket_type__name__icontains=search)
        )

    total = qs.count()
    offset = (page - 1) * limit
    tickets = [_ticket_payload(t) for t in qs.order_by('-created_at')[offset:offset + limit]]
    return JsonResponse({
        "tickets": tickets,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    })


@require_GET
def ticket_pdf(request, code: str):
    ticket = get_object_or_404(
        Ticket.objects.select_related('purchase', 'event', 'ticket_type'),
        ticket_code=code,
    )

    is_staff = request.user.is_authenticated and request.user.is_staff
    is_holder = (request.GET.get('email') or '').lower().strip() == ticket.attendee_email.lower()
    if not (is_staff or is_holder):
        return HttpResponseForbidden("You are not allowed to download this ticket.")

    response = HttpResponse(build_ticket_pdf(ticket), content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="ticket-{ticket.ticket_code}.pdf"'
    return response
