from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone

from .models import Event


def _ticket_type_payload(tt):
    return {
        "code": tt.code,
        "name": tt.name,
        "description": tt.description,
        "price": str(tt.price),
        "remaining": tt.remaining,
    }


def event_list(request):
    """Upcoming active events, soonest first."""
    qs = (Event.objects
          .filter(is_active=True, starts_at__gte=timezone.now())
          .order_by('starts_at', 'id'))
    events = [
        {
            "slug": e.slug,
            "title": e.title,
            "startsAt": e.starts_at.isoformat(),
            "location": e.location,
            "availableTickets": e.available_tickets,
        }
        for e in qs
    ]
    return JsonResponse({"events": events})


def event_detail(request, slug: str):
    event = get_object_or_404(Event, slug=slug, is_active=True)
    ticket_types = event.ticket_types.filter(is_active=True)
    return JsonResponse({
        "event": {
            "slug": event.slug,
            "title": event.title,
            "description": event.description,
            "startsAt": event.starts_at.isoformat(),
            "endsAt": event.ends_at.isoformat() if event.ends_at else None,
            "location": event.location,
            "isBuyable": event.is_buyable,
        },
        "ticketTypes": [_ticket_type_payload(tt) for tt in ticket_types],
    })
