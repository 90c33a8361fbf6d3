# tickets/services.py
import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.template.loader import render_to_string

from events.models import Event, TicketType
from events.signals import recompute_event_available
from .forms import AttendeeForm
from .models import Purchase, PurchaseItem, Ticket
from .utils import build_ticket_pdf

logger = logging.getLogger('mail')

MAX_TICKETS_PER_ITEM = 50


def _parse_items(event, items):
    """Validates the ticket selection and returns (ticket_type, quantity) pairs."""
    if not isinstance(items, list) or not items:
        raise ValidationError("Select at least one ticket.")

    wanted = {}
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("Malformed ticket selection.")
        code = str(raw.get('ticketType') or '').strip()
        try:
            qty = int(raw.get('quantity'))
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid quantity for ticket type '{code}'.")
        if not code or qty < 1 or qty > MAX_TICKETS_PER_ITEM:
            raise ValidationError(f"Invalid quantity for ticket type '{code}'.")
        wanted[code] = wanted.get(code, 0) + qty

    types = {tt.code: tt for tt in event.ticket_types.filter(code__in=wanted, is_active=True)}
    lines = []
    for code, qty in wanted.items():
        tt = types.get(code)
        if tt is None:
            raise ValidationError(f"Unknown ticket type '{code}'.")
        if qty > tt.remaining:
            raise ValidationError(f"Not enough '{tt.name}' tickets left (remaining {tt.remaining}).")
        lines.append((tt, qty))
    return lines


@transaction.atomic
def create_purchase(*, event_slug: str, attendee: dict, items: list) -> Purchase:
    """
    Persists a draft purchase for the selected tickets.
    The total is the plain sum of unit price × quantity of each line.
    Raises django ValidationError for malformed input.
    """
    event = Event.objects.filter(slug=event_slug, is_active=True).first()
    if event is None:
        raise ValidationError("Unknown event.")
    if event.is_past:
        raise ValidationError(f"Tickets for '{event.title}' are no longer on sale.")

    form = AttendeeForm(attendee)
    if not form.is_valid():
        raise ValidationError({field: list(errs) for field, errs in form.errors.items()})

    lines = _parse_items(event, items)

    purchase = form.save(commit=False)
    purchase.total_amount = Decimal('0.00')
    purchase.save()

    total = Decimal('0.00')
    for tt, qty in lines:
        PurchaseItem.objects.create(
            purchase=purchase,
            event=event,
            ticket_type=tt,
            quantity=qty,
            unit_price=tt.price,
        )
        total += tt.price * qty

    purchase.total_amount = total
    purchase.save(update_fields=['total_amount'])
    return purchase


def issue_tickets(purchase: Purchase) -> list:
    """
    Expands every purchase line into one Ticket row per unit.
    Must run inside the transaction that marks the payment completed.
    """
    tickets = []
    touched_events = set()
    for item in purchase.items.select_related('event'):
        tt = TicketType.objects.select_for_update().get(pk=item.ticket_type_id)
        # the money is already taken: an exhausted quota is reported, not refused
        if item.quantity > tt.remaining:
            logging.getLogger('payments').warning(
                "Ticket type %s oversold by purchase %s (remaining %s, issuing %s)",
                tt.pk, purchase.pk, tt.remaining, item.quantity)
        tt.sales_count = (tt.sales_count or 0) + item.quantity
        tt.save(update_fields=['sales_count'])
        touched_events.add(item.event)

        for _ in range(item.quantity):
            tickets.append(Ticket.objects.create(
                purchase=purchase,
                event=item.event,
                ticket_type=tt,
                ticket_code=Ticket.make_ticket_code(),
                qr_hash=Ticket.make_qr_hash(),
                attendee_name=purchase.attendee_name,
                attendee_email=purchase.attendee_email,
            ))

    for event in touched_events:
        recompute_event_available(event)
    return tickets


def _load_purchase(purchase_id):
    try:
        return (Purchase.objects
                .prefetch_related('items__ticket_type', 'items__event', 'tickets__event', 'tickets__ticket_type')
                .get(pk=purchase_id))
    except Purchase.DoesNotExist:
        logger.error("purchase %s does not exist", purchase_id)
        return None


def send_tickets_email(purchase_id: int, attach_pdfs: bool = True) -> None:
    """
    Sends the attendee their tickets (one PDF each).
    Errors are logged and never propagated.
    """
    purchase = _load_purchase(purchase_id)
    if purchase is None:
        return

    payment = getattr(purchase, 'payment', None)
    subject = f"{settings.SITE_NAME}: your tickets, {payment.reference if payment else purchase.pk}"
    ctx = {
        'purchase': purchase,
        'payment': payment,
        'site_name': settings.SITE_NAME,
        'site_url': settings.SITE_URL,
    }
    text = render_to_string('email/tickets_paid.txt', ctx)
    html = render_to_string('email/tickets_paid.html', ctx)

    msg = EmailMultiAlternatives(
        subject=subject,
        body=text,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[purchase.attendee_email],
    )
    if html:
        msg.attach_alternative(html, 'text/html')

    if attach_pdfs:
        for t in purchase.tickets.all():
            try:
                msg.attach(f"ticket-{t.ticket_code}.pdf", build_ticket_pdf(t), 'application/pdf')
            except Exception as e:
                logger.exception("PDF build failed for ticket %s (purchase %s): %s", t.ticket_code, purchase.pk, e)

    try:
        sent_count = msg.send(fail_silently=False)
        logger.info("Tickets email sent: purchase=%s to=%s result=%s",
                    purchase.pk, purchase.attendee_email, sent_count)
    except Exception as e:
        # never breaks the payment
        logger.exception("Tickets email FAILED: purchase=%s to=%s: %s",
                         purchase.pk, purchase.attendee_email, e)


def send_event_reminder(purchase_id: int) -> bool:
    """Reminds an attendee about the event; returns whether the mail went out."""
    purchase = _load_purchase(purchase_id)
    if purchase is None:
        return False

    tickets = list(purchase.tickets.all())
    if not tickets:
        return False

    ctx = {
        'purchase': purchase,
        'event': tickets[0].event,
        'ticket_count': len(tickets),
        'site_name': settings.SITE_NAME,
        'site_url': settings.SITE_URL,
    }
    msg = EmailMultiAlternatives(
        subject=f"{settings.SITE_NAME}: see you at {tickets[0].event.title}",
        body=render_to_string('email/event_reminder.txt', ctx),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[purchase.attendee_email],
    )
    msg.attach_alternative(render_to_string('email/event_reminder.html', ctx), 'text/html')
    try:
        msg.send(fail_silently=False)
    except Exception as e:
        logger.exception("Reminder email FAILED: purchase=%s to=%s: %s", purchase.pk, purchase.attendee_email, e)
        return False
    logger.info("Reminder email sent: purchase=%s to=%s", purchase.pk, purchase.attendee_email)
    return True
