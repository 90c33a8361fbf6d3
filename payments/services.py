import logging
import string
import time
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.urls import reverse
from django.utils.crypto import get_random_string

from panels.services import plan_amount, plan_kind
from .exceptions import ValidationError
from .models import Payment, PaymentReference, PaymentStatus, Provider, TRANSITIONABLE_STATUSES
from .providers import get_client

logger = logging.getLogger('payments')

PURCHASE_PREFIXES = {Provider.PAYSTACK: 'PSK', Provider.ETEGRAM: 'ETG'}
PANEL_PREFIXES = {Provider.PAYSTACK: 'PSTK', Provider.ETEGRAM: 'ETG'}


def _millis():
    return int(time.time() * 1000)


def generate_reference(provider: str, plan: Optional[str] = None) -> str:
    """
    PSK-1712345678901-K3J9QF2A for ticket purchases,
    PSTK-MONTHLY-1712345678901-x8c2k1pz for panel plans.
    """
    if plan:
        rand = get_random_string(8, allowed_chars=string.ascii_lowercase + string.digits)
        return f"{PANEL_PREFIXES[provider]}-{plan.upper()}-{_millis()}-{rand}"
    rand = get_random_string(8, allowed_chars=string.ascii_uppercase + string.digits)
    return f"{PURCHASE_PREFIXES[provider]}-{_millis()}-{rand}"


def default_callback_url():
    return settings.SITE_URL.rstrip('/') + reverse('payments:verify')


def _retire_reference(payment):
    """Keeps the reference of an earlier checkout resolvable once a new one is opened."""
    if payment.pk is None:
        return
    PaymentReference.objects.create(payment=payment, reference=payment.reference,
                                    provider=payment.provider, external_id=payment.external_id)
    logger.info("Payment %s re-initiated, previous checkout kept", payment.reference)
    payment.external_id = ''
    payment.checkout_url = ''


def _checkout(client, payment, email, callback_url, metadata):
    result = client.initialize(
        email=email,
        amount=payment.amount,
        reference=payment.reference,
        callback_url=callback_url or default_callback_url(),
        metadata=metadata,
    )
    payment.checkout_url = result.get('checkout_url', '')
    payment.external_id = result.get('access_code', '')
    payment.save(update_fields=['checkout_url', 'external_id', 'updated_at'])
    logger.info("Payment %s initialized with %s for %s %s",
                payment.reference, payment.provider, payment.amount, payment.currency)
    return payment


def initiate_purchase_payment(purchase, provider: str, callback_url: Optional[str] = None) -> Payment:
    """
    Opens (or re-opens) the PENDING payment of a ticket purchase and returns
    it with the provider checkout url filled in.
    """
    client = get_client(provider)
    client.ensure_configured()

    if purchase.total_amount <= 0:
        raise ValidationError("Purchase total must be positive")

    with transaction.atomic():
        payment = Payment.objects.select_for_update().filter(purchase=purchase).first()
        if payment is not None and payment.status not in TRANSITIONABLE_STATUSES:
            raise ValidationError(f"Purchase is already {payment.get_status_display().lower()}",
                                  reference=payment.reference)
        if payment is None:
            payment = Payment(purchase=purchase, kind=Payment.Kind.TICKET_PURCHASE)
        _retire_reference(payment)
        payment.reference = generate_reference(provider)
        payment.provider = provider
        payment.status = PaymentStatus.PENDING
        payment.amount = purchase.total_amount
        payment.currency = settings.PAYMENT_CURRENCY
        payment.save()

    metadata = {
        'purchaseId': purchase.pk,
        'attendeeName': purchase.attendee_name,
        'tickets': [
            {'ticketType': item.ticket_type.code, 'quantity': item.quantity, 'price': float(item.unit_price)}
            for item in purchase.items.select_related('ticket_type')
        ],
    }
    return _checkout(client, payment, purchase.attendee_email, callback_url, metadata)


def initiate_panel_payment(panel, plan: str, provider: str, callback_url: Optional[str] = None) -> Payment:
    """
    Reuses the panel's PENDING/FAILED payment under a fresh reference, or
    creates one, and marks the panel as awaiting payment.
    """
    client = get_client(provider)
    client.ensure_configured()

    kind = plan_kind(plan)
    plan = 'annual' if kind == Payment.Kind.ANNUAL_SUBSCRIPTION else 'monthly'

    with transaction.atomic():
        payment = (Payment.objects.select_for_update()
                   .filter(panel=panel, status__in=TRANSITIONABLE_STATUSES)
                   .order_by('-created_at')
                   .first())
        if payment is None:
            payment = Payment(panel=panel)
        _retire_reference(payment)
        payment.reference = generate_reference(provider, plan)
        payment.provider = provider
        payment.status = PaymentStatus.PENDING
        payment.kind = kind
        payment.amount = plan_amount(plan)
        payment.currency = settings.PAYMENT_CURRENCY
        payment.user = panel.user
        payment.save()

        panel.payment_status = PaymentStatus.PENDING
        panel.save(update_fields=['payment_status', 'updated_at'])

    metadata = {'panelId': panel.pk, 'plan': plan, 'subdomain': panel.subdomain}
    return _checkout(client, payment, panel.owner_email or panel.user.email, callback_url, metadata)
