"""
Brings a local Payment in line with what the provider reports.

Both the browser return path and the webhooks end up in reconcile(): the
provider is always re-asked server-side, and the state change plus its
effects (issued tickets, panel activation) happen in one transaction guarded
so that they run at most once per payment.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from panels.models import Panel
from panels.services import send_panel_emails
from tickets.services import issue_tickets, send_tickets_email
from .exceptions import ValidationError
from .models import Payment, PaymentReference, PaymentStatus, TRANSITIONABLE_STATUSES, Provider
from .providers import ProviderVerification, get_client, resolve_provider

logger = logging.getLogger('payments')


# provider vocabulary -> local status; anything missing here is ignored
STATUS_MAP = {
    'successful': PaymentStatus.COMPLETED,
    'success': PaymentStatus.COMPLETED,
    'paid': PaymentStatus.COMPLETED,
    'completed': PaymentStatus.COMPLETED,
    'pending': PaymentStatus.PENDING,
    'initiated': PaymentStatus.PENDING,
    'processing': PaymentStatus.PENDING,
    'ongoing': PaymentStatus.PENDING,
    'abandoned': PaymentStatus.PENDING,
    'failed': PaymentStatus.FAILED,
    'cancelled': PaymentStatus.CANCELLED,
    'canceled': PaymentStatus.CANCELLED,
    'reversed': PaymentStatus.REFUNDED,
    'refunded': PaymentStatus.REFUNDED,
}


def map_status(provider_status) -> Optional[str]:
    if not provider_status:
        return None
    return STATUS_MAP.get(str(provider_status).strip().lower())


class Outcome:
    COMPLETED = 'completed'
    UPDATED = 'updated'
    ALREADY_PROCESSED = 'already_processed'
    NOT_FOUND = 'not_found'
    IGNORED = 'ignored'
    AMOUNT_MISMATCH = 'amount_mismatch'


@dataclass
class ReconciliationResult:
    outcome: str
    reference: str
    status: Optional[str] = None  # local payment status after reconciling
    payment: Optional[Payment] = None
    verification: Optional[ProviderVerification] = None
    tickets_issued: int = 0

    @property
    def acknowledged(self) -> bool:
        """Whether a webhook sender should consider the delivery handled."""
        return self.outcome != Outcome.AMOUNT_MISMATCH

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.COMPLETED


def amount_matches(expected: Decimal, reported: Optional[Decimal]) -> bool:
    if reported is None:
        return False
    tolerance = Decimal(str(settings.PAYMENT_AMOUNT_TOLERANCE))
    return abs(Decimal(reported) - Decimal(expected)) <= tolerance


def _paid_at(verification: ProviderVerification):
    if verification.paid_at:
        try:
            parsed = parse_datetime(str(verification.paid_at))
        except ValueError:
            parsed = None
        if parsed is not None:
            if timezone.is_naive(parsed):
                parsed = timezone.make_aware(parsed)
            return parsed
    return timezone.now()


def _merged_metadata(metadata, provider, payload, source, reference):
    metadata = dict(metadata or {})
    history = dict(metadata.get(provider) or {})
    now = timezone.now().isoformat()
    history['lastReference'] = reference
    history['lastPayload'] = payload
    history['lastVerifiedAt'] = now
    if source == 'webhook':
        history['lastWebhookAt'] = now
    metadata[provider] = history
    return metadata


def find_payment(reference):
    """
    Returns (payment, access code, superseded) for `reference`. A reference
    replaced by a later checkout of the same payment still resolves to it.
    """
    payment = Payment.objects.filter(reference=reference).first()
    if payment is not None:
        return payment, payment.external_id, False
    previous = PaymentReference.objects.select_related('payment').filter(reference=reference).first()
    if previous is not None:
        return previous.payment, previous.external_id, True
    return None, '', False


def _flag_amount_mismatch(payment, verification, provider):
    with transaction.atomic():
        row = (Payment.objects.select_for_update()
               .filter(pk=payment.pk)
               .exclude(status=PaymentStatus.COMPLETED)
               .first())
        if row is None:
            return
        metadata = dict(row.metadata or {})
        metadata['amountMismatch'] = {
            'provider': provider,
            'expected': str(row.amount),
            'reported': str(verification.amount) if verification.amount is not None else None,
            'providerStatus': verification.status,
            'flaggedAt': timezone.now().isoformat(),
            'needsReview': True,
        }
        row.metadata = metadata
        row.save(update_fields=['metadata', 'updated_at'])


def reconcile(reference: str, provider: Optional[str] = None, access_code: Optional[str] = None,
              project_id: Optional[str] = None, source: str = 'verify',
              webhook_payload: Optional[dict] = None) -> ReconciliationResult:
    """
    Verifies `reference` with its provider and applies the outcome.

    Raises UnknownProvider, ProviderConfigMissing and ProviderUnreachable
    before anything local is touched. Expected outcomes come back as a
    ReconciliationResult.
    """
    reference = (reference or '').strip()
    if not reference:
        raise ValidationError("Payment reference is required")

    provider = resolve_provider(reference, provider)
    payment, stored_access_code, superseded = find_payment(reference)
    if provider == Provider.ETEGRAM and not access_code:
        # initiation stores the access code handed out by the checkout
        access_code = stored_access_code or None

    verification = get_client(provider).verify(reference, access_code=access_code, project_id=project_id)

    if payment is None:
        logger.warning("Reconcile %s (%s): no local payment", reference, source)
        return ReconciliationResult(Outcome.NOT_FOUND, reference, verification=verification)

    if payment.status == PaymentStatus.COMPLETED:
        logger.info("Reconcile %s (%s): already completed", reference, source)
        return ReconciliationResult(Outcome.ALREADY_PROCESSED, reference, payment.status, payment, verification)

    new_status = map_status(verification.status)
    if new_status is None or new_status == PaymentStatus.PENDING:
        logger.info("Reconcile %s (%s): provider status %r left as is",
                    reference, source, verification.status)
        return ReconciliationResult(Outcome.IGNORED, reference, payment.status, payment, verification)

    if superseded and new_status != PaymentStatus.COMPLETED:
        # only a success of an earlier checkout settles the payment; its failures are stale
        logger.info("Reconcile %s (%s): superseded by %s, provider status %r left as is",
                    reference, source, payment.reference, verification.status)
        return ReconciliationResult(Outcome.IGNORED, reference, payment.status, payment, verification)

    if new_status == PaymentStatus.COMPLETED and not amount_matches(payment.amount, verification.amount):
        logger.error("Reconcile %s (%s): amount mismatch, expected %s got %s",
                     reference, source, payment.amount, verification.amount)
        _flag_amount_mismatch(payment, verification, provider)
        payment.refresh_from_db()
        return ReconciliationResult(Outcome.AMOUNT_MISMATCH, reference, payment.status, payment, verification)

    payload = webhook_payload if webhook_payload is not None else verification.raw
    issued = 0
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        now = timezone.now()
        changes = {'status': new_status, 'updated_at': now}
        if new_status == PaymentStatus.COMPLETED:
            changes['paid_at'] = _paid_at(verification)
            changes['completed_at'] = now
        if verification.channel:
            changes['channel'] = str(verification.channel)[:50]

        updated = (Payment.objects
                   .filter(pk=payment.pk, status__in=TRANSITIONABLE_STATUSES)
                   .update(**changes))
        if not updated:
            logger.info("Reconcile %s (%s): lost the race, status is %s", reference, source, payment.status)
            return ReconciliationResult(Outcome.ALREADY_PROCESSED, reference, payment.status, payment, verification)

        payment.refresh_from_db()

        if payment.purchase_id and new_status == PaymentStatus.COMPLETED:
            issued = len(issue_tickets(payment.purchase))

        if payment.panel_id:
            panel_changes = {'payment_status': new_status, 'updated_at': now}
            if new_status == PaymentStatus.COMPLETED:
                panel_changes['setup_paid'] = True
            Panel.objects.filter(pk=payment.panel_id).update(**panel_changes)

        payment.metadata = _merged_metadata(payment.metadata, provider, payload, source, reference)
        payment.save(update_fields=['metadata', 'updated_at'])

        if new_status == PaymentStatus.COMPLETED:
            if payment.purchase_id:
                transaction.on_commit(partial(send_tickets_email, payment.purchase_id))
            elif payment.panel_id:
                transaction.on_commit(partial(send_panel_emails, payment.pk))

    logger.info("Reconcile %s (%s): %s, tickets issued %s", reference, source, new_status, issued)
    outcome = Outcome.COMPLETED if new_status == PaymentStatus.COMPLETED else Outcome.UPDATED
    return ReconciliationResult(outcome, reference, new_status, payment, verification, issued)
