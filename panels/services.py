import logging
from decimal import Decimal

import dns.exception
import dns.resolver
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.mail import EmailMultiAlternatives
from django.db import IntegrityError, transaction
from django.template.loader import render_to_string

from payments.models import Payment, PaymentStatus
from .forms import DOMAIN_RE, SUBDOMAIN_RE, PanelForm
from .models import Panel, PanelDomain

logger = logging.getLogger('mail')

PLANS = ('monthly', 'annual')


class DuplicateSubdomain(Exception):
    pass


def plan_kind(plan: str) -> str:
    plan = (plan or '').lower()
    if plan == 'annual':
        return Payment.Kind.ANNUAL_SUBSCRIPTION
    return Payment.Kind.MONTHLY_SUBSCRIPTION


def plan_amount(plan: str) -> Decimal:
    """Setup fee plus the plan fee; anything but 'annual' is billed monthly."""
    if plan_kind(plan) == Payment.Kind.ANNUAL_SUBSCRIPTION:
        fee = settings.PANEL_ANNUAL_FEE
    else:
        fee = settings.PANEL_MONTHLY_FEE
    return Decimal(settings.PANEL_SETUP_FEE + fee)


@transaction.atomic
def create_panel(user, data: dict) -> Panel:
    form = PanelForm(data)
    if not form.is_valid():
        raise ValidationError({field: list(errs) for field, errs in form.errors.items()})

    subdomain = form.cleaned_data['subdomain']
    if Panel.objects.filter(subdomain=subdomain).exists():
        raise DuplicateSubdomain(subdomain)

    panel = form.save(commit=False)
    panel.user = user
    try:
        with transaction.atomic():
            panel.save()
    except IntegrityError:
        raise DuplicateSubdomain(subdomain)

    if panel.custom_domain:
        PanelDomain.objects.create(panel=panel, domain=panel.custom_domain)
    return panel


def check_subdomain(subdomain: str) -> tuple:
    """Returns (valid, message). Only paid panels hold on to their subdomain."""
    if not SUBDOMAIN_RE.match(subdomain):
        return False, "Subdomain can only contain lowercase letters, numbers, and hyphens"
    if len(subdomain) < 3:
        return False, "Subdomain must be at least 3 characters long"
    if len(subdomain) > 63:
        return False, "Subdomain must be less than 63 characters"
    if Panel.objects.filter(subdomain=subdomain, payment_status=PaymentStatus.COMPLETED).exists():
        return False, "This subdomain is already taken"
    return True, "Subdomain is available"


def lookup_dns(domain: str) -> str:
    """Returns 'A', 'CNAME' or '' when the domain has neither record."""
    resolver = dns.resolver.Resolver()
    resolver.lifetime = settings.DNS_LOOKUP_TIMEOUT
    for record_type in ('A', 'CNAME'):
        try:
            answer = resolver.resolve(domain, record_type)
        except dns.exception.DNSException:
            continue
        if len(answer):
            return record_type
    return ''


def verify_domain(domain: str) -> dict:
    """
    Raises ValidationError for a malformed domain, otherwise returns
    {'valid', 'message'} plus 'recordType' when DNS records were found.
    """
    domain = (domain or '').strip().lower()
    if not DOMAIN_RE.match(domain):
        raise ValidationError("Invalid domain format")

    taken = Panel.objects.filter(payment_status=PaymentStatus.COMPLETED, custom_domain=domain).exists() \
        or PanelDomain.objects.filter(domain=domain, panel__payment_status=PaymentStatus.COMPLETED).exists()
    if taken:
        return {'valid': False, 'message': "This domain is already in use by another panel"}

    record_type = lookup_dns(domain)
    if not record_type:
        return {'valid': True, 'message': "Domain is a valid format but has no DNS records"}
    return {
        'valid': True,
        'message': f"Domain is valid and already in use. ({record_type} record found)",
        'recordType': record_type,
    }


def _send(subject, template, ctx, to, reply_to=None):
    msg = EmailMultiAlternatives(
        subject=subject,
        body=render_to_string(f'email/{template}.txt', ctx),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=to,
        reply_to=reply_to,
    )
    msg.attach_alternative(render_to_string(f'email/{template}.html', ctx), 'text/html')
    return msg.send(fail_silently=False)


def send_panel_emails(payment_id: int) -> None:
    """
    Confirms a paid panel to its owner and notifies the admins.
    Errors are logged and never propagated.
    """
    payment = Payment.objects.select_related('panel', 'panel__user').filter(pk=payment_id).first()
    if payment is None or payment.panel is None:
        logger.error("panel payment %s does not exist", payment_id)
        return

    panel = payment.panel
    ctx = {
        'panel': panel,
        'payment': payment,
        'site_name': settings.SITE_NAME,
        'site_url': settings.SITE_URL,
    }

    try:
        _send(f"{settings.SITE_NAME}: your panel {panel.hostname} is ready",
              'panel_paid', ctx, [panel.owner_email])
        logger.info("Panel email sent: payment=%s to=%s", payment.reference, panel.owner_email)
    except Exception as e:
        logger.exception("Panel email FAILED: payment=%s to=%s: %s", payment.reference, panel.owner_email, e)

    if not settings.ADMIN_NOTIFY_EMAILS:
        return
    try:
        _send(f"[{settings.SITE_NAME}] New panel paid: {panel.subdomain}",
              'panel_paid_admin', ctx, settings.ADMIN_NOTIFY_EMAILS, reply_to=[panel.owner_email])
        logger.info("Panel admin notice sent: payment=%s", payment.reference)
    except Exception as e:
        logger.exception("Panel admin notice FAILED: payment=%s: %s", payment.reference, e)
