import hashlib
import hmac
import json
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.utils import timezone

from events.models import Event, TicketType
from panels.models import Panel
from payments.models import Payment, Provider
from tickets.services import create_purchase

PAYSTACK_SECRET = 'sk_test_paystack'
ETEGRAM_SECRET = 'etg_test_secret'


@pytest.fixture(autouse=True)
def payment_settings(settings):
    settings.PAYSTACK_SECRET_KEY = PAYSTACK_SECRET
    settings.PAYSTACK_BASE_URL = 'https://api.paystack.test'
    settings.ETEGRAM_SECRET_KEY = ETEGRAM_SECRET
    settings.ETEGRAM_PROJECT_ID = 'proj-1'
    settings.ETEGRAM_CHECKOUT_BASE_URL = 'https://checkout.etegram.test'
    settings.ETEGRAM_LEGACY_BASE_URL = 'https://api.etegram.test'
    settings.PAYMENT_AMOUNT_TOLERANCE = '1'
    settings.SITE_URL = 'https://tickets.example.com'
    settings.DEFAULT_FROM_EMAIL = 'noreply@example.com'
    settings.ADMIN_NOTIFY_EMAILS = ['ops@example.com']
    settings.CONTACTS_NOTIFY_EMAILS = ['contact@example.com']
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    return settings


@pytest.fixture
def event(db):
    return Event.objects.create(
        title='Tech Summit Uyo',
        starts_at=timezone.now() + timedelta(days=30),
        location='CEEDAPEG Hotels, Uyo',
    )


@pytest.fixture
def regular(event):
    return TicketType.objects.create(event=event, code='regular', name='Regular',
                                     price=Decimal('20000'), available_quantity=100)


@pytest.fixture
def vip(event):
    return TicketType.objects.create(event=event, code='vip', name='VIP',
                                     price=Decimal('50000'), available_quantity=2)


@pytest.fixture
def attendee():
    return {
        'attendee_name': 'Ada Obi',
        'attendee_email': 'ada@example.com',
        'attendee_phone': '08031234567',
        'attendee_company': 'Obi Labs',
        'attendee_job_title': 'CTO',
    }


@pytest.fixture
def purchase(event, regular, attendee):
    return create_purchase(event_slug=event.slug, attendee=attendee,
                           items=[{'ticketType': 'regular', 'quantity': 1}])


@pytest.fixture
def payment(purchase):
    return Payment.objects.create(
        reference='PSK-171234-ABC',
        provider=Provider.PAYSTACK,
        kind=Payment.Kind.TICKET_PURCHASE,
        amount=purchase.total_amount,
        purchase=purchase,
    )


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(
        username='owner@example.com', email='owner@example.com', password='S3cure-pass!',
        first_name='Tunde', last_name='Bello',
    )


@pytest.fixture
def panel(user):
    return Panel.objects.create(user=user, name='Tunde OTP', subdomain='tunde',
                                owner_email='owner@example.com', owner_phone='08031234567')


@pytest.fixture
def panel_payment(panel):
    return Payment.objects.create(
        reference='PSTK-MONTHLY-171234-abcd1234',
        provider=Provider.PAYSTACK,
        kind=Payment.Kind.MONTHLY_SUBSCRIPTION,
        amount=Decimal('20000'),
        panel=panel,
        user=panel.user,
    )


@pytest.fixture
def provider_response():
    """Builds a stand-in for a requests.Response."""
    def build(body=None, status_code=200):
        resp = MagicMock()
        resp.status_code = status_code
        if isinstance(body, Exception):
            resp.json.side_effect = body
        else:
            resp.json.return_value = body if body is not None else {}
        return resp
    return build


@pytest.fixture
def paystack_verified(provider_response):
    """Paystack verify answer; amounts are given in kobo."""
    def build(reference='PSK-171234-ABC', status='success', amount=2000000):
        return provider_response({
            'status': True,
            'message': 'Verification successful',
            'data': {
                'status': status,
                'reference': reference,
                'amount': amount,
                'paid_at': '2025-11-03T10:15:00.000Z',
                'channel': 'card',
                'metadata': {},
            },
        })
    return build


@pytest.fixture
def sign():
    def build(payload, provider=Provider.PAYSTACK):
        raw = json.dumps(payload).encode('utf-8')
        if provider == Provider.PAYSTACK:
            digest = hmac.new(PAYSTACK_SECRET.encode(), raw, hashlib.sha512).hexdigest()
        else:
            digest = hmac.new(ETEGRAM_SECRET.encode(), raw, hashlib.sha256).hexdigest()
        return raw, digest
    return build
