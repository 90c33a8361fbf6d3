"""
Server-to-server clients for the payment providers.

Both clients authenticate with a secret held in settings and normalize the
provider's verification answer into a ProviderVerification whose amount is
expressed in major currency units.
"""
import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests
from django.conf import settings

from .exceptions import ProviderConfigMissing, ProviderUnreachable, UnknownProvider
from .models import Provider

logger = logging.getLogger('payments')

MINOR_UNITS = Decimal('100')  # kobo per naira
CENTS = Decimal('0.01')

# reference prefix -> provider; panel references use PSTK-, ticket purchases PSK-
REFERENCE_PREFIXES = (
    ('PSTK-', Provider.PAYSTACK),
    ('PSK-', Provider.PAYSTACK),
    ('ETG-', Provider.ETEGRAM),
)


@dataclass
class ProviderVerification:
    status: str
    amount: Optional[Decimal]
    reference: str
    paid_at: Optional[str] = None
    channel: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    raw: dict = field(default_factory=dict)

    def as_dict(self):
        return {
            "status": self.status,
            "amount": float(self.amount) if self.amount is not None else None,
            "reference": self.reference,
            "paidAt": self.paid_at,
            "channel": self.channel,
            "metadata": self.metadata,
        }


def resolve_provider(reference: str, hint: Optional[str] = None) -> str:
    """Explicit hint first, then the reference prefix."""
    if hint:
        hint = hint.lower().strip()
        if hint in Provider.values:
            return hint
    for prefix, provider in REFERENCE_PREFIXES:
        if reference.upper().startswith(prefix):
            return provider
    raise UnknownProvider(f"Cannot determine provider for reference {reference}", reference=reference)


def _to_decimal(value, divisor: Decimal = Decimal('1')) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        return (Decimal(str(value)) / divisor).quantize(CENTS)
    except (InvalidOperation, ValueError):
        return None


def _request(method: str, url: str, *, reference: str = "", **kwargs):
    """
    Performs an HTTP call and returns (status_code, json_body).
    Network errors and 5xx answers raise ProviderUnreachable.
    """
    try:
        resp = requests.request(method, url, timeout=settings.PAYMENT_HTTP_TIMEOUT, **kwargs)
    except requests.RequestException as e:
        logger.error("Provider %s %s unreachable (ref=%s): %s", method, url, reference, e)
        raise ProviderUnreachable(f"Network error: {e}", reference=reference) from e

    if resp.status_code >= 500:
        logger.error("Provider %s %s answered %s (ref=%s)", method, url, resp.status_code, reference)
        raise ProviderUnreachable(f"Provider error {resp.status_code}", reference=reference)

    try:
        body = resp.json()
    except ValueError as e:
        raise ProviderUnreachable(f"Bad response format: {e}", reference=reference) from e
    if not isinstance(body, dict):
        raise ProviderUnreachable("Bad response format: expected an object", reference=reference)
    return resp.status_code, body


def _hmac_hex(secret: str, body: bytes, digestmod) -> str:
    return hmac.new(secret.encode('utf-8'), body, digestmod).hexdigest()


class PaystackClient:
    name = Provider.PAYSTACK
    signature_header = 'HTTP_X_PAYSTACK_SIGNATURE'

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None):
        self.secret_key = settings.PAYSTACK_SECRET_KEY if secret_key is None else secret_key
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip('/')

    def _headers(self):
        if not self.secret_key:
            raise ProviderConfigMissing("Paystack configuration missing")
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def ensure_configured(self):
        self._headers()

    def initialize(self, *, email: str, amount: Decimal, reference: str,
                   callback_url: str, metadata: Optional[dict] = None) -> dict:
        """Creates a hosted checkout; returns the authorization url and access code."""
        payload = {
            "email": email,
            "amount": int((Decimal(amount) * MINOR_UNITS).to_integral_value()),
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata or {},
        }
        status_code, body = _request('POST', f"{self.base_url}/transaction/initialize",
                                     reference=reference, headers=self._headers(), json=payload)
        if status_code >= 400 or not body.get('status') or not body.get('data'):
            logger.error("Paystack initialize failed (ref=%s): %s", reference, body.get('message'))
            raise ProviderUnreachable(body.get('message') or "Paystack initialization failed",
                                      reference=reference)
        data = body['data']
        return {
            "checkout_url": data.get('authorization_url', ''),
            "access_code": data.get('access_code', ''),
            "reference": data.get('reference') or reference,
        }

    def verify(self, reference: str, **_) -> ProviderVerification:
        status_code, body = _request('GET', f"{self.base_url}/transaction/verify/{reference}",
                                     reference=reference, headers=self._headers())
        data = body.get('data')
        if status_code >= 400 or not body.get('status') or not isinstance(data, dict):
            logger.warning("Paystack rejected verification (ref=%s): %s", reference, body.get('message'))
            return ProviderVerification(status='failed', amount=None, reference=reference, raw=body)

        return ProviderVerification(
            status=str(data.get('status') or ''),
            amount=_to_decimal(data.get('amount'), MINOR_UNITS),
            reference=data.get('reference') or reference,
            paid_at=data.get('paid_at') or data.get('paidAt'),
            channel=data.get('channel'),
            metadata=data.get('metadata') if isinstance(data.get('metadata'), dict) else {},
            raw=data,
        )

    def verify_signature(self, raw_body: bytes, signature: str) -> bool:
        if not self.secret_key:
            raise ProviderConfigMissing("Paystack configuration missing")
        if not signature:
            return False
        return hmac.compare_digest(_hmac_hex(self.secret_key, raw_body, hashlib.sha512), signature)


class EtegramClient:
    name = Provider.ETEGRAM
    signature_header = 'HTTP_X_ETEGRAM_SIGNATURE'

    def __init__(self, secret_key: Optional[str] = None, project_id: Optional[str] = None,
                 checkout_base_url: Optional[str] = None, legacy_base_url: Optional[str] = None):
        self.secret_key = settings.ETEGRAM_SECRET_KEY if secret_key is None else secret_key
        self.project_id = settings.ETEGRAM_PROJECT_ID if project_id is None else project_id
        self.checkout_base_url = (checkout_base_url or settings.ETEGRAM_CHECKOUT_BASE_URL).rstrip('/')
        self.legacy_base_url = (legacy_base_url or settings.ETEGRAM_LEGACY_BASE_URL).rstrip('/')

    def ensure_configured(self):
        if not (self.secret_key and self.project_id):
            raise ProviderConfigMissing("Etegram configuration missing")

    def initialize(self, *, email: str, amount: Decimal, reference: str,
                   callback_url: str, metadata: Optional[dict] = None) -> dict:
        # Etegram checkout runs in the inline widget; we only hand out our checkout page
        self.ensure_configured()
        return {
            "checkout_url": f"{settings.SITE_URL.rstrip('/')}/payment/etegram/checkout?ref={reference}",
            "access_code": "",
            "reference": reference,
        }

    def verify(self, reference: str, access_code: Optional[str] = None,
               project_id: Optional[str] = None) -> ProviderVerification:
        """
        Uses the project/access-code endpoint when an access code is known,
        otherwise the older reference endpoint (amount in kobo there).
        """
        project = project_id or self.project_id
        if access_code and project:
            url = f"{self.checkout_base_url}/api/transaction/verify-payment/{project}/{access_code}"
            status_code, body = _request('PATCH', url, reference=reference)
            data = body.get('data') if isinstance(body.get('data'), dict) else {}
            if status_code >= 400:
                logger.warning("Etegram rejected verification (ref=%s): %s", reference, body.get('message'))
                return ProviderVerification(status='failed', amount=None, reference=reference, raw=body)
            status = data.get('status') or ('success' if body.get('status') in (True, 'success') else 'failed')
            return ProviderVerification(
                status=str(status),
                amount=_to_decimal(data.get('amount')),
                reference=data.get('reference') or reference,
                paid_at=data.get('paid_at') or data.get('updatedAt'),
                channel=data.get('channel'),
                metadata=data.get('metadata') if isinstance(data.get('metadata'), dict) else {},
                raw=body,
            )

        if not self.secret_key:
            raise ProviderConfigMissing("Etegram configuration missing")
        status_code, body = _request(
            'GET', f"{self.legacy_base_url}/api/verify/{reference}", reference=reference,
            headers={"Authorization": f"Bearer {self.secret_key}", "Content-Type": "application/json"},
        )
        if status_code >= 400:
            logger.warning("Etegram rejected verification (ref=%s): %s", reference, body.get('message'))
            return ProviderVerification(status='failed', amount=None, reference=reference, raw=body)
        status = body.get('status')
        if status is True:
            status = 'success'
        return ProviderVerification(
            status=str(status or 'failed'),
            amount=_to_decimal(body.get('amount'), MINOR_UNITS),
            reference=body.get('reference') or reference,
            paid_at=body.get('paid_at'),
            channel=body.get('channel'),
            metadata=body.get('metadata') if isinstance(body.get('metadata'), dict) else {},
            raw=body,
        )

    def verify_signature(self, raw_body: bytes, signature: str) -> bool:
        if not self.secret_key:
            raise ProviderConfigMissing("Etegram configuration missing")
        if not signature:
            return False
        return hmac.compare_digest(_hmac_hex(self.secret_key, raw_body, hashlib.sha256), signature)


def get_client(provider: str):
    if provider == Provider.PAYSTACK:
        return PaystackClient()
    if provider == Provider.ETEGRAM:
        return EtegramClient()
    raise UnknownProvider(f"Unsupported payment provider {provider}")


def verify_signature(provider: str, raw_body: bytes, signature: Optional[str]) -> bool:
    return get_client(provider).verify_signature(raw_body, signature or "")
