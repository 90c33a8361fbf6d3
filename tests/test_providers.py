from decimal import Decimal
from unittest.mock import patch

import pytest
import requests

from payments.exceptions import ProviderConfigMissing, ProviderUnreachable, UnknownProvider
from payments.models import Provider
from payments.providers import (
    EtegramClient, PaystackClient, resolve_provider, verify_signature,
)


class TestResolveProvider:

    @pytest.mark.parametrize('reference, expected', [
        ('PSK-171234-ABC', Provider.PAYSTACK),
        ('PSTK-MONTHLY-171234-abcd1234', Provider.PAYSTACK),
        ('ETG-171234-XYZ', Provider.ETEGRAM),
        ('etg-171234-xyz', Provider.ETEGRAM),
    ])
    def test_prefix(self, reference, expected):
        assert resolve_provider(reference) == expected

    def test_hint_wins_over_prefix(self):
        assert resolve_provider('PSK-171234-ABC', 'Etegram') == Provider.ETEGRAM

    def test_unknown_hint_falls_back_to_prefix(self):
        assert resolve_provider('ETG-1-A', 'flutterwave') == Provider.ETEGRAM

    def test_unknown_prefix(self):
        with pytest.raises(UnknownProvider):
            resolve_provider('ORDER-42')


class TestSignatures:

    def test_paystack_valid(self, sign):
        raw, digest = sign({'event': 'charge.success'})
        assert verify_signature(Provider.PAYSTACK, raw, digest) is True

    def test_paystack_tampered_body(self, sign):
        raw, digest = sign({'event': 'charge.success'})
        assert verify_signature(Provider.PAYSTACK, raw + b' ', digest) is False

    def test_etegram_uses_sha256(self, sign):
        raw, digest = sign({'reference': 'ETG-1-A'}, provider=Provider.ETEGRAM)
        assert verify_signature(Provider.ETEGRAM, raw, digest) is True
        # a sha512 digest is not accepted for Etegram
        _, paystack_digest = sign({'reference': 'ETG-1-A'})
        assert verify_signature(Provider.ETEGRAM, raw, paystack_digest) is False

    @pytest.mark.parametrize('signature', ['', None])
    def test_missing_signature_fails(self, sign, signature):
        raw, _ = sign({'event': 'charge.success'})
        assert verify_signature(Provider.PAYSTACK, raw, signature) is False

    def test_missing_secret(self, settings, sign):
        settings.PAYSTACK_SECRET_KEY = ''
        raw, digest = sign({'event': 'charge.success'})
        with pytest.raises(ProviderConfigMissing):
            verify_signature(Provider.PAYSTACK, raw, digest)


class TestPaystackClient:

    def test_verify_converts_kobo(self, paystack_verified):
        with patch('payments.providers.requests.request', return_value=paystack_verified()) as req:
            result = PaystackClient().verify('PSK-171234-ABC')

        assert result.status == 'success'
        assert result.amount == Decimal('20000')
        assert result.channel == 'card'
        method, url = req.call_args.args
        assert method == 'GET'
        assert url == 'https://api.paystack.test/transaction/verify/PSK-171234-ABC'
        assert req.call_args.kwargs['headers']['Authorization'] == 'Bearer sk_test_paystack'

    def test_rejected_verification_is_failed(self, provider_response):
        resp = provider_response({'status': False, 'message': 'Transaction reference not found'}, 400)
        with patch('payments.providers.requests.request', return_value=resp):
            result = PaystackClient().verify('PSK-404')
        assert result.status == 'failed'
        assert result.amount is None

    def test_server_error_is_unreachable(self, provider_response):
        with patch('payments.providers.requests.request', return_value=provider_response({}, 503)):
            with pytest.raises(ProviderUnreachable):
                PaystackClient().verify('PSK-1')

    def test_network_error_is_unreachable(self):
        with patch('payments.providers.requests.request', side_effect=requests.ConnectionError('boom')):
            with pytest.raises(ProviderUnreachable):
                PaystackClient().verify('PSK-1')

    def test_non_json_is_unreachable(self, provider_response):
        with patch('payments.providers.requests.request', return_value=provider_response(ValueError('html'))):
            with pytest.raises(ProviderUnreachable):
                PaystackClient().verify('PSK-1')

    def test_missing_secret_makes_no_call(self, settings):
        settings.PAYSTACK_SECRET_KEY = ''
        with patch('payments.providers.requests.request') as req:
            with pytest.raises(ProviderConfigMissing):
                PaystackClient().verify('PSK-1')
        req.assert_not_called()

    def test_initialize_sends_kobo(self, provider_response):
        resp = provider_response({'status': True, 'data': {
            'authorization_url': 'https://checkout.paystack.com/abc',
            'access_code': 'abc', 'reference': 'PSK-1-X',
        }})
        with patch('payments.providers.requests.request', return_value=resp) as req:
            result = PaystackClient().initialize(email='ada@example.com', amount=Decimal('20000.50'),
                                                 reference='PSK-1-X', callback_url='https://x/cb')
        assert result['checkout_url'] == 'https://checkout.paystack.com/abc'
        assert req.call_args.kwargs['json']['amount'] == 2000050


class TestEtegramClient:

    def test_access_code_endpoint_uses_major_units(self, provider_response):
        resp = provider_response({'status': True, 'data': {
            'status': 'successful', 'amount': 20000, 'reference': 'ETG-1-A', 'channel': 'bank',
        }})
        with patch('payments.providers.requests.request', return_value=resp) as req:
            result = EtegramClient().verify('ETG-1-A', access_code='ac-9')

        assert req.call_args.args == ('PATCH', 'https://checkout.etegram.test/api/transaction/verify-payment/proj-1/ac-9')
        assert result.status == 'successful'
        assert result.amount == Decimal('20000')

    def test_reference_endpoint_uses_minor_units(self, provider_response):
        resp = provider_response({'status': 'successful', 'amount': 2000000, 'reference': 'ETG-1-A'})
        with patch('payments.providers.requests.request', return_value=resp) as req:
            result = EtegramClient().verify('ETG-1-A')

        assert req.call_args.args == ('GET', 'https://api.etegram.test/api/verify/ETG-1-A')
        assert req.call_args.kwargs['headers']['Authorization'] == 'Bearer etg_test_secret'
        assert result.amount == Decimal('20000')

    def test_initialize_builds_checkout_url(self):
        with patch('payments.providers.requests.request') as req:
            result = EtegramClient().initialize(email='a@b.c', amount=Decimal('1'),
                                                reference='ETG-1-A', callback_url='https://x/cb')
        req.assert_not_called()
        assert result['checkout_url'] == 'https://tickets.example.com/payment/etegram/checkout?ref=ETG-1-A'

    def test_initialize_requires_configuration(self, settings):
        settings.ETEGRAM_PROJECT_ID = ''
        with pytest.raises(ProviderConfigMissing):
            EtegramClient().initialize(email='a@b.c', amount=Decimal('1'),
                                       reference='ETG-1-A', callback_url='https://x/cb')
