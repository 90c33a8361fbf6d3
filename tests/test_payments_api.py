import re
from decimal import Decimal
from unittest.mock import patch

import pytest

from panels.models import Panel
from payments.exceptions import ProviderConfigMissing
from payments.models import Payment, PaymentReference, PaymentStatus
from payments.reconciliation import Outcome, reconcile
from payments.services import generate_reference, initiate_panel_payment, initiate_purchase_payment

REQUEST = 'payments.providers.requests.request'


@pytest.fixture
def paystack_checkout(provider_response):
    return provider_response({'status': True, 'data': {
        'authorization_url': 'https://checkout.paystack.com/xyz',
        'access_code': 'xyz',
    }})


class TestReferences:

    def test_purchase_reference(self):
        assert re.match(r'^PSK-\d{13}-[A-Z0-9]{8}$', generate_reference('paystack'))
        assert generate_reference('etegram').startswith('ETG-')

    def test_panel_reference(self):
        assert re.match(r'^PSTK-ANNUAL-\d{13}-[a-z0-9]{8}$', generate_reference('paystack', 'annual'))

    def test_references_differ(self):
        assert generate_reference('paystack') != generate_reference('paystack')


@pytest.mark.django_db
class TestPurchaseInitiation:

    def test_creates_pending_payment(self, purchase, paystack_checkout):
        with patch(REQUEST, return_value=paystack_checkout) as req:
            payment = initiate_purchase_payment(purchase, 'paystack')

        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == Decimal('20000')
        assert payment.reference.startswith('PSK-')
        assert payment.checkout_url == 'https://checkout.paystack.com/xyz'
        sent = req.call_args.kwargs['json']
        assert sent['amount'] == 2000000
        assert sent['email'] == 'ada@example.com'
        assert sent['callback_url'] == 'https://tickets.example.com/payments/verify/'

    def test_retry_replaces_reference(self, purchase, paystack_checkout):
        with patch(REQUEST, return_value=paystack_checkout):
            first = initiate_purchase_payment(purchase, 'paystack')
            old_reference = first.reference
            Payment.objects.filter(pk=first.pk).update(status=PaymentStatus.FAILED)
            second = initiate_purchase_payment(purchase, 'paystack')

        assert second.pk == first.pk
        assert second.reference != old_reference
        assert second.status == PaymentStatus.PENDING

    def test_earlier_checkout_still_settles(self, purchase, paystack_checkout, paystack_verified, mailoutbox,
                                            django_capture_on_commit_callbacks):
        with patch(REQUEST, return_value=paystack_checkout):
            first = initiate_purchase_payment(purchase, 'paystack').reference
            second = initiate_purchase_payment(purchase, 'paystack').reference
        assert PaymentReference.objects.get().reference == first

        # the payer completes the first checkout after opening the second one
        with django_capture_on_commit_callbacks(execute=True):
            with patch(REQUEST, return_value=paystack_verified(first)):
                result = reconcile(first, source='webhook')

        assert result.outcome == Outcome.COMPLETED
        assert result.tickets_issued == 1
        payment = Payment.objects.get()
        assert payment.reference == second
        assert payment.status == PaymentStatus.COMPLETED
        assert payment.metadata['paystack']['lastReference'] == first
        assert len(mailoutbox) == 1

        with patch(REQUEST, return_value=paystack_verified(second)):
            assert reconcile(second).outcome == Outcome.ALREADY_PROCESSED

    def test_earlier_checkout_failure_is_ignored(self, purchase, paystack_checkout, paystack_verified):
        with patch(REQUEST, return_value=paystack_checkout):
            first = initiate_purchase_payment(purchase, 'paystack').reference
            initiate_purchase_payment(purchase, 'paystack')

        with patch(REQUEST, return_value=paystack_verified(first, status='failed')):
            result = reconcile(first)

        assert result.outcome == Outcome.IGNORED
        assert Payment.objects.get().status == PaymentStatus.PENDING

    def test_missing_secret_before_any_call(self, settings, purchase):
        settings.PAYSTACK_SECRET_KEY = ''
        with patch(REQUEST) as req:
            with pytest.raises(ProviderConfigMissing):
                initiate_purchase_payment(purchase, 'paystack')
        req.assert_not_called()
        assert not Payment.objects.exists()

    def test_endpoint(self, client, purchase, paystack_checkout):
        with patch(REQUEST, return_value=paystack_checkout):
            resp = client.post('/payments/purchases/initiate/',
                               {'purchaseId': purchase.pk, 'method': 'paystack'},
                               content_type='application/json')
        assert resp.status_code == 201
        data = resp.json()['data']
        assert data['checkoutUrl'] == 'https://checkout.paystack.com/xyz'
        assert data['amount'] == 20000.0

    def test_endpoint_unknown_method(self, client, purchase):
        resp = client.post('/payments/purchases/initiate/',
                           {'purchaseId': purchase.pk, 'method': 'cash'},
                           content_type='application/json')
        assert resp.status_code == 400

    def test_endpoint_unknown_purchase(self, client, db):
        resp = client.post('/payments/purchases/initiate/', {'purchaseId': 9999, 'method': 'paystack'},
                           content_type='application/json')
        assert resp.status_code == 404


@pytest.mark.django_db
class TestPanelInitiation:

    def test_annual_plan(self, panel, paystack_checkout):
        with patch(REQUEST, return_value=paystack_checkout):
            payment = initiate_panel_payment(panel, 'annual', 'paystack')
        assert payment.kind == Payment.Kind.ANNUAL_SUBSCRIPTION
        assert payment.amount == Decimal('75000')
        assert payment.reference.startswith('PSTK-ANNUAL-')

    def test_unknown_plan_bills_monthly(self, panel, paystack_checkout):
        with patch(REQUEST, return_value=paystack_checkout):
            payment = initiate_panel_payment(panel, 'weekly', 'paystack')
        assert payment.kind == Payment.Kind.MONTHLY_SUBSCRIPTION
        assert payment.amount == Decimal('20000')

    def test_reuses_open_payment(self, panel, panel_payment, paystack_checkout):
        Panel.objects.filter(pk=panel.pk).update(payment_status=PaymentStatus.FAILED)
        with patch(REQUEST, return_value=paystack_checkout):
            payment = initiate_panel_payment(panel, 'monthly', 'paystack')

        assert payment.pk == panel_payment.pk
        assert payment.reference != 'PSTK-MONTHLY-171234-abcd1234'
        assert payment.previous_references.get().reference == 'PSTK-MONTHLY-171234-abcd1234'
        assert Payment.objects.filter(panel=panel).count() == 1
        panel.refresh_from_db()
        assert panel.payment_status == PaymentStatus.PENDING

    def test_etegram_checkout(self, panel):
        with patch(REQUEST) as req:
            payment = initiate_panel_payment(panel, 'monthly', 'etegram')
        req.assert_not_called()
        assert payment.reference.startswith('ETG-MONTHLY-')
        assert payment.checkout_url.endswith(f'ref={payment.reference}')

    def test_endpoint_requires_owner(self, client, django_user_model, panel):
        other = django_user_model.objects.create_user(username='x@example.com', email='x@example.com',
                                                      password='S3cure-pass!')
        client.force_login(other)
        resp = client.post('/payments/panels/initiate/',
                           {'panelId': panel.pk, 'plan': 'monthly', 'method': 'paystack'},
                           content_type='application/json')
        assert resp.status_code == 404


@pytest.mark.django_db
class TestVerifyEndpoint:

    def test_post(self, client, payment, paystack_verified, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False):
            with patch(REQUEST, return_value=paystack_verified()):
                resp = client.post('/payments/verify/', {'reference': 'PSK-171234-ABC'},
                                   content_type='application/json')

        assert resp.status_code == 200
        body = resp.json()
        assert body['success'] is True
        assert body['data']['amount'] == 20000.0
        assert body['data']['paymentStatus'] == PaymentStatus.COMPLETED
        assert body['data']['channel'] == 'card'

    def test_post_unknown_prefix(self, client, db):
        resp = client.post('/payments/verify/', {'reference': 'ORDER-1'}, content_type='application/json')
        assert resp.status_code == 400

    def test_post_missing_reference(self, client, db):
        resp = client.post('/payments/verify/', {}, content_type='application/json')
        assert resp.status_code == 400

    def test_callback_redirects(self, client, payment, paystack_verified, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False):
            with patch(REQUEST, return_value=paystack_verified()):
                resp = client.get('/payments/verify/', {'reference': 'PSK-171234-ABC', 'trxref': 'PSK-171234-ABC'})
        assert resp.status_code == 302
        assert resp['Location'] == 'https://tickets.example.com/?payment=success&reference=PSK-171234-ABC'

    def test_callback_failure_redirects(self, client, payment, paystack_verified):
        with patch(REQUEST, return_value=paystack_verified(status='failed')):
            resp = client.get('/payments/verify/', {'reference': 'PSK-171234-ABC'})
        assert resp['Location'] == 'https://tickets.example.com/?payment=failed&reference=PSK-171234-ABC'

    def test_post_unknown_reference_is_acknowledged(self, client, db, paystack_verified):
        with patch(REQUEST, return_value=paystack_verified('PSK-999-NOPE')):
            resp = client.post('/payments/verify/', {'reference': 'PSK-999-NOPE'}, content_type='application/json')

        assert resp.status_code == 200
        body = resp.json()
        assert body['success'] is False
        assert body['outcome'] == 'not_found'
        assert body['data']['paymentStatus'] is None
