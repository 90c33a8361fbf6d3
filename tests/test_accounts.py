from unittest.mock import patch

import pytest
from django.test import Client

from pages.models import ContactMessage


@pytest.mark.django_db
class TestAccounts:

    def test_register_logs_in(self, client, django_user_model):
        resp = client.post('/users/register/', {
            'name': 'Chika Eze', 'email': 'Chika@Example.com', 'password': 'Str0ng-enough!',
        }, content_type='application/json')

        assert resp.status_code == 201
        user = django_user_model.objects.get()
        assert user.email == 'chika@example.com'
        assert user.first_name == 'Chika'
        assert client.get('/users/profile/').json()['user']['email'] == 'chika@example.com'

    def test_register_duplicate_email(self, client, user):
        resp = client.post('/users/register/', {
            'name': 'Someone', 'email': 'owner@example.com', 'password': 'Str0ng-enough!',
        }, content_type='application/json')
        assert resp.status_code == 400
        assert 'email' in resp.json()['fields']

    def test_login(self, client, user):
        resp = client.post('/users/login/', {'email': 'OWNER@example.com', 'password': 'S3cure-pass!'},
                           content_type='application/json')
        assert resp.status_code == 200

        bad = client.post('/users/login/', {'email': 'owner@example.com', 'password': 'wrong'},
                          content_type='application/json')
        assert bad.status_code == 401

    def test_profile_update(self, client, user, panel):
        client.force_login(user)
        resp = client.patch('/users/profile/', {'phone': '08090000000'}, content_type='application/json')
        body = resp.json()
        assert body['user']['phone'] == '08090000000'
        assert body['user']['name'] == 'Tunde Bello'
        assert body['panels'][0]['subdomain'] == 'tunde'

    def test_logout_without_csrf_token(self, user):
        client = Client(enforce_csrf_checks=True)
        client.force_login(user)
        resp = client.post('/users/logout/', content_type='application/json')
        assert resp.status_code == 200
        assert client.get('/users/profile/').status_code == 302


@pytest.mark.django_db
class TestContact:

    def test_message_is_stored_and_forwarded(self, client, mailoutbox):
        resp = client.post('/contact/', {
            'name': 'Emeka', 'email': 'emeka@example.com', 'message': 'Do you sell group tickets?',
        }, content_type='application/json')

        assert resp.status_code == 201
        msg = ContactMessage.objects.get()
        assert msg.subject == 'Message from Emeka'
        assert mailoutbox[0].to == ['contact@example.com']
        assert mailoutbox[0].reply_to == ['emeka@example.com']

    def test_mail_failure_is_not_surfaced(self, client, mailoutbox):
        with patch('pages.views.EmailMessage.send', side_effect=OSError('smtp down')):
            resp = client.post('/contact/', {
                'name': 'Emeka', 'email': 'emeka@example.com', 'message': 'Do you sell group tickets?',
            }, content_type='application/json')
        assert resp.status_code == 201
        assert ContactMessage.objects.count() == 1

    def test_invalid(self, client):
        resp = client.post('/contact/', {'name': 'Emeka', 'email': 'nope', 'message': 'hi'},
                           content_type='application/json')
        assert resp.status_code == 400
        assert set(resp.json()['fields']) == {'email', 'message'}
