from datetime import timedelta

import pytest
from django.utils import timezone

from events.models import Event


@pytest.mark.django_db
class TestEvents:

    def test_availability_follows_ticket_types(self, event, regular, vip):
        event.refresh_from_db()
        assert event.available_tickets == 102

        vip.is_active = False
        vip.save()
        event.refresh_from_db()
        assert event.available_tickets == 100

        regular.delete()
        event.refresh_from_db()
        assert event.available_tickets == 0

    def test_slug_is_unique(self, event):
        twin = Event.objects.create(title=event.title, starts_at=event.starts_at, location='Lagos')
        assert twin.slug == f'{event.slug}-2'

    def test_list_hides_past_events(self, client, event, regular):
        Event.objects.create(title='Last year', starts_at=timezone.now() - timedelta(days=300), location='Abuja')
        events = client.get('/events/').json()['events']
        assert [e['slug'] for e in events] == [event.slug]
        assert events[0]['availableTickets'] == 100

    def test_detail(self, client, event, regular, vip):
        body = client.get(f'/events/{event.slug}/').json()
        assert body['event']['isBuyable'] is True
        assert [t['code'] for t in body['ticketTypes']] == ['regular', 'vip']
        assert body['ticketTypes'][1]['remaining'] == 2
