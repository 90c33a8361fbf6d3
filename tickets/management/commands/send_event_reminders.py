from django.core.management.base import BaseCommand, CommandError

from events.models import Event
from tickets.models import Purchase
from tickets.services import send_event_reminder


class Command(BaseCommand):
    help = "E-mails a reminder to every attendee holding tickets for an event."

    def add_arguments(self, parser):
        parser.add_argument('--event', required=True, help="Event slug")

    def handle(self, *args, **options):
        event = Event.objects.filter(slug=options['event']).first()
        if event is None:
            raise CommandError(f"Event '{options['event']}' does not exist")

        purchase_ids = (Purchase.objects
                        .filter(tickets__event=event)
                        .values_list('id', flat=True)
                        .distinct())
        sent = 0
        for pid in purchase_ids:
            if send_event_reminder(pid):
                sent += 1
        self.stdout.write(self.style.SUCCESS(f"Reminders sent: {sent}"))
