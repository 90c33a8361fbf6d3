from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import TicketType, Event


# recompute how many tickets an event has left whenever its ticket types change
def recompute_event_available(event: Event):
    total = 0
    for tt in event.ticket_types.filter(is_active=True):
        total += max((tt.available_quantity or 0) - (tt.sales_count or 0), 0)
    Event.objects.filter(pk=event.pk).update(available_tickets=total)


@receiver(post_save, sender=TicketType)
def on_tickettype_save(sender, instance, **kwargs):
    recompute_event_available(instance.event)


@receiver(post_delete, sender=TicketType)
def on_tickettype_delete(sender, instance, **kwargs):
    recompute_event_available(instance.event)
