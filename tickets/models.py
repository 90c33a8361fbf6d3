# tickets/models.py
from django.db import models
import secrets
import uuid

from events.models import Event, TicketType


class Purchase(models.Model):
    """One checkout attempt for attendee tickets; its Payment carries the status."""
    session_id = models.CharField(max_length=100, blank=True, db_index=True)
    attendee_name = models.CharField(max_length=200)
    attendee_email = models.EmailField(db_index=True)
    attendee_phone = models.CharField(max_length=32, blank=True)
    attendee_company = models.CharField(max_length=200, blank=True)
    attendee_job_title = models.CharField(max_length=200, blank=True)

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f'Purchase #{self.pk} ({self.attendee_email})'

    @property
    def quantity(self):
        return sum(item.quantity for item in self.items.all())


class PurchaseItem(models.Model):
    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name='items')
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name='purchase_items')
    ticket_type = models.ForeignKey(TicketType, on_delete=models.PROTECT, related_name='purchase_items')
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    def total_price(self):
        return self.unit_price * self.quantity


class Ticket(models.Model):
    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name='tickets')
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name='tickets')
    ticket_type = models.ForeignKey(TicketType, on_delete=models.PROTECT, related_name='tickets')

    ticket_code = models.CharField(max_length=20, unique=True)
    qr_hash = models.CharField(max_length=64, unique=True, db_index=True)
    attendee_name = models.CharField(max_length=200)
    attendee_email = models.EmailField()
    is_used = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f'Ticket {self.ticket_code} for {self.event.title}'

    @staticmethod
    def make_qr_hash():
        return uuid.uuid4().hex

    @staticmethod
    def make_ticket_code():
        return f"TKT-{secrets.token_hex(4).upper()}"
