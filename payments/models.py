from django.conf import settings
from django.db import models
from django.db.models import Q


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    COMPLETED = 'COMPLETED', 'Completed'
    FAILED = 'FAILED', 'Failed'
    CANCELLED = 'CANCELLED', 'Cancelled'
    REFUNDED = 'REFUNDED', 'Refunded'


# a reconciliation may only move a payment out of these states
TRANSITIONABLE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.FAILED)


class Provider(models.TextChoices):
    PAYSTACK = 'paystack', 'Paystack'
    ETEGRAM = 'etegram', 'Etegram'


class Payment(models.Model):
    class Kind(models.TextChoices):
        TICKET_PURCHASE = 'ticket_purchase', 'Ticket purchase'
        MONTHLY_SUBSCRIPTION = 'monthly_subscription', 'Monthly panel subscription'
        ANNUAL_SUBSCRIPTION = 'annual_subscription', 'Annual panel subscription'

    reference = models.CharField(max_length=64, unique=True)
    provider = models.CharField(max_length=20, choices=Provider.choices, db_index=True)
    status = models.CharField(max_length=20, choices=PaymentStatus.choices,
                              default=PaymentStatus.PENDING, db_index=True)
    kind = models.CharField(max_length=30, choices=Kind.choices)

    amount = models.DecimalField(max_digits=12, decimal_places=2)  # major units
    currency = models.CharField(max_length=3, default='NGN')

    purchase = models.OneToOneField('tickets.Purchase', on_delete=models.CASCADE,
                                    null=True, blank=True, related_name='payment')
    panel = models.ForeignKey('panels.Panel', on_delete=models.CASCADE,
                              null=True, blank=True, related_name='payments')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
                             null=True, blank=True, related_name='payments')

    external_id = models.CharField(max_length=100, blank=True)
    channel = models.CharField(max_length=50, blank=True)
    checkout_url = models.URLField(max_length=500, blank=True)
    metadata = models.JSONField(default=dict, blank=True)  # provider payload history

    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            # a payment settles exactly one thing
            models.CheckConstraint(
                condition=(Q(purchase__isnull=False, panel__isnull=True)
                           | Q(purchase__isnull=True, panel__isnull=False)),
                name='payment_single_subject',
            ),
        ]

    def __str__(self):
        return f'{self.provider}:{self.reference} -> {self.status}'

    @property
    def is_completed(self):
        return self.status == PaymentStatus.COMPLETED


class WebhookEvent(models.Model):
    """Audit trail of every webhook delivery, valid or not."""
    provider = models.CharField(max_length=20, choices=Provider.choices, db_index=True)
    reference = models.CharField(max_length=64, blank=True, db_index=True)
    event = models.CharField(max_length=64, blank=True)
    signature_valid = models.BooleanField(default=False)
    payload = models.JSONField(default=dict, blank=True)
    outcome = models.CharField(max_length=32, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.provider}:{self.reference or "?"} [{self.outcome or "received"}]'


class PaymentReference(models.Model):
    """A checkout reference a payment was opened under before it was re-initiated."""
    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name='previous_references')
    reference = models.CharField(max_length=64, unique=True)
    provider = models.CharField(max_length=20, choices=Provider.choices)
    external_id = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.provider}:{self.reference} (superseded)'
