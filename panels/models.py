from django.conf import settings
from django.db import models

from payments.models import PaymentStatus


class Panel(models.Model):
    """A tenant panel; usable once its payment is completed."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='panels')
    name = models.CharField(max_length=200)
    subdomain = models.CharField(max_length=63, unique=True)
    custom_domain = models.CharField(max_length=253, blank=True)
    owner_email = models.EmailField()
    owner_phone = models.CharField(max_length=32)
    status = models.CharField(max_length=20, default='active')

    # mirrors the status of the latest payment for this panel
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices,
                                      default=PaymentStatus.PENDING, db_index=True)
    setup_paid = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.name} ({self.subdomain})'

    @property
    def hostname(self):
        return f'{self.subdomain}.{settings.PANEL_BASE_DOMAIN}'


class PanelDomain(models.Model):
    class Verification(models.TextChoices):
        PENDING = 'pending', 'Pending'
        VERIFIED = 'verified', 'Verified'
        FAILED = 'failed', 'Failed'

    panel = models.ForeignKey(Panel, on_delete=models.CASCADE, related_name='domains')
    domain = models.CharField(max_length=253)
    verification_status = models.CharField(max_length=20, choices=Verification.choices,
                                           default=Verification.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return self.domain
