from django.conf import settings
from django.db import models


class ContactMessage(models.Model):
    class Status(models.TextChoices):
        NEW = 'new', 'New'
        IN_PROGRESS = 'in_progress', 'In progress'
        CLOSED = 'closed', 'Closed'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True, null=True,
        related_name='contact_messages'
    )
    name = models.CharField('Name', max_length=120)
    email = models.EmailField('Email')
    phone = models.CharField('Phone', max_length=32, blank=True)
    subject = models.CharField('Subject', max_length=200, blank=True)
    message = models.TextField('Message')
    status = models.CharField('Status', max_length=20, choices=Status.choices, default=Status.NEW, db_index=True)
    created_at = models.DateTimeField('Created', auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Contact message'
        verbose_name_plural = 'Contact messages'

    def __str__(self):
        return f"{self.subject or 'No subject'} ({self.email})"
