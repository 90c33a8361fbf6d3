from django.db import models
from django.utils import timezone
from django.utils.text import slugify
from django.core.validators import MinValueValidator


# unique slug generation
def generate_unique_slug(instance, value, slug_field_name: str = 'slug', max_len: int = 60) -> str:
    base = slugify(value) or 'event'
    base = base[:max_len]
    slug = base
    Model = instance.__class__
    n = 2
    # append a numeric suffix until the slug is free
    while Model.objects.filter(**{slug_field_name: slug}).exclude(pk=instance.pk).exists():
        suffix = f'-{n}'
        slug = (base[:max_len - len(suffix)] + suffix)
        n += 1
    return slug


class Event(models.Model):
    title = models.CharField('Title', max_length=255)
    slug = models.SlugField('Slug', max_length=140, unique=True)
    description = models.TextField('Description', blank=True)
    starts_at = models.DateTimeField('Starts at')
    ends_at = models.DateTimeField('Ends at', blank=True, null=True)
    location = models.CharField('Location', max_length=255)

    # total tickets left across active ticket types (denormalized)
    available_tickets = models.PositiveIntegerField('Tickets left', default=0)
    is_active = models.BooleanField('Active', default=True)

    created_at = models.DateTimeField('Created', auto_now_add=True)
    updated_at = models.DateTimeField('Updated', auto_now=True)

    class Meta:
        ordering = ['-starts_at']
        verbose_name = 'Event'
        verbose_name_plural = 'Events'

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = generate_unique_slug(self, self.title, max_len=140)
        super().save(*args, **kwargs)

    @property
    def is_past(self) -> bool:
        end = self.ends_at or self.starts_at
        return end < timezone.now()

    @property
    def is_buyable(self) -> bool:
        return self.is_active and not self.is_past and (self.available_tickets or 0) > 0


# a priced ticket category of one event (regular, vip, early-bird ...)
class TicketType(models.Model):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='ticket_types', verbose_name='Event')
    code = models.SlugField('Code', max_length=40)
    name = models.CharField('Name', max_length=120)
    description = models.TextField('Description', blank=True)

    price = models.DecimalField('Price', max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    available_quantity = models.PositiveIntegerField('Quota', validators=[MinValueValidator(0)])
    sales_count = models.PositiveIntegerField('Sold', default=0)
    is_active = models.BooleanField('Active', default=True)

    class Meta:
        unique_together = [('event', 'code')]
        ordering = ['price']
        verbose_name = 'Ticket type'
        verbose_name_plural = 'Ticket types'

    def __str__(self):
        return f'{self.event.title} / {self.name}'

    @property
    def remaining(self):
        aq = self.available_quantity or 0
        sc = self.sales_count or 0
        return max(aq - sc, 0)
