from django.contrib import admin
from .models import Payment, PaymentReference, WebhookEvent


class PaymentReferenceInline(admin.TabularInline):
    model = PaymentReference
    extra = 0
    readonly_fields = ('reference', 'provider', 'external_id', 'created_at')
    can_delete = False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('reference', 'provider', 'kind', 'status', 'amount', 'currency', 'purchase', 'panel', 'created_at')
    search_fields = ('reference', 'previous_references__reference', 'external_id', 'purchase__attendee_email', 'panel__subdomain')
    list_filter = ('status', 'provider', 'kind', 'created_at')
    readonly_fields = ('metadata', 'paid_at', 'completed_at', 'created_at', 'updated_at')
    inlines = [PaymentReferenceInline]


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ('provider', 'reference', 'event', 'signature_valid', 'outcome', 'created_at')
    search_fields = ('reference',)
    list_filter = ('provider', 'signature_valid', 'outcome')
    readonly_fields = ('payload',)
