from django.contrib import admin
from .models import Purchase, PurchaseItem, Ticket


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0
    readonly_fields = ('unit_price',)


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ('id', 'attendee_name', 'attendee_email', 'total_amount', 'created_at')
    list_filter = ('created_at',)
    search_fields = ('attendee_name', 'attendee_email', 'attendee_phone', 'payment__reference')
    inlines = [PurchaseItemInline]


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ('ticket_code', 'attendee_name', 'event', 'ticket_type', 'is_used', 'created_at')
    list_filter = ('is_used', 'event')
    search_fields = ('ticket_code', 'qr_hash', 'attendee_name', 'attendee_email', 'event__title')
