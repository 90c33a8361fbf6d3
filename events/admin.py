# events/admin.py
from django.contrib import admin
from .models import Event, TicketType


class TicketTypeInline(admin.TabularInline):
    model = TicketType
    extra = 0
    readonly_fields = ('sales_count',)


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'starts_at', 'location', 'available_tickets', 'is_active')
    list_filter = ('is_active', 'starts_at')
    search_fields = ('title', 'location')
    prepopulated_fields = {'slug': ('title',)}
    readonly_fields = ('available_tickets',)
    inlines = [TicketTypeInline]


@admin.register(TicketType)
class TicketTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'event', 'price', 'available_quantity', 'sales_count', 'is_active')
    list_filter = ('is_active', 'event')
    search_fields = ('name', 'code', 'event__title')
