from django.contrib import admin
from .models import Panel, PanelDomain


class PanelDomainInline(admin.TabularInline):
    model = PanelDomain
    extra = 0


@admin.register(Panel)
class PanelAdmin(admin.ModelAdmin):
    list_display = ('name', 'subdomain', 'custom_domain', 'user', 'payment_status', 'setup_paid', 'created_at')
    list_filter = ('payment_status', 'setup_paid', 'status')
    search_fields = ('name', 'subdomain', 'custom_domain', 'owner_email')
    inlines = [PanelDomainInline]
