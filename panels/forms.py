import re

from django import forms

from .models import Panel

SUBDOMAIN_RE = re.compile(r'^[a-z0-9-]+$')
DOMAIN_RE = re.compile(r'^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z0-9][a-z0-9-]{0,61}[a-z0-9]$')


class PanelForm(forms.ModelForm):
    class Meta:
        model = Panel
        fields = ['name', 'subdomain', 'custom_domain', 'owner_email', 'owner_phone']

    def clean_subdomain(self):
        value = (self.cleaned_data.get('subdomain') or '').strip()
        if not SUBDOMAIN_RE.match(value):
            raise forms.ValidationError("Subdomain can only contain lowercase letters, numbers, and hyphens.")
        if len(value) < 3:
            raise forms.ValidationError("Subdomain must be at least 3 characters long.")
        return value

    def clean_custom_domain(self):
        value = (self.cleaned_data.get('custom_domain') or '').strip().lower()
        if value and not DOMAIN_RE.match(value):
            raise forms.ValidationError("Invalid domain format.")
        return value

    def validate_unique(self):
        # uniqueness of the subdomain is reported by the service as a conflict
        exclude = self._get_validation_exclusions()
        exclude.add('subdomain')
        try:
            self.instance.validate_unique(exclude=exclude)
        except forms.ValidationError as e:
            self._update_errors(e)
