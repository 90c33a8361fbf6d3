import re

from django import forms

from .models import Purchase

# +2348012345678 or 08012345678
NIGERIAN_PHONE_RE = re.compile(r'^(\+234|0)[789][01]\d{8}$')


class AttendeeForm(forms.ModelForm):
    class Meta:
        model = Purchase
        fields = [
            'session_id', 'attendee_name', 'attendee_email', 'attendee_phone',
            'attendee_company', 'attendee_job_title',
        ]

    def clean_attendee_name(self):
        return self.cleaned_data['attendee_name'].strip()

    def clean_attendee_email(self):
        return self.cleaned_data['attendee_email'].lower().strip()

    def clean_attendee_phone(self):
        phone = re.sub(r'\s', '', self.cleaned_data.get('attendee_phone') or '')
        if phone and not NIGERIAN_PHONE_RE.match(phone):
            raise forms.ValidationError("Enter a valid Nigerian phone number.")
        return phone
