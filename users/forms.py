# users/forms.py
from django import forms
from django.core.exceptions import ValidationError
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

User = get_user_model()


class UserRegisterForm(forms.ModelForm):
    name = forms.CharField(label="Full name", max_length=150)
    email = forms.EmailField(label="Email", required=True)
    password = forms.CharField(label="Password", strip=False)
    phone = forms.CharField(label="Phone", required=False, max_length=20)

    class Meta:
        model = User
        fields = ("email", "phone")

    def clean_email(self):
        email = self.cleaned_data["email"].lower().strip()
        if User.objects.filter(email=email).exists():
            raise ValidationError("A user with this email already exists.")
        return email

    def clean_password(self):
        password = self.cleaned_data["password"]
        validate_password(password)
        return password

    def save(self, commit=True):
        user = super().save(commit=False)
        # email doubles as the login name
        user.username = user.email
        first, _, last = self.cleaned_data["name"].strip().partition(" ")
        user.first_name = first
        user.last_name = last
        user.set_password(self.cleaned_data["password"])
        if commit:
            user.save()
        return user


class UserUpdateForm(forms.ModelForm):
    name = forms.CharField(label="Full name", max_length=150, required=False)

    class Meta:
        model = User
        fields = ("phone",)

    def save(self, commit=True):
        user = super().save(commit=False)
        name = (self.cleaned_data.get("name") or "").strip()
        if name:
            first, _, last = name.partition(" ")
            user.first_name = first
            user.last_name = last
        if commit:
            user.save()
        return user
