from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    email = models.EmailField("Email", unique=True)
    phone = models.CharField("Phone", max_length=20, blank=True)

    def __str__(self):
        return self.username

    @property
    def display_name(self):
        return self.get_full_name() or self.username
