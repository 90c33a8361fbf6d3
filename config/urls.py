from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    path('', include('pages.urls')),  # contact form
    path('users/', include('users.urls')),  # registration, login, profile
    path('events/', include('events.urls')),  # event catalogue and ticket prices
    path('tickets/', include('tickets.urls')),  # purchases and issued tickets
    path('panels/', include('panels.urls')),  # tenant panels and domain checks
    path('payments/', include('payments.urls', namespace='payments')),  # initiation, verify, webhooks
]
