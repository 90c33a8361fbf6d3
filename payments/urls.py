from django.urls import path
from . import views

app_name = 'payments'

urlpatterns = [
    # checkout for a ticket purchase or a panel plan
    path('purchases/initiate/', views.purchase_initiate, name='purchase_initiate'),
    path('panels/initiate/', views.panel_initiate, name='panel_initiate'),

    # POST from the frontend, GET as the provider return url
    path('verify/', views.verify, name='verify'),

    # provider webhooks (signed)
    path('webhooks/paystack/', views.paystack_webhook, name='paystack_webhook'),
    path('webhooks/etegram/', views.etegram_webhook, name='etegram_webhook'),
]
