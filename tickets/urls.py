from django.urls import path
from . import views

app_name = 'tickets'

urlpatterns = [
    path('', views.ticket_list, name='list'),  # staff view of issued tickets
    path('purchases/', views.purchase_create, name='purchase_create'),  # attendee + ticket selection intake
    path('<str:code>/pdf/', views.ticket_pdf, name='ticket_pdf'),
]
