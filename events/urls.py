from django.urls import path
from . import views

app_name = 'events'

urlpatterns = [
    path('', views.event_list, name='list'),  # upcoming events
    path('<slug:slug>/', views.event_detail, name='detail'),  # event with its ticket types
]
