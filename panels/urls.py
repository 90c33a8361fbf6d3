from django.urls import path
from . import views

app_name = 'panels'

urlpatterns = [
    path('', views.panel_list, name='list'),
    path('<int:pk>/', views.panel_detail, name='detail'),
    path('check-subdomain/', views.subdomain_check, name='check_subdomain'),
    path('verify-domain/', views.domain_verify, name='verify_domain'),
]
