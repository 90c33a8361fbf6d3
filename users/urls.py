from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # authentication
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),

    # registration
    path('register/', views.register, name='register'),

    # profile
    path('profile/', views.profile, name='profile'),
]
