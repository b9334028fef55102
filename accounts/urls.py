from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    CustomerRegistrationView,
    CustomTokenObtainPairView,
    UserProfileView,
    LogoutView,
)

app_name = 'accounts'

urlpatterns = [
    # Authentication endpoints
    path('register/', CustomerRegistrationView.as_view(), name='register'),
    path('login/', CustomTokenObtainPairView.as_view(), name='login'),
    path('logout/', LogoutView.as_view(), name='logout'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # User profile endpoints
    path('profile/', UserProfileView.as_view(), name='profile'),
]
