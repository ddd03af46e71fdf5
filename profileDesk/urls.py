from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import ProfileViewSet, UserViewSet

# Router for read-only public users
router_users = DefaultRouter()
router_users.register(r'users', UserViewSet, basename='user')  # /users/

profile_patterns = [
    path('profile/avatar/', ProfileViewSet.as_view({'post': 'avatar'}), name='profile-avatar'),
    path('profile/preferences/', ProfileViewSet.as_view({'patch': 'preferences'}), name='profile-preferences'),
    path('profile/password/', ProfileViewSet.as_view({'post': 'password'}), name='profile-password'),
    path(
        'profile/',
        ProfileViewSet.as_view({'get': 'retrieve', 'patch': 'update', 'delete': 'destroy'}),
        name='profile-detail',
    ),
]

urlpatterns = profile_patterns + router_users.urls
