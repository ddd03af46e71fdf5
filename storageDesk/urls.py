from django.urls import path

from .views import AdListView, ConnectivityCheckView, SignedUrlView

urlpatterns = [
    path('test/', ConnectivityCheckView.as_view(), name='connectivity-check'),
    path('storage/ads/<slug:position>/', AdListView.as_view(), name='storage-ads'),
    path('storage/signed-url/', SignedUrlView.as_view(), name='storage-signed-url'),
]
