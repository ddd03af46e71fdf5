from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/auth/', include('authDesk.urls')),
    path('api/', include('profileDesk.urls')),
    path('api/comics/', include('comicDesk.urls')),
    path('api/user-comics/', include('userComicDesk.urls')),
    path('api/bookmarks/', include('bookmarkDesk.urls')),
    path('api/activity/', include('readingActivityDesk.urls')),
    path('api/credits/', include('creditDesk.urls')),
    path('api/dashboard/', include('dashboardDesk.urls')),

    # Storage helpers and connectivity checks
    path('api/', include('storageDesk.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

if getattr(settings, 'ENABLE_DEBUG_TOOLBAR', False):
    import debug_toolbar
    urlpatterns = [path('__debug__/', include(debug_toolbar.urls))] + urlpatterns
