from rest_framework.routers import SimpleRouter

from .views import MyComicViewSet, PublicUserComicViewSet, UploadDraftViewSet

router = SimpleRouter()
router.register(r'uploads', UploadDraftViewSet, basename='upload-draft')
router.register(r'public', PublicUserComicViewSet, basename='public-user-comic')
router.register(r'', MyComicViewSet, basename='my-comic')

urlpatterns = router.urls
