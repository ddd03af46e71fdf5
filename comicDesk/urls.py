from rest_framework.routers import SimpleRouter

from .views import ChapterViewSet, ComicViewSet, GenreViewSet

router = SimpleRouter()
# Fixed prefixes first; the comic slug route would otherwise swallow them.
router.register(r'genres', GenreViewSet, basename='genre')
router.register(r'chapters', ChapterViewSet, basename='chapter')
router.register(r'', ComicViewSet, basename='comic')

urlpatterns = router.urls
