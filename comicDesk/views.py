import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import F, Q

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from creditDesk.services import InsufficientCredits, debit_credits

from .models import Chapter, ChapterAccess, Comic, Comment, Genre
from .serializers import (
    ChapterSerializer,
    ComicDetailSerializer,
    ComicSerializer,
    CommentCreateSerializer,
    CommentSerializer,
    GenreSerializer,
    PageSerializer,
)
from .signals import GENRE_CACHE_KEY

logger = logging.getLogger(__name__)

DEFAULT_SHELF_SIZE = 6
MAX_SHELF_SIZE = 50


# -------------------------
# Pagination
# -------------------------
class ComicPagination(PageNumberPagination):
    page_size = settings.COMICS_PAGE_SIZE
    page_size_query_param = 'limit'
    max_page_size = 100


# -------------------------
# Helpers
# -------------------------
def _shelf_size(request):
    try:
        limit = int(request.query_params.get('limit', DEFAULT_SHELF_SIZE))
    except (TypeError, ValueError):
        return DEFAULT_SHELF_SIZE
    return max(1, min(limit, MAX_SHELF_SIZE))


def _viewer_key(request):
    if request.user is not None:
        return f"u{request.user.id}"
    return f"ip{request.META.get('REMOTE_ADDR', 'unknown')}"


def can_read(user, chapter: Chapter) -> bool:
    if not chapter.is_premium:
        return True
    if user is None:
        return False
    if user.is_admin_role:
        return True
    return ChapterAccess.objects.filter(user=user, chapter=chapter).exists()


def comic_queryset():
    return Comic.objects.select_related('author').prefetch_related('genres')


class ComicViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Base path: /api/comics/

    - GET  /api/comics/?page=&limit=        newest first, paginated
    - GET  /api/comics/<slug>/
    - GET  /api/comics/latest/?limit=
    - GET  /api/comics/popular/?limit=
    - GET  /api/comics/search/?q=
    - GET  /api/comics/<slug>/chapters/
    - GET  /api/comics/<slug>/comments/?chapter=
    - POST /api/comics/<slug>/comments/
    - POST /api/comics/<slug>/view/
    """
    serializer_class = ComicSerializer
    pagination_class = ComicPagination
    permission_classes = [IsAuthenticatedOrReadOnly]
    lookup_field = 'slug'

    def get_queryset(self):
        queryset = comic_queryset().order_by('-created_at')
        genre = self.request.query_params.get('genre')
        if genre:
            queryset = queryset.filter(genres__slug=genre)
        return queryset

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return ComicDetailSerializer
        return ComicSerializer

    def get_permissions(self):
        if self.action == 'record_view':
            return [AllowAny()]
        return super().get_permissions()

    def get_throttles(self):
        if self.action == 'comments' and self.request.method == 'POST':
            self.throttle_scope = 'comment'
        return super().get_throttles()

    @action(detail=False, methods=['get'])
    def latest(self, request):
        comics = comic_queryset().order_by('-created_at')[:_shelf_size(request)]
        return Response(ComicSerializer(comics, many=True).data)

    @action(detail=False, methods=['get'])
    def popular(self, request):
        comics = comic_queryset().order_by('-view_count', '-created_at')[:_shelf_size(request)]
        return Response(ComicSerializer(comics, many=True).data)

    @action(detail=False, methods=['get'])
    def search(self, request):
        query = (request.query_params.get('q') or '').strip()
        if not query:
            return Response({"error": "q is required", "code": "bad_request"}, status=status.HTTP_400_BAD_REQUEST)
        queryset = comic_queryset().filter(
            Q(title__icontains=query) | Q(description__icontains=query)
        ).order_by('-view_count', '-created_at')
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(ComicSerializer(page, many=True).data)

    @action(detail=True, methods=['get'])
    def chapters(self, request, slug=None):
        comic = self.get_object()
        chapters = comic.chapters.order_by('chapter_number')
        return Response(ChapterSerializer(chapters, many=True).data)

    @action(detail=True, methods=['get', 'post'])
    def comments(self, request, slug=None):
        comic = self.get_object()
        if request.method == 'POST':
            serializer = CommentCreateSerializer(
                data=request.data, context={'request': request, 'comic': comic}
            )
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            comment = serializer.save()
            return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)

        qs = Comment.objects.filter(comic=comic, parent__isnull=True).select_related('user')
        chapter_id = request.query_params.get('chapter')
        if chapter_id:
            qs = qs.filter(chapter_id=chapter_id)
        return Response(CommentSerializer(qs.order_by('-created_at'), many=True).data)

    @action(detail=True, methods=['post'], url_path='view')
    def record_view(self, request, slug=None):
        comic = self.get_object()
        key = f"comic:viewed:{_viewer_key(request)}:{comic.slug}"
        # cache.add is a no-op while the key is alive
        counted = cache.add(key, True, timeout=settings.VIEW_DEDUP_SECONDS)
        if counted:
            Comic.objects.filter(pk=comic.pk).update(view_count=F('view_count') + 1)
            comic.refresh_from_db(fields=['view_count'])
        return Response({"view_count": comic.view_count, "counted": counted}, status=status.HTTP_200_OK)


class GenreViewSet(viewsets.ReadOnlyModelViewSet):
    """
    - GET /api/comics/genres/                  cached
    - GET /api/comics/genres/<slug>/comics/    paginated
    """
    queryset = Genre.objects.all()
    serializer_class = GenreSerializer
    permission_classes = [AllowAny]
    pagination_class = None
    lookup_field = 'slug'

    def list(self, request):
        data = cache.get(GENRE_CACHE_KEY)
        if data is None:
            data = GenreSerializer(self.get_queryset().order_by('name'), many=True).data
            cache.set(GENRE_CACHE_KEY, data, timeout=60 * 60)
        return Response(data)

    @action(detail=True, methods=['get'])
    def comics(self, request, slug=None):
        genre = self.get_object()
        queryset = comic_queryset().filter(genres=genre).order_by('-created_at')
        paginator = ComicPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(ComicSerializer(page, many=True).data)


class ChapterViewSet(viewsets.ReadOnlyModelViewSet):
    """
    - GET  /api/comics/chapters/<id>/
    - GET  /api/comics/chapters/<id>/pages/
    - GET  /api/comics/chapters/<id>/read/
    - POST /api/comics/chapters/<id>/unlock/
    """
    queryset = Chapter.objects.select_related('comic')
    serializer_class = ChapterSerializer
    permission_classes = [IsAuthenticatedOrReadOnly]

    def list(self, request):
        return Response({"error": "List chapters through their comic", "code": "bad_request"},
                        status=status.HTTP_400_BAD_REQUEST)

    @action(detail=True, methods=['get'])
    def pages(self, request, pk=None):
        chapter = self.get_object()
        if not can_read(request.user, chapter):
            return Response({"error": "Chapter is locked", "code": "locked"}, status=status.HTTP_403_FORBIDDEN)
        return Response(PageSerializer(chapter.pages.order_by('page_number'), many=True).data)

    @action(detail=True, methods=['get'])
    def read(self, request, pk=None):
        chapter = self.get_object()
        unlocked = can_read(request.user, chapter)
        pages = chapter.pages.order_by('page_number') if unlocked else []
        previous_chapter = chapter.get_previous_chapter()
        next_chapter = chapter.get_next_chapter()
        return Response({
            "comic": {"id": str(chapter.comic_id), "slug": chapter.comic.slug, "title": chapter.comic.title},
            "chapter": ChapterSerializer(chapter).data,
            "locked": not unlocked,
            "pages": PageSerializer(pages, many=True).data,
            "previous_chapter_id": previous_chapter.id if previous_chapter else None,
            "next_chapter_id": next_chapter.id if next_chapter else None,
        })

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def unlock(self, request, pk=None):
        """
        - 200: { "unlocked": true, "source": "already" | "free" }
        - 201: { "unlocked": true, "source": "credits", "balance": <int> }
        - 400: { "error": ..., "code": "insufficient_credits", "balance": <int> }
        """
        chapter = self.get_object()
        user = request.user

        if ChapterAccess.objects.filter(user=user, chapter=chapter).exists() or user.is_admin_role:
            return Response({"unlocked": True, "source": "already"}, status=status.HTTP_200_OK)

        if not chapter.is_premium or chapter.credit_cost == 0:
            ChapterAccess.objects.get_or_create(
                user=user, chapter=chapter, defaults={'source': ChapterAccess.SOURCE_GRANT}
            )
            return Response({"unlocked": True, "source": "free"}, status=status.HTTP_200_OK)

        with transaction.atomic():
            try:
                result = debit_credits(
                    user,
                    chapter.credit_cost,
                    description=f"Unlocked {chapter.comic.title} {chapter.label}",
                    idempotency_key=f"unlock:user:{user.id}:chapter:{chapter.id}",
                )
            except InsufficientCredits as e:
                return Response(
                    {"error": "Insufficient credits", "code": e.code, "balance": e.balance},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            ChapterAccess.objects.get_or_create(
                user=user, chapter=chapter, defaults={'source': ChapterAccess.SOURCE_CREDITS}
            )

        logger.info(f"User {user.id} unlocked chapter {chapter.id} for {chapter.credit_cost} credits")
        return Response(
            {"unlocked": True, "source": "credits", "balance": result.balance},
            status=status.HTTP_201_CREATED,
        )
