import logging

from django.conf import settings
from django.db.models import Count, Sum
from django.db.models.functions import Coalesce
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from bookmarkDesk.models import Bookmark
from bookmarkDesk.serializers import ReorderSerializer
from bookmarkDesk.utils.ordering import OrderingError, move_item, persist_positions
from profileDesk.permissions import IsOwnerOrAdmin
from storageDesk.services import StorageError, delete_file

from .models import UploadDraft, UserComic
from .serializers import (
    DraftDetailsSerializer,
    MovePageSerializer,
    PublicUserComicSerializer,
    UploadDraftSerializer,
    UserComicPageSerializer,
    UserComicSerializer,
    UserComicUpdateSerializer,
)
from .wizard import UploadWizard, WizardError

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    'slug_taken': status.HTTP_409_CONFLICT,
    'storage_error': status.HTTP_502_BAD_GATEWAY,
    'stale_order': status.HTTP_409_CONFLICT,
}


class UserComicPagination(PageNumberPagination):
    page_size = settings.USER_COMICS_PAGE_SIZE
    page_size_query_param = 'limit'
    max_page_size = 100


def error_response(message, code):
    return Response({"error": message, "code": code}, status=ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST))


def comic_stats(user):
    comics = UserComic.objects.filter(user=user)
    totals = comics.aggregate(
        total_comics=Count('id'),
        total_pages=Coalesce(Sum('page_count'), 0),
        total_views=Coalesce(Sum('view_count'), 0),
    )
    comic_ids = [str(pk) for pk in comics.values_list('id', flat=True)]
    totals['total_bookmarks'] = Bookmark.objects.filter(
        comic_type=Bookmark.TYPE_USER, comic_id__in=comic_ids
    ).count()
    return totals


class MyComicViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.DestroyModelMixin,
                     viewsets.GenericViewSet):
    """
    "My Comics" for the signed-in user. Admins may open, edit and delete any
    user comic by id; listings and stats always cover the caller's own comics.

    - GET    /api/user-comics/?page=            12 per page
    - GET    /api/user-comics/stats/
    - GET    /api/user-comics/<id>/
    - PATCH  /api/user-comics/<id>/
    - DELETE /api/user-comics/<id>/             also removes stored cover and pages
    - GET    /api/user-comics/<id>/pages/
    - POST   /api/user-comics/<id>/pages/reorder/
    """
    serializer_class = UserComicSerializer
    permission_classes = [IsAuthenticated, IsOwnerOrAdmin]
    pagination_class = UserComicPagination

    def get_queryset(self):
        queryset = UserComic.objects.prefetch_related('tags').order_by('-created_at')
        if self.detail and self.request.user.is_admin_role:
            return queryset
        return queryset.filter(user=self.request.user)

    def partial_update(self, request, pk=None):
        comic = self.get_object()
        serializer = UserComicUpdateSerializer(comic, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(UserComicSerializer(comic).data)

    def destroy(self, request, pk=None):
        comic = self.get_object()
        keys = [comic.cover_key] + list(comic.pages.values_list('storage_key', flat=True))
        try:
            for key in keys:
                delete_file(key)
        except StorageError as e:
            return error_response(str(e), 'storage_error')
        logger.info(f"User {request.user.id} deleted comic {comic.id} ({len(keys)} objects)")
        comic.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(comic_stats(request.user))

    @action(detail=True, methods=['get'])
    def pages(self, request, pk=None):
        comic = self.get_object()
        return Response(UserComicPageSerializer(comic.pages.order_by('page_number'), many=True).data)

    @action(detail=True, methods=['post'], url_path='pages/reorder')
    def reorder_pages(self, request, pk=None):
        comic = self.get_object()
        if comic.status != UserComic.STATUS_PUBLISHED:
            return error_response("Only published comics can be reordered", 'not_published')

        serializer = ReorderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        pages = comic.pages.all()
        try:
            if 'order' in data:
                order = data['order']
            else:
                current = list(pages.order_by('page_number').values_list('pk', flat=True))
                order = move_item(current, data['source'], data['destination'])
            persist_positions(
                pages, order, field='page_number', start=1,
                expected_order=data.get('expected_order'), unique=True,
            )
        except OrderingError as e:
            return error_response(str(e), e.code)

        return Response(UserComicPageSerializer(comic.pages.order_by('page_number'), many=True).data)


class PublicUserComicViewSet(viewsets.ReadOnlyModelViewSet):
    """Published user uploads, readable by anyone."""
    serializer_class = PublicUserComicSerializer
    permission_classes = [AllowAny]
    pagination_class = UserComicPagination
    lookup_field = 'slug'

    def get_queryset(self):
        return (
            UserComic.objects.filter(status=UserComic.STATUS_PUBLISHED)
            .select_related('user')
            .prefetch_related('tags')
            .order_by('-created_at')
        )

    @action(detail=True, methods=['get'])
    def pages(self, request, slug=None):
        comic = self.get_object()
        return Response(UserComicPageSerializer(comic.pages.order_by('page_number'), many=True).data)


class UploadDraftViewSet(viewsets.GenericViewSet):
    """
    The upload wizard.

    - POST   /api/user-comics/uploads/                      start a draft
    - GET    /api/user-comics/uploads/<id>/
    - DELETE /api/user-comics/uploads/<id>/                 discard
    - POST   /api/user-comics/uploads/<id>/cover/           multipart 'cover'
    - POST   /api/user-comics/uploads/<id>/pages/           multipart 'pages' (many) or 'zip'
    - DELETE /api/user-comics/uploads/<id>/pages/<pos>/
    - POST   /api/user-comics/uploads/<id>/pages/move/      { source, destination }
    - PATCH  /api/user-comics/uploads/<id>/details/
    - POST   /api/user-comics/uploads/<id>/next/
    - POST   /api/user-comics/uploads/<id>/back/
    - POST   /api/user-comics/uploads/<id>/submit/
    """
    serializer_class = UploadDraftSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = (JSONParser, MultiPartParser, FormParser)
    throttle_scope = 'upload'

    def get_queryset(self):
        return UploadDraft.objects.filter(user=self.request.user)

    def _wizard(self):
        return UploadWizard(self.get_object())

    def _draft_response(self, wizard, code=status.HTTP_200_OK):
        wizard.draft.refresh_from_db()
        return Response(UploadDraftSerializer(wizard.draft).data, status=code)

    def _run(self, wizard, operation, *args, **kwargs):
        try:
            operation(*args, **kwargs)
        except WizardError as e:
            return error_response(str(e), e.code)
        except StorageError as e:
            return error_response(str(e), 'storage_error')
        return self._draft_response(wizard)

    def list(self, request):
        drafts = self.get_queryset().exclude(state=UploadDraft.STATE_DONE)
        return Response(UploadDraftSerializer(drafts, many=True).data)

    def create(self, request):
        wizard = UploadWizard.start(request.user)
        return self._draft_response(wizard, code=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(UploadDraftSerializer(self.get_object()).data)

    def destroy(self, request, pk=None):
        wizard = self._wizard()
        try:
            wizard.discard()
        except WizardError as e:
            return error_response(str(e), e.code)
        except StorageError as e:
            return error_response(str(e), 'storage_error')
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def cover(self, request, pk=None):
        upload = request.FILES.get('cover')
        if upload is None:
            return error_response("No cover file provided", 'cover_required')
        wizard = self._wizard()
        return self._run(wizard, wizard.set_cover, upload)

    @action(detail=True, methods=['post'])
    def pages(self, request, pk=None):
        wizard = self._wizard()
        archive = request.FILES.get('zip')
        if archive is not None:
            return self._run(wizard, wizard.add_pages_from_zip, archive)
        files = request.FILES.getlist('pages')
        if not files:
            return error_response("No page files provided", 'pages_required')
        return self._run(wizard, wizard.add_pages, files)

    @action(detail=True, methods=['delete'], url_path=r'pages/(?P<position>\d+)')
    def remove_page(self, request, pk=None, position=None):
        wizard = self._wizard()
        return self._run(wizard, wizard.remove_page, int(position))

    @action(detail=True, methods=['post'], url_path='pages/move')
    def move_page(self, request, pk=None):
        serializer = MovePageSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        wizard = self._wizard()
        return self._run(
            wizard, wizard.move_page,
            serializer.validated_data['source'], serializer.validated_data['destination'],
        )

    @action(detail=True, methods=['patch'])
    def details(self, request, pk=None):
        serializer = DraftDetailsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        wizard = self._wizard()
        return self._run(wizard, wizard.set_details, **serializer.validated_data)

    @action(detail=True, methods=['post'], url_path='next')
    def advance(self, request, pk=None):
        wizard = self._wizard()
        return self._run(wizard, wizard.advance)

    @action(detail=True, methods=['post'])
    def back(self, request, pk=None):
        wizard = self._wizard()
        return self._run(wizard, wizard.back)

    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        wizard = self._wizard()
        try:
            comic = wizard.submit()
        except WizardError as e:
            return error_response(str(e), e.code)
        return Response(UserComicSerializer(comic).data, status=status.HTTP_201_CREATED)
