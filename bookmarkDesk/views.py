import logging

from django.db import IntegrityError, transaction
from django.db.models import Count
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.generics import get_object_or_404
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import Bookmark, BookmarkFolder, DefaultFolderProtected, FolderLimitExceeded
from .serializers import (
    BookmarkCreateSerializer,
    BookmarkFolderSerializer,
    BookmarkSerializer,
    BookmarkStatusSerializer,
    ReorderSerializer,
    normalize_comic_id,
)
from .utils.ordering import OrderingError, move_item, next_position, persist_positions

logger = logging.getLogger(__name__)


def bookmark_stats(user):
    total_folders = BookmarkFolder.objects.filter(user=user).count()
    return {
        "total_folders": total_folders,
        "total_bookmarks": Bookmark.objects.filter(user=user).count(),
        "folders_remaining": max(user.max_bookmark_folders - total_folders, 0),
    }


def error(message, code, http_status=status.HTTP_400_BAD_REQUEST):
    return Response({"error": message, "code": code}, status=http_status)


def apply_reorder(queryset, data, start=0):
    """Run a validated ReorderSerializer payload against `queryset`."""
    if 'order' in data:
        order = data['order']
    else:
        current = list(queryset.order_by('display_order', 'pk').values_list('pk', flat=True))
        order = move_item(current, data['source'], data['destination'])
    return persist_positions(
        queryset, order, field='display_order', start=start,
        expected_order=data.get('expected_order'),
    )


class BookmarkFolderViewSet(viewsets.ModelViewSet):
    """
    Base path: /api/bookmarks/folders/

    - GET/POST          folders/
    - PATCH/DELETE      folders/<id>/
    - POST              folders/reorder/
    - GET               folders/stats/
    - GET               folders/status/<comic_type>/<comic_id>/
    - GET/POST          folders/<id>/bookmarks/
    - DELETE            folders/<id>/bookmarks/<bookmark_id>/
    - POST              folders/<id>/bookmarks/reorder/
    """
    serializer_class = BookmarkFolderSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None
    throttle_scope = 'bookmark'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return (
            BookmarkFolder.objects.filter(user=self.request.user)
            .annotate(bookmark_count=Count('bookmarks'))
            .order_by('display_order', 'created_at')
        )

    def _folders(self):
        return BookmarkFolder.objects.filter(user=self.request.user)

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            folder = serializer.save(user=request.user, display_order=next_position(self._folders()))
        except FolderLimitExceeded as e:
            return error(str(e), 'folder_limit')
        folder.bookmark_count = 0
        return Response(self.get_serializer(folder).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        folder = self.get_object()
        try:
            folder.delete()
        except DefaultFolderProtected as e:
            return error(str(e), 'default_folder')
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def reorder(self, request):
        serializer = ReorderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            apply_reorder(self._folders(), serializer.validated_data)
        except OrderingError as e:
            return error(str(e), e.code, status.HTTP_409_CONFLICT if e.code == 'stale_order' else status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(self.get_queryset(), many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(bookmark_stats(request.user))

    @action(detail=False, methods=['get'], url_path=r'status/(?P<comic_type>official|user)/(?P<comic_id>[^/]+)')
    def bookmark_status(self, request, comic_type=None, comic_id=None):
        folder_ids = list(
            Bookmark.objects.filter(
                user=request.user, comic_type=comic_type, comic_id=normalize_comic_id(comic_id)
            ).values_list('folder_id', flat=True)
        )
        serializer = BookmarkStatusSerializer({"is_bookmarked": bool(folder_ids), "folder_ids": folder_ids})
        return Response(serializer.data)

    @action(detail=True, methods=['get', 'post'])
    def bookmarks(self, request, pk=None):
        folder = get_object_or_404(self._folders(), pk=pk)
        if request.method == 'GET':
            items = folder.bookmarks.order_by('display_order', 'created_at')
            return Response(BookmarkSerializer(items, many=True).data)

        serializer = BookmarkCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        comic_type = serializer.validated_data['comic_type']
        comic_id = serializer.validated_data['comic_id']

        exists = Bookmark.objects.filter(
            user=request.user, folder=folder, comic_type=comic_type, comic_id=comic_id
        ).exists()
        if exists:
            return error("Already bookmarked in this folder", 'duplicate_bookmark', status.HTTP_409_CONFLICT)
        try:
            with transaction.atomic():
                bookmark = Bookmark.objects.create(
                    user=request.user,
                    folder=folder,
                    comic_type=comic_type,
                    comic_id=comic_id,
                    display_order=next_position(folder.bookmarks.all()),
                )
        except IntegrityError:
            return error("Already bookmarked in this folder", 'duplicate_bookmark', status.HTTP_409_CONFLICT)
        return Response(BookmarkSerializer(bookmark).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['delete'], url_path=r'bookmarks/(?P<bookmark_id>\d+)')
    def remove_bookmark(self, request, pk=None, bookmark_id=None):
        folder = get_object_or_404(self._folders(), pk=pk)
        deleted, _ = folder.bookmarks.filter(user=request.user, id=bookmark_id).delete()
        if deleted == 0:
            return Response(status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='bookmarks/reorder')
    def reorder_bookmarks(self, request, pk=None):
        folder = get_object_or_404(self._folders(), pk=pk)
        serializer = ReorderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            apply_reorder(folder.bookmarks.all(), serializer.validated_data)
        except OrderingError as e:
            return error(str(e), e.code, status.HTTP_409_CONFLICT if e.code == 'stale_order' else status.HTTP_400_BAD_REQUEST)
        items = folder.bookmarks.order_by('display_order', 'created_at')
        return Response(BookmarkSerializer(items, many=True).data)
