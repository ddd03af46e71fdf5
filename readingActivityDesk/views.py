from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import ReadingProgress
from .serializers import ProgressWriteSerializer, ReadingProgressSerializer

READING_LIST_SIZE = 10


class ReadingListView(generics.ListAPIView):
    """Most recently read comics, newest first."""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = ReadingProgressSerializer
    pagination_class = None

    def get_queryset(self):
        qs = ReadingProgress.objects.filter(user=self.request.user).select_related("comic", "chapter")
        return qs.order_by("-last_read_at")[:READING_LIST_SIZE]


class ProgressUpsertView(APIView):
    """
    POST: { "chapter_id": <int>, "page_number": <int> } records where the
    reader is. One row per (user, comic); later calls overwrite it.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        s = ProgressWriteSerializer(data=request.data)
        if not s.is_valid():
            return Response(s.errors, status=status.HTTP_400_BAD_REQUEST)
        chapter = s.validated_data["chapter"]

        obj, created = ReadingProgress.objects.update_or_create(
            user=request.user,
            comic=chapter.comic,
            defaults={"chapter": chapter, "page_number": s.validated_data["page_number"]},
        )
        return Response(
            ReadingProgressSerializer(obj).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class ComicProgressView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, comic_id):
        obj = ReadingProgress.objects.select_related("comic", "chapter").filter(
            user=request.user, comic_id=comic_id
        ).first()
        if obj is None:
            return Response({"progress": None})
        return Response({"progress": ReadingProgressSerializer(obj).data})

    def delete(self, request, comic_id):
        deleted, _ = ReadingProgress.objects.filter(user=request.user, comic_id=comic_id).delete()
        if deleted == 0:
            return Response(status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)
