from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from bookmarkDesk.views import bookmark_stats
from readingActivityDesk.models import ReadingProgress
from readingActivityDesk.serializers import ReadingProgressSerializer
from userComicDesk.views import comic_stats

CONTINUE_READING_SIZE = 3


class DashboardViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def list(self, request):
        user = request.user
        recent = (
            ReadingProgress.objects.filter(user=user)
            .select_related('comic', 'chapter')
            .order_by('-last_read_at')[:CONTINUE_READING_SIZE]
        )
        return Response({
            "profile": {
                "id": user.id,
                "username": user.username,
                "display_name": user.display_name,
                "avatar_url": user.avatar_url,
                "role": user.role,
                "credits": user.credits,
            },
            "comic_stats": comic_stats(user),
            "bookmark_stats": bookmark_stats(user),
            "continue_reading": ReadingProgressSerializer(recent, many=True).data,
        })
