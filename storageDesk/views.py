import logging

from django.db import connection, DatabaseError
from rest_framework import permissions, status
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from profileDesk.permissions import IsAdminRole

from .services import StorageError, ad_prefix, get_signed_url, list_files, upload_file

logger = logging.getLogger(__name__)

TEST_UPLOAD_PREFIX = 'test-uploads'


class ConnectivityCheckView(APIView):
    """
    GET  /api/test/  -> database round-trip
    POST /api/test/  -> multipart 'file' stored under test-uploads/
    """
    permission_classes = [permissions.AllowAny]
    parser_classes = (MultiPartParser, FormParser)

    def get(self, request):
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                row = cursor.fetchone()
        except DatabaseError as e:
            logger.error(f"Database connectivity check failed: {e}")
            return Response(
                {"success": False, "message": "Database connection failed", "error": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response({"success": True, "message": "Database connection successful", "data": list(row)})

    def post(self, request):
        file = request.FILES.get('file')
        if not file:
            return Response({"success": False, "message": "No file provided"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            stored = upload_file(file, TEST_UPLOAD_PREFIX)
        except StorageError as e:
            return Response(
                {"success": False, "message": "File upload failed", "error": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response({"success": True, "message": "File upload successful", "url": stored.url, "key": stored.key})


class AdListView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, position=None):
        try:
            ads = list_files(ad_prefix(position))
        except StorageError as e:
            return Response({"error": str(e), "code": "storage_error"}, status=status.HTTP_502_BAD_GATEWAY)
        return Response({"position": position, "ads": [{"key": a.key, "url": a.url} for a in ads]})


class SignedUrlView(APIView):
    """
    GET /api/storage/signed-url/?key=<key>&expires_in=<seconds>
    Users may only sign keys they own; admins may sign any key.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        key = (request.query_params.get('key') or '').strip().lstrip('/')
        if not key or '..' in key.split('/'):
            return Response({"error": "key is required", "code": "bad_request"}, status=status.HTTP_400_BAD_REQUEST)

        user = request.user
        owned = key.startswith(f"user-comics/{user.id}/") or key == f"avatars/{user.id}.jpg"
        if not owned and not IsAdminRole().has_permission(request, self):
            return Response({"error": "Not allowed to sign this key", "code": "forbidden"}, status=status.HTTP_403_FORBIDDEN)

        try:
            expires_in = int(request.query_params.get('expires_in') or 0) or None
        except ValueError:
            return Response({"error": "expires_in must be an integer", "code": "bad_request"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            url = get_signed_url(key, expires_in)
        except StorageError as e:
            return Response({"error": str(e), "code": "storage_error"}, status=status.HTTP_502_BAD_GATEWAY)
        return Response({"key": key, "url": url})
