import logging

from rest_framework import viewsets, status, permissions
from rest_framework.response import Response
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser

from storageDesk.services import StorageError, avatar_key, put_object

from .models import CustomUser
from .serializers import (
    AccountDeleteSerializer,
    AvatarUploadSerializer,
    PasswordChangeSerializer,
    PreferencesSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    PublicUserSerializer,
)

logger = logging.getLogger(__name__)


class ProfileViewSet(viewsets.ViewSet):
    """
    Settings dashboard for the signed-in user.

    - GET    /api/profile/                 -> full profile
    - PATCH  /api/profile/                 -> username / display_name / bio
    - DELETE /api/profile/                 -> delete account (body: {"password"})
    - POST   /api/profile/avatar/          -> multipart 'avatar'
    - PATCH  /api/profile/preferences/     -> theme / notification_preferences
    - POST   /api/profile/password/        -> change password
    """
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = (JSONParser, MultiPartParser, FormParser)

    def retrieve(self, request, pk=None):
        return Response(ProfileSerializer(request.user).data, status=status.HTTP_200_OK)

    def update(self, request, pk=None):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(ProfileSerializer(request.user).data, status=status.HTTP_200_OK)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    def destroy(self, request, pk=None):
        serializer = AccountDeleteSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        user = request.user
        logger.info(f"Deleting account {user.username}")
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def avatar(self, request):
        serializer = AvatarUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = request.user
        try:
            stored = put_object(avatar_key(user.id), serializer.validated_data['avatar'])
        except StorageError as e:
            return Response({"error": str(e), "code": "storage_error"}, status=status.HTTP_502_BAD_GATEWAY)

        user.avatar_url = stored.url
        user.save(update_fields=['avatar_url', 'updated_at'])
        return Response({"avatar_url": user.avatar_url}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['patch'])
    def preferences(self, request):
        serializer = PreferencesSerializer(request.user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_200_OK)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    @action(detail=False, methods=['post'])
    def password(self, request):
        serializer = PasswordChangeSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        user = request.user
        user.set_password(serializer.validated_data['new_password'])
        user.save(update_fields=['password', 'updated_at'])
        logger.info(f"Password changed for {user.username}")
        return Response({"message": "Password updated successfully"}, status=status.HTTP_200_OK)


# Public user details by ID (read-only, limited fields)
class UserViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = CustomUser.objects.filter(is_active=True).order_by('id')
    serializer_class = PublicUserSerializer
    permission_classes = [permissions.IsAuthenticated]
