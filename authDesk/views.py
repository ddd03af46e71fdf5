import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST
from rest_framework import viewsets, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .serializers import LoginSerializer, SignupSerializer, issue_tokens

logger = logging.getLogger(__name__)


class AuthViewSet(viewsets.GenericViewSet):
    """
    Session boundary. A successful signup/login hands out a JWT pair; every
    later request carries the access token and DRF resolves it to request.user.
    """
    permission_classes = [AllowAny]

    def get_serializer_class(self):
        if self.action == 'register':
            return SignupSerializer
        elif self.action == 'login':
            return LoginSerializer
        return None

    def register(self, request):
        serializer = self.get_serializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            logger.info(f"User registered: {user.username}")
            return Response(issue_tokens(user), status=status.HTTP_201_CREATED)
        logger.warning(f"Registration failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    def login(self, request):
        serializer = self.get_serializer(data=request.data)
        if serializer.is_valid():
            user_data = serializer.validated_data
            logger.info(f"User logged in: {user_data['username']}")
            return Response(user_data, status=status.HTTP_200_OK)
        logger.warning(f"Login failed for {request.data.get('username_or_email')}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@csrf_exempt
@require_POST
def logout_view(request):
    try:
        data = json.loads(request.body.decode('utf-8') or '{}')
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Failed to decode logout body: {e}")
        return JsonResponse({"error": "Invalid JSON format"}, status=400)

    refresh_token = data.get('refresh_token')
    if not refresh_token:
        return JsonResponse({"error": "Refresh token is required"}, status=400)

    try:
        RefreshToken(refresh_token).blacklist()
    except TokenError as e:
        logger.warning(f"Logout with invalid token: {e}")
        return JsonResponse({"error": f"Invalid token: {e}"}, status=400)

    logger.info("Refresh token blacklisted")
    return JsonResponse({"message": "Logged out successfully"}, status=200)
