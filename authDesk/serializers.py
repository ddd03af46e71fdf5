import re

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from profileDesk.models import CustomUser


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {
        'token': str(refresh.access_token),
        'refresh_token': str(refresh),
        'userId': user.id,
        'username': user.username,
    }


class SignupSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ['username', 'email', 'display_name', 'password']
        extra_kwargs = {
            'password': {'write_only': True},
            'email': {'required': True},
            'display_name': {'required': False},
        }

    def validate_username(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Username cannot be empty.")
        if not re.match(r'^[A-Za-z0-9_.-]+$', value):
            raise serializers.ValidationError("Username can only contain letters, numbers, underscores, dots, or hyphens.")
        if CustomUser.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("This username is already taken.")
        return value

    def validate_email(self, value):
        value = value.lower()
        if CustomUser.objects.filter(email=value).exists():
            raise serializers.ValidationError("This email is already registered.")
        return value

    def validate(self, attrs):
        candidate = CustomUser(username=attrs.get('username'), email=attrs.get('email'))
        validate_password(attrs['password'], user=candidate)
        return attrs

    def create(self, validated_data):
        return CustomUser.objects.create_user(
            username=validated_data['username'],
            email=validated_data['email'],
            password=validated_data['password'],
            display_name=validated_data.get('display_name', ''),
        )


class LoginSerializer(serializers.Serializer):
    username_or_email = serializers.CharField(required=True)
    password = serializers.CharField(write_only=True, required=True)

    def validate(self, data):
        username_or_email = data.get('username_or_email').strip()
        password = data.get('password')

        if '@' in username_or_email:
            user = CustomUser.objects.filter(email=username_or_email.lower()).first()
        else:
            user = CustomUser.objects.filter(username__iexact=username_or_email).first()

        if user is None or not user.check_password(password):
            raise serializers.ValidationError("Invalid username/email or password.")

        if not user.is_active:
            raise serializers.ValidationError("User account is disabled.")

        return issue_tokens(user)
