import re

from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import CustomUser

USERNAME_RE = re.compile(r'^[A-Za-z0-9_.-]+$')
AVATAR_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif')


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = [
            'id', 'username', 'email', 'display_name', 'avatar_url', 'bio',
            'role', 'credits', 'theme', 'notification_preferences',
            'max_bookmark_folders', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ['username', 'display_name', 'bio']
        extra_kwargs = {
            'username': {'required': False},
            'display_name': {'required': False},
            'bio': {'required': False},
        }

    def validate_username(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Username cannot be empty.")
        if not USERNAME_RE.match(value):
            raise serializers.ValidationError("Username can only contain letters, numbers, underscores, dots, or hyphens.")
        taken = CustomUser.objects.filter(username__iexact=value).exclude(pk=self.instance.pk).exists()
        if taken:
            raise serializers.ValidationError("This username is already taken.")
        return value

    def validate_bio(self, value):
        if value and len(value) > 1000:
            raise serializers.ValidationError("Bio must not exceed 1000 characters.")
        return value


class AvatarUploadSerializer(serializers.Serializer):
    avatar = serializers.ImageField()

    def validate_avatar(self, value):
        if value.size > settings.AVATAR_MAX_BYTES:
            raise serializers.ValidationError("Image size must not exceed 2MB.")
        if not value.name.lower().endswith(AVATAR_EXTENSIONS):
            raise serializers.ValidationError("Only JPG, PNG, and GIF formats are allowed.")
        return value


class NotificationPreferencesSerializer(serializers.Serializer):
    email = serializers.BooleanField(default=True)
    site = serializers.BooleanField(default=True)


class PreferencesSerializer(serializers.ModelSerializer):
    notification_preferences = NotificationPreferencesSerializer(required=False)

    class Meta:
        model = CustomUser
        fields = ['theme', 'notification_preferences']
        extra_kwargs = {'theme': {'required': False}}

    def update(self, instance, validated_data):
        instance.theme = validated_data.get('theme', instance.theme)
        prefs = validated_data.get('notification_preferences')
        if prefs is not None:
            merged = dict(instance.notification_preferences or {})
            merged.update(prefs)
            instance.notification_preferences = merged
        instance.save(update_fields=['theme', 'notification_preferences', 'updated_at'])
        return instance


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)
    confirm_password = serializers.CharField(write_only=True)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect.")
        return value

    def validate(self, attrs):
        if attrs['new_password'] != attrs['confirm_password']:
            raise serializers.ValidationError({"confirm_password": "New passwords do not match."})
        if len(attrs['new_password']) < 8:
            raise serializers.ValidationError({"new_password": "Password must be at least 8 characters long."})
        validate_password(attrs['new_password'], user=self.context['request'].user)
        return attrs


class AccountDeleteSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True)

    def validate_password(self, value):
        if not self.context['request'].user.check_password(value):
            raise serializers.ValidationError("Password is incorrect.")
        return value


# Public user details (limited fields)
class PublicUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ['id', 'username', 'display_name', 'avatar_url', 'bio']
        read_only_fields = fields


class AuthorSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomUser
        fields = ['id', 'username', 'display_name', 'avatar_url']
        read_only_fields = fields
