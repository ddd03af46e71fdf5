from django.conf import settings
from rest_framework import serializers

from comicDesk.models import Genre
from comicDesk.serializers import GenreSerializer
from profileDesk.serializers import AuthorSerializer

from .models import UploadDraft, UploadDraftPage, UserComic, UserComicPage


class UserComicPageSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserComicPage
        fields = ['id', 'page_number', 'image_url']


class UserComicSerializer(serializers.ModelSerializer):
    tags = GenreSerializer(many=True, read_only=True)

    class Meta:
        model = UserComic
        fields = [
            'id',
            'title',
            'slug',
            'description',
            'artist',
            'language',
            'cover_image_url',
            'page_count',
            'status',
            'view_count',
            'tags',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PublicUserComicSerializer(UserComicSerializer):
    user = AuthorSerializer(read_only=True)

    class Meta(UserComicSerializer.Meta):
        fields = UserComicSerializer.Meta.fields + ['user']
        read_only_fields = fields


class UserComicUpdateSerializer(serializers.ModelSerializer):
    tag_ids = serializers.PrimaryKeyRelatedField(
        queryset=Genre.objects.all(), many=True, required=False, source='tags'
    )

    class Meta:
        model = UserComic
        fields = ['title', 'description', 'artist', 'language', 'status', 'tag_ids']
        extra_kwargs = {
            'title': {'required': False},
            'artist': {'required': False},
        }

    def validate_title(self, value):
        if not value.strip():
            raise serializers.ValidationError("Title cannot be blank.")
        return value.strip()

    def validate_artist(self, value):
        if not value.strip():
            raise serializers.ValidationError("Artist cannot be blank.")
        return value.strip()


class UploadDraftPageSerializer(serializers.ModelSerializer):
    class Meta:
        model = UploadDraftPage
        fields = ['id', 'position', 'original_name', 'size']


class UploadDraftSerializer(serializers.ModelSerializer):
    pages = UploadDraftPageSerializer(many=True, read_only=True)
    tags = GenreSerializer(many=True, read_only=True)
    has_cover = serializers.SerializerMethodField()
    max_pages = serializers.SerializerMethodField()

    class Meta:
        model = UploadDraft
        fields = [
            'id',
            'state',
            'has_cover',
            'cover_name',
            'title',
            'artist',
            'description',
            'language',
            'tags',
            'pages',
            'max_pages',
            'error',
            'comic',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_has_cover(self, obj):
        return bool(obj.cover_key)

    def get_max_pages(self, obj):
        return settings.UPLOAD_MAX_PAGES


class DraftDetailsSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    artist = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    language = serializers.CharField(max_length=16, required=False)
    tag_ids = serializers.ListField(child=serializers.IntegerField(), required=False)


class MovePageSerializer(serializers.Serializer):
    source = serializers.IntegerField()
    destination = serializers.IntegerField()
