import re
from uuid import UUID

from rest_framework import serializers

from comicDesk.models import Comic
from userComicDesk.models import UserComic

from .models import Bookmark, BookmarkFolder

COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')


def normalize_comic_id(value) -> str:
    """Lower-case canonical UUID string, so lookups and uniqueness agree."""
    try:
        return str(UUID(str(value))).lower()
    except (TypeError, ValueError):
        raise serializers.ValidationError("comic_id must be a UUID.")


def resolve_comic(comic_type, comic_id):
    model = Comic if comic_type == Bookmark.TYPE_OFFICIAL else UserComic
    return model.objects.only('id', 'title', 'slug', 'cover_image_url').filter(id=comic_id).first()


class BookmarkFolderSerializer(serializers.ModelSerializer):
    bookmark_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = BookmarkFolder
        fields = [
            'id', 'name', 'is_default', 'display_order', 'color', 'icon',
            'bookmark_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'is_default', 'display_order', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Folder name cannot be empty.")
        return value

    def validate_color(self, value):
        if not COLOR_RE.match(value):
            raise serializers.ValidationError("Color must look like #RRGGBB.")
        return value


class BookmarkSerializer(serializers.ModelSerializer):
    title = serializers.SerializerMethodField()
    slug = serializers.SerializerMethodField()
    cover_image_url = serializers.SerializerMethodField()

    class Meta:
        model = Bookmark
        fields = [
            'id', 'folder', 'comic_type', 'comic_id', 'display_order',
            'title', 'slug', 'cover_image_url', 'created_at',
        ]

    def _comic(self, obj):
        cache = self.context.setdefault('_comics', {})
        key = (obj.comic_type, obj.comic_id)
        if key not in cache:
            cache[key] = resolve_comic(obj.comic_type, obj.comic_id)
        return cache[key]

    def get_title(self, obj):
        comic = self._comic(obj)
        return comic.title if comic else "Unknown"

    def get_slug(self, obj):
        comic = self._comic(obj)
        return comic.slug if comic else None

    def get_cover_image_url(self, obj):
        comic = self._comic(obj)
        return comic.cover_image_url if comic else None


class BookmarkCreateSerializer(serializers.Serializer):
    comic_type = serializers.ChoiceField(choices=[c[0] for c in Bookmark.TYPE_CHOICES], default=Bookmark.TYPE_OFFICIAL)
    comic_id = serializers.CharField()

    def validate(self, attrs):
        attrs['comic_id'] = normalize_comic_id(attrs['comic_id'])
        if resolve_comic(attrs['comic_type'], attrs['comic_id']) is None:
            raise serializers.ValidationError({"comic_id": "Comic not found."})
        return attrs


class ReorderSerializer(serializers.Serializer):
    """Either the full new `order` of ids, or one move from `source` to `destination`."""
    order = serializers.ListField(child=serializers.CharField(), required=False)
    source = serializers.IntegerField(required=False)
    destination = serializers.IntegerField(required=False)
    expected_order = serializers.ListField(child=serializers.CharField(), required=False)

    def validate(self, attrs):
        has_order = 'order' in attrs
        has_move = 'source' in attrs and 'destination' in attrs
        if has_order == has_move:
            raise serializers.ValidationError("Send either 'order' or both 'source' and 'destination'.")
        return attrs


class BookmarkStatusSerializer(serializers.Serializer):
    is_bookmarked = serializers.BooleanField()
    folder_ids = serializers.ListField(child=serializers.UUIDField())
