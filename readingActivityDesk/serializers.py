from rest_framework import serializers

from comicDesk.models import Chapter

from .models import ReadingProgress


class ReadingProgressSerializer(serializers.ModelSerializer):
    comic_slug = serializers.CharField(source="comic.slug", read_only=True)
    comic_title = serializers.CharField(source="comic.title", read_only=True)
    cover_image_url = serializers.CharField(source="comic.cover_image_url", read_only=True)
    chapter_number = serializers.IntegerField(source="chapter.chapter_number", read_only=True)
    chapter_label = serializers.CharField(source="chapter.label", read_only=True)
    page_count = serializers.IntegerField(source="chapter.page_count", read_only=True)

    class Meta:
        model = ReadingProgress
        fields = [
            "comic", "comic_slug", "comic_title", "cover_image_url",
            "chapter", "chapter_number", "chapter_label",
            "page_number", "page_count", "last_read_at",
        ]


class ProgressWriteSerializer(serializers.Serializer):
    chapter_id = serializers.IntegerField()
    page_number = serializers.IntegerField(min_value=1)

    def validate(self, attrs):
        chapter = Chapter.objects.select_related("comic").filter(id=attrs["chapter_id"]).first()
        if chapter is None:
            raise serializers.ValidationError({"chapter_id": "Chapter not found."})
        if chapter.page_count and attrs["page_number"] > chapter.page_count:
            raise serializers.ValidationError(
                {"page_number": f"Chapter has only {chapter.page_count} pages."}
            )
        attrs["chapter"] = chapter
        return attrs
