from rest_framework import serializers

from profileDesk.serializers import AuthorSerializer

from .models import Chapter, Comic, Comment, Genre, Page


class GenreSerializer(serializers.ModelSerializer):
    class Meta:
        model = Genre
        fields = ['id', 'name', 'slug', 'color']


class ComicSerializer(serializers.ModelSerializer):
    author = AuthorSerializer(read_only=True)
    genres = GenreSerializer(many=True, read_only=True)

    class Meta:
        model = Comic
        fields = [
            'id',
            'title',
            'slug',
            'description',
            'cover_image_url',
            'status',
            'publication_date',
            'view_count',
            'author',
            'genres',
            'created_at',
            'updated_at',
        ]


class ComicDetailSerializer(ComicSerializer):
    chapter_count = serializers.SerializerMethodField()

    class Meta(ComicSerializer.Meta):
        fields = ComicSerializer.Meta.fields + ['chapter_count']

    def get_chapter_count(self, obj):
        return obj.chapters.count()


class ChapterSerializer(serializers.ModelSerializer):
    label = serializers.CharField(read_only=True)

    class Meta:
        model = Chapter
        fields = [
            'id',
            'comic',
            'title',
            'label',
            'chapter_number',
            'description',
            'is_premium',
            'credit_cost',
            'page_count',
            'published_at',
        ]


class PageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Page
        fields = ['id', 'page_number', 'image_url']


class CommentReplySerializer(serializers.ModelSerializer):
    user = AuthorSerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'user', 'parent', 'content', 'created_at']


class CommentSerializer(serializers.ModelSerializer):
    """
    Top-level comment with its direct replies (oldest first).
    """
    user = AuthorSerializer(read_only=True)
    replies = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = ['id', 'comic', 'chapter', 'user', 'parent', 'content', 'created_at', 'replies']

    def get_replies(self, obj):
        qs = obj.replies.select_related('user').order_by('created_at')
        return CommentReplySerializer(qs, many=True).data


class CommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)
    chapter_id = serializers.IntegerField(required=False, allow_null=True)
    parent_id = serializers.IntegerField(required=False, allow_null=True)

    def validate_content(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Comment cannot be empty.")
        return value

    def validate(self, attrs):
        comic = self.context['comic']
        chapter_id = attrs.get('chapter_id')
        if chapter_id is not None:
            chapter = Chapter.objects.filter(id=chapter_id, comic=comic).first()
            if chapter is None:
                raise serializers.ValidationError({"chapter_id": "Chapter does not belong to this comic."})
            attrs['chapter'] = chapter
        parent_id = attrs.get('parent_id')
        if parent_id is not None:
            parent = Comment.objects.filter(id=parent_id, comic=comic).first()
            if parent is None:
                raise serializers.ValidationError({"parent_id": "Parent comment not found on this comic."})
            attrs['parent'] = parent
        return attrs

    def create(self, validated_data):
        return Comment.objects.create(
            user=self.context['request'].user,
            comic=self.context['comic'],
            chapter=validated_data.get('chapter'),
            parent=validated_data.get('parent'),
            content=validated_data['content'],
        )
