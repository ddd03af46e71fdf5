import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class Genre(models.Model):
    name = models.CharField(max_length=50, unique=True)
    slug = models.SlugField(max_length=60, unique=True)
    color = models.CharField(max_length=7, default='#6b7280')

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Comic(models.Model):
    STATUS_ONGOING = 'ongoing'
    STATUS_COMPLETED = 'completed'
    STATUS_HIATUS = 'hiatus'
    STATUS_CHOICES = [
        (STATUS_ONGOING, 'Ongoing'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_HIATUS, 'Hiatus'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, default='')
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='authored_comics',
    )
    cover_image_url = models.CharField(max_length=500, blank=True, default='')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ONGOING)
    publication_date = models.DateField(null=True, blank=True)
    view_count = models.PositiveIntegerField(default=0)
    genres = models.ManyToManyField(Genre, related_name='comics', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-view_count']),
            models.Index(fields=['-created_at']),
        ]

    def __str__(self):
        return self.title


class Chapter(models.Model):
    comic = models.ForeignKey(Comic, on_delete=models.CASCADE, related_name='chapters')
    title = models.CharField(max_length=200, blank=True, default='')
    chapter_number = models.PositiveIntegerField()
    description = models.TextField(blank=True, default='')
    is_premium = models.BooleanField(default=False)
    credit_cost = models.PositiveIntegerField(default=0)
    # Denormalized; kept in sync by signals on Page.
    page_count = models.PositiveIntegerField(default=0)
    published_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ('comic', 'chapter_number')
        ordering = ['chapter_number']
        indexes = [
            models.Index(fields=['comic', 'chapter_number']),
        ]

    def __str__(self):
        return f"{self.comic} - Chapter {self.chapter_number}"

    @property
    def label(self):
        if self.title:
            return f"Chapter {self.chapter_number}: {self.title}"
        return f"Chapter {self.chapter_number}"

    def get_previous_chapter(self):
        return (
            Chapter.objects.filter(comic_id=self.comic_id, chapter_number__lt=self.chapter_number)
            .order_by('-chapter_number')
            .first()
        )

    def get_next_chapter(self):
        return (
            Chapter.objects.filter(comic_id=self.comic_id, chapter_number__gt=self.chapter_number)
            .order_by('chapter_number')
            .first()
        )


class Page(models.Model):
    chapter = models.ForeignKey(Chapter, on_delete=models.CASCADE, related_name='pages')
    page_number = models.PositiveIntegerField(help_text="1-based order within the chapter")
    image_url = models.CharField(max_length=500)

    class Meta:
        unique_together = ('chapter', 'page_number')
        ordering = ['chapter', 'page_number']

    def __str__(self):
        return f"{self.chapter} - Page {self.page_number}"


class ChapterAccess(models.Model):
    """
    A user's right to read a premium chapter. Presence of the row is the
    source of truth; Chapter.is_premium is never flipped on unlock.
    """
    SOURCE_CREDITS = 'credits'
    SOURCE_GRANT = 'grant'
    SOURCE_CHOICES = [
        (SOURCE_CREDITS, 'Credits'),
        (SOURCE_GRANT, 'Grant'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='chapter_access')
    chapter = models.ForeignKey(Chapter, on_delete=models.CASCADE, related_name='access_records')
    source = models.CharField(max_length=16, choices=SOURCE_CHOICES, default=SOURCE_CREDITS)
    unlocked_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ('user', 'chapter')
        ordering = ['-unlocked_at']
        verbose_name_plural = "Chapter access"

    def __str__(self):
        return f"{self.user_id} -> {self.chapter} ({self.source})"


class Comment(models.Model):
    """
    Comments on a comic, optionally scoped to one chapter.
    Replies point at a parent on the same comic.
    """
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='comic_comments')
    comic = models.ForeignKey(Comic, on_delete=models.CASCADE, related_name='comments')
    chapter = models.ForeignKey(Chapter, on_delete=models.CASCADE, null=True, blank=True, related_name='comments')
    parent = models.ForeignKey('self', on_delete=models.CASCADE, null=True, blank=True, related_name='replies')
    content = models.TextField(max_length=2000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['comic', '-created_at']),
            models.Index(fields=['chapter']),
        ]

    def __str__(self):
        return f"{self.user_id} on {self.comic_id}: {self.content[:30]}"
