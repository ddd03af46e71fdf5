import uuid

from django.conf import settings
from django.db import models

from comicDesk.models import Genre


class UserComic(models.Model):
    STATUS_DRAFT = 'draft'
    STATUS_PUBLISHED = 'published'
    STATUS_ARCHIVED = 'archived'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_PUBLISHED, 'Published'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='user_comics')
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, default='')
    artist = models.CharField(max_length=200)
    language = models.CharField(max_length=16, default='en')
    cover_image_url = models.CharField(max_length=500, blank=True, default='')
    cover_key = models.CharField(max_length=500, blank=True, default='')
    page_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    view_count = models.PositiveIntegerField(default=0)
    tags = models.ManyToManyField(Genre, related_name='user_comics', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', '-created_at']),
            models.Index(fields=['status']),
        ]

    def __str__(self):
        return f"{self.title} by {self.user_id}"


class UserComicPage(models.Model):
    comic = models.ForeignKey(UserComic, on_delete=models.CASCADE, related_name='pages')
    page_number = models.PositiveIntegerField(help_text="1-based order within the comic")
    image_url = models.CharField(max_length=500)
    storage_key = models.CharField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('comic', 'page_number')
        ordering = ['comic', 'page_number']

    def __str__(self):
        return f"{self.comic_id} - Page {self.page_number}"


class UploadDraft(models.Model):
    """
    Server-side state of one run of the upload wizard. The draft id is
    reserved as the id of the comic it produces, so storage keys are known
    before the comic row exists.
    """
    STATE_COVER = 'cover'
    STATE_PAGES = 'pages'
    STATE_DETAILS = 'details'
    STATE_REVIEW = 'review'
    STATE_SUBMITTING = 'submitting'
    STATE_DONE = 'done'
    STATE_FAILED = 'failed'
    STATE_CHOICES = [
        (STATE_COVER, 'Cover'),
        (STATE_PAGES, 'Pages'),
        (STATE_DETAILS, 'Details'),
        (STATE_REVIEW, 'Review'),
        (STATE_SUBMITTING, 'Submitting'),
        (STATE_DONE, 'Done'),
        (STATE_FAILED, 'Failed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='upload_drafts')
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_COVER)
    cover_key = models.CharField(max_length=500, blank=True, default='')
    cover_name = models.CharField(max_length=255, blank=True, default='')
    title = models.CharField(max_length=200, blank=True, default='')
    artist = models.CharField(max_length=200, blank=True, default='')
    description = models.TextField(blank=True, default='')
    language = models.CharField(max_length=16, default='en')
    tags = models.ManyToManyField(Genre, related_name='+', blank=True)
    error = models.TextField(blank=True, default='')
    comic = models.OneToOneField(UserComic, on_delete=models.SET_NULL, null=True, blank=True, related_name='draft')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Draft {self.id} ({self.state})"


class UploadDraftPage(models.Model):
    draft = models.ForeignKey(UploadDraft, on_delete=models.CASCADE, related_name='pages')
    position = models.PositiveIntegerField(help_text="0-based order within the draft")
    storage_key = models.CharField(max_length=500)
    original_name = models.CharField(max_length=255, blank=True, default='')
    size = models.PositiveIntegerField(default=0)

    class Meta:
        unique_together = ('draft', 'position')
        ordering = ['draft', 'position']

    def __str__(self):
        return f"{self.draft_id} #{self.position}"
