import logging
import uuid

from django.conf import settings
from django.db import models, transaction, IntegrityError

logger = logging.getLogger(__name__)


class FolderLimitExceeded(IntegrityError):
    """Raised when a user already owns as many folders as their profile allows."""


class DefaultFolderProtected(Exception):
    pass


class BookmarkFolder(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bookmark_folders',
    )
    name = models.CharField(max_length=100)
    is_default = models.BooleanField(default=False)
    display_order = models.PositiveIntegerField(default=0)
    color = models.CharField(max_length=7, default='#3498db')
    icon = models.CharField(max_length=50, blank=True, default='folder')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['display_order', 'created_at']
        indexes = [
            models.Index(fields=['user', 'display_order']),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.name}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            return super().save(*args, **kwargs)

        # The profile row lock serialises concurrent creates for one user.
        user_model = self._meta.get_field('user').related_model
        with transaction.atomic():
            owner = user_model.objects.select_for_update().only('id', 'max_bookmark_folders').get(pk=self.user_id)
            owned = BookmarkFolder.objects.filter(user_id=self.user_id).count()
            if owned >= owner.max_bookmark_folders:
                logger.warning(f"Folder limit reached for user {self.user_id} ({owned})")
                raise FolderLimitExceeded(
                    f"Folder limit of {owner.max_bookmark_folders} reached"
                )
            return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.is_default:
            raise DefaultFolderProtected("The default folder cannot be deleted")
        return super().delete(*args, **kwargs)


class Bookmark(models.Model):
    TYPE_OFFICIAL = 'official'
    TYPE_USER = 'user'
    TYPE_CHOICES = [
        (TYPE_OFFICIAL, 'Official'),
        (TYPE_USER, 'User upload'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookmarks')
    folder = models.ForeignKey(BookmarkFolder, on_delete=models.CASCADE, related_name='bookmarks')
    comic_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_OFFICIAL)
    # UUID string of either comicDesk.Comic or userComicDesk.UserComic
    comic_id = models.CharField(max_length=64)
    display_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['display_order', 'created_at']
        unique_together = ('user', 'folder', 'comic_type', 'comic_id')
        indexes = [
            models.Index(fields=['folder', 'display_order']),
            models.Index(fields=['comic_type', 'comic_id']),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.comic_type}:{self.comic_id} in {self.folder_id}"
