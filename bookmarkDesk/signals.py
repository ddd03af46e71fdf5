import logging

from django.conf import settings
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from comicDesk.models import Comic
from userComicDesk.models import UserComic

from .models import Bookmark, BookmarkFolder

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_default_folder(sender, instance, created, **kwargs):
    if not created:
        return
    BookmarkFolder.objects.create(
        user=instance,
        name=settings.DEFAULT_BOOKMARK_FOLDER_NAME,
        is_default=True,
        display_order=0,
    )
    logger.debug(f"Default bookmark folder created for user {instance.pk}")


# Bookmarks reference comics by (type, id) so there is no FK cascade.
@receiver(post_delete, sender=Comic)
def drop_official_comic_bookmarks(sender, instance, **kwargs):
    Bookmark.objects.filter(comic_type=Bookmark.TYPE_OFFICIAL, comic_id=str(instance.id)).delete()


@receiver(post_delete, sender=UserComic)
def drop_user_comic_bookmarks(sender, instance, **kwargs):
    Bookmark.objects.filter(comic_type=Bookmark.TYPE_USER, comic_id=str(instance.id)).delete()
