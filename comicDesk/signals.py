from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Chapter, Genre, Page

GENRE_CACHE_KEY = 'comics:genres'


def _sync_page_count(chapter_id):
    Chapter.objects.filter(id=chapter_id).update(
        page_count=Page.objects.filter(chapter_id=chapter_id).count()
    )


@receiver(post_save, sender=Page)
def page_saved(sender, instance: Page, created, **kwargs):
    if created:
        _sync_page_count(instance.chapter_id)


@receiver(post_delete, sender=Page)
def page_deleted(sender, instance: Page, **kwargs):
    _sync_page_count(instance.chapter_id)


@receiver([post_save, post_delete], sender=Genre)
def genres_changed(sender, **kwargs):
    cache.delete(GENRE_CACHE_KEY)
