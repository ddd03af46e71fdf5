from django.core.management.base import BaseCommand
from django.db import transaction

from bookmarkDesk.models import Bookmark, BookmarkFolder
from bookmarkDesk.utils.ordering import compact
from comicDesk.models import Comic
from userComicDesk.models import UserComic


class Command(BaseCommand):
    help = (
        "Compact folder and bookmark display orders and user comic page numbers "
        "so every list is numbered without gaps. Optionally drop bookmarks whose comic is gone."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            '--prune',
            action='store_true',
            help="Also delete bookmarks pointing at comics that no longer exist.",
        )

    def handle(self, *args, **options):
        self.stdout.write("Normalizing display order…")
        moved = 0
        with transaction.atomic():
            if options['prune']:
                pruned = self._prune()
                self.stdout.write(f"Removed {pruned} dangling bookmarks.")

            user_ids = BookmarkFolder.objects.order_by('user_id').values_list('user_id', flat=True).distinct()
            for user_id in user_ids:
                moved += compact(BookmarkFolder.objects.filter(user_id=user_id))

            for folder_id in BookmarkFolder.objects.values_list('id', flat=True):
                moved += compact(Bookmark.objects.filter(folder_id=folder_id))

            for comic in UserComic.objects.all():
                moved += compact(comic.pages.all(), field='page_number', start=1, unique=True)
                UserComic.objects.filter(pk=comic.pk).update(page_count=comic.pages.count())

        self.stdout.write(self.style.SUCCESS(f"Display order normalized, {moved} rows moved."))

    def _prune(self):
        official = {str(pk) for pk in Comic.objects.values_list('id', flat=True)}
        uploads = {str(pk) for pk in UserComic.objects.values_list('id', flat=True)}
        to_delete = []
        for bookmark in Bookmark.objects.only('id', 'comic_type', 'comic_id'):
            known = official if bookmark.comic_type == Bookmark.TYPE_OFFICIAL else uploads
            if bookmark.comic_id not in known:
                to_delete.append(bookmark.id)
        if to_delete:
            Bookmark.objects.filter(id__in=to_delete).delete()
        return len(to_delete)
