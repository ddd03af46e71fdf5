from django.conf import settings
from django.db import models


class ReadingProgress(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reading_progress",
    )
    comic = models.ForeignKey("comicDesk.Comic", on_delete=models.CASCADE, related_name="reading_progress")
    chapter = models.ForeignKey("comicDesk.Chapter", on_delete=models.CASCADE, related_name="reading_progress")
    page_number = models.PositiveIntegerField(default=1)
    last_read_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (("user", "comic"),)
        indexes = [
            models.Index(fields=["user", "-last_read_at"]),
        ]

    def __str__(self):
        return f"{self.user_id}:{self.comic_id} ch{self.chapter_id} p{self.page_number}"
