from django.contrib import admin

from .models import ReadingProgress


@admin.register(ReadingProgress)
class ReadingProgressAdmin(admin.ModelAdmin):
    list_display = ("user", "comic", "chapter", "page_number", "last_read_at")
    search_fields = ("user__username", "comic__title")
