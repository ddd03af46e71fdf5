from django.contrib import admin

from .models import Bookmark, BookmarkFolder


class BookmarkInline(admin.TabularInline):
    model = Bookmark
    extra = 0
    fields = ('comic_type', 'comic_id', 'display_order', 'created_at')
    readonly_fields = ('created_at',)
    ordering = ('display_order',)


@admin.register(BookmarkFolder)
class BookmarkFolderAdmin(admin.ModelAdmin):
    list_display = ('name', 'user', 'is_default', 'display_order', 'color', 'created_at')
    list_filter = ('is_default',)
    search_fields = ('name', 'user__username')
    inlines = [BookmarkInline]


@admin.register(Bookmark)
class BookmarkAdmin(admin.ModelAdmin):
    list_display = ('user', 'folder', 'comic_type', 'comic_id', 'display_order', 'created_at')
    list_filter = ('comic_type', 'created_at')
    search_fields = ('user__username', 'comic_id')
    date_hierarchy = 'created_at'
