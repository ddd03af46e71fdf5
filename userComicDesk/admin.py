from django.contrib import admin

from .models import UploadDraft, UploadDraftPage, UserComic, UserComicPage


class UserComicPageInline(admin.TabularInline):
    model = UserComicPage
    extra = 0
    fields = ('page_number', 'image_url', 'storage_key')
    ordering = ('page_number',)


@admin.register(UserComic)
class UserComicAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'artist', 'status', 'page_count', 'view_count', 'created_at')
    list_filter = ('status', 'language')
    search_fields = ('title', 'slug', 'artist', 'user__username')
    filter_horizontal = ('tags',)
    inlines = [UserComicPageInline]


class UploadDraftPageInline(admin.TabularInline):
    model = UploadDraftPage
    extra = 0
    fields = ('position', 'original_name', 'size', 'storage_key')
    readonly_fields = fields


@admin.register(UploadDraft)
class UploadDraftAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'state', 'title', 'created_at')
    list_filter = ('state',)
    search_fields = ('title', 'user__username')
    readonly_fields = ('error', 'comic')
    inlines = [UploadDraftPageInline]
