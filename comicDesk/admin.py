from django.contrib import admin

from .models import Chapter, ChapterAccess, Comic, Comment, Genre, Page


@admin.register(Genre)
class GenreAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'color')
    prepopulated_fields = {'slug': ('name',)}


class ChapterInline(admin.TabularInline):
    model = Chapter
    extra = 0
    fields = ('chapter_number', 'title', 'is_premium', 'credit_cost', 'page_count')
    readonly_fields = ('page_count',)
    ordering = ('chapter_number',)
    show_change_link = True


@admin.register(Comic)
class ComicAdmin(admin.ModelAdmin):
    list_display = ('title', 'slug', 'status', 'author', 'view_count', 'created_at')
    list_filter = ('status', 'genres')
    search_fields = ('title', 'slug')
    prepopulated_fields = {'slug': ('title',)}
    filter_horizontal = ('genres',)
    inlines = [ChapterInline]


class PageInline(admin.TabularInline):
    model = Page
    extra = 0
    fields = ('page_number', 'image_url')
    ordering = ('page_number',)


@admin.register(Chapter)
class ChapterAdmin(admin.ModelAdmin):
    list_display = ('comic', 'chapter_number', 'title', 'is_premium', 'credit_cost', 'page_count')
    list_filter = ('is_premium', 'comic')
    search_fields = ('comic__title', 'title')
    ordering = ('comic', 'chapter_number')
    readonly_fields = ('page_count',)
    inlines = [PageInline]


@admin.register(ChapterAccess)
class ChapterAccessAdmin(admin.ModelAdmin):
    list_display = ('user', 'chapter', 'source', 'unlocked_at')
    list_filter = ('source',)
    search_fields = ('user__username', 'chapter__comic__title')


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('user', 'comic', 'chapter', 'parent', 'created_at')
    search_fields = ('user__username', 'content')
    date_hierarchy = 'created_at'
