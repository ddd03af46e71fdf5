from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser


@admin.register(CustomUser)
class AppUserAdmin(UserAdmin):
    model = CustomUser

    # Fields to display in the list view
    list_display = ('username', 'email', 'display_name', 'role', 'credits', 'is_active', 'is_staff')
    list_filter = ('role', 'is_active', 'is_staff')
    ordering = ('username',)

    search_fields = ('username', 'email')
    search_help_text = "Search by username or email"

    fieldsets = (
        (None, {'fields': ('username', 'email', 'password')}),
        ('Profile', {'fields': ('display_name', 'avatar_url', 'bio', 'theme', 'notification_preferences')}),
        ('Account', {'fields': ('role', 'credits', 'max_bookmark_folders')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'password1', 'password2'),
        }),
    )
    readonly_fields = ('credits',)
