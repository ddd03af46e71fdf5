from rest_framework import permissions


class IsAdminRole(permissions.BasePermission):
    """
    Grants access to profiles whose role is 'admin'.
    """
    message = "Admin role required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'admin')


class IsOwnerOrAdmin(permissions.BasePermission):
    """
    Object-level rule mirroring the row policies: owner_field == request.user, or admin.
    Views may set `owner_field` (defaults to 'user').
    """
    message = "You do not have access to this resource."

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if getattr(user, 'role', None) == 'admin':
            return True
        owner_field = getattr(view, 'owner_field', 'user')
        return getattr(obj, f"{owner_field}_id", None) == user.id
