from rest_framework import permissions

class IsTeacherOrAdmin(permissions.BasePermission):
    """
    Allows access to Admins and Teachers.
    Strictly blocks Students.
    """
    def has_permission(self, request, view):
        # 1. User must be logged in
        if not request.user or not request.user.is_authenticated:
            return False

        # 2. Check Role
        # Allow if Superuser/Staff OR Role is in allowed list
        return (
            request.user.is_staff or
            getattr(request.user, 'role', '') in ['teacher', 'admin']
        )


def is_admin(user):
    return user.is_superuser or user.is_staff or getattr(user, 'role', '') == 'admin'


def can_view_attempt(user, attempt):
    """Owners see their own attempts, teachers see attempts on exams they created."""
    if attempt.user_id == user.id or is_admin(user):
        return True
    return getattr(user, 'role', '') == 'teacher' and attempt.exam.created_by_id == user.id


class CanAccessAttempt(permissions.BasePermission):
    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return can_view_attempt(request.user, obj)
        # Only the learner who owns the attempt (or an admin) may change it
        return obj.user_id == request.user.id or is_admin(request.user)
