from rest_framework.permissions import BasePermission


class HasProfile(BasePermission):
    message = "Sign in required."

    def has_permission(self, request, view):
        context = getattr(request, "app_context", None)
        return bool(context and context.signed_in)
