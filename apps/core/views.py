from rest_framework import generics, permissions
from .models import SiteConfig
from .serializers import SiteConfigSerializer


class IsAdminOrReadOnly(permissions.BasePermission):
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_staff)


class SiteConfigView(generics.RetrieveUpdateAPIView):
    """Public read of contact details; staff may edit."""
    serializer_class = SiteConfigSerializer
    permission_classes = (IsAdminOrReadOnly,)

    def get_object(self):
        return SiteConfig.load()
