from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from django.utils.crypto import constant_time_compare
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission


def _extract_api_key(request):
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip()
    return request.headers.get("X-API-Key") or None


class SyncApiKeyAuthentication(BaseAuthentication):
    """Desktop clients authenticate with the shared key from SYNC_API_KEY."""

    def authenticate(self, request):
        api_key = _extract_api_key(request)
        if not api_key:
            raise AuthenticationFailed("API key is required")
        expected = getattr(settings, "SYNC_API_KEY", "")
        if not expected or not constant_time_compare(api_key, expected):
            raise AuthenticationFailed("Invalid API key")
        return AnonymousUser(), api_key

    def authenticate_header(self, request):
        return 'Bearer realm="sync"'


class HasSyncApiKey(BasePermission):
    def has_permission(self, request, view):
        return bool(request.auth)
