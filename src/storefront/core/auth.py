"""Bearer token authentication for the JSON API.

Tokens are Django REST framework ``authtoken`` keys. Clients send them as
``Authorization: Bearer <key>``; the server holds all cart and order state
keyed by the user the token resolves to.
"""

from functools import wraps

from django.http import JsonResponse
from rest_framework.authtoken.models import Token

BEARER_PREFIX = "Bearer "


def get_token_user(request):
    """Resolve the bearer token on the request to a user.

    Returns:
        Tuple of (user, error_response). Exactly one of the two is None.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(BEARER_PREFIX):
        return None, JsonResponse({"error": "Authorization required"}, status=401)

    key = auth_header[len(BEARER_PREFIX):].strip()

    try:
        token_obj = Token.objects.select_related("user").get(key=key)
    except Token.DoesNotExist:
        return None, JsonResponse({"error": "Invalid token"}, status=401)

    if not token_obj.user.is_active:
        return None, JsonResponse({"error": "Unauthorized"}, status=403)

    return token_obj.user, None


def require_auth_token(view_func):
    """Decorator to require Bearer token authentication."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        user, error = get_token_user(request)
        if error is not None:
            return error
        request.user = user
        return view_func(request, *args, **kwargs)
    return wrapper


def require_staff_token(view_func):
    """Decorator to require a Bearer token belonging to a staff user."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        user, error = get_token_user(request)
        if error is not None:
            return error
        if not user.is_staff:
            return JsonResponse({"error": "Staff access required"}, status=403)
        request.user = user
        return view_func(request, *args, **kwargs)
    return wrapper


def issue_token(user):
    """Get or create the API token for a user."""
    token, _ = Token.objects.get_or_create(user=user)
    return token.key
