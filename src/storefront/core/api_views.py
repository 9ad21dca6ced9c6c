"""Authentication API views.

POST /api/auth/register/
POST /api/auth/login/
GET  /api/auth/profile/
"""

import logging

from django.contrib.auth import authenticate, get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .auth import issue_token, require_auth_token
from .http import InvalidJSON, invalid_json_response, load_json

logger = logging.getLogger(__name__)


def _user_payload(user):
    return {
        "id": str(user.pk),
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "address": user.default_address,
    }


@method_decorator(csrf_exempt, name="dispatch")
class RegisterView(View):
    """Register a customer account.

    POST /api/auth/register/
    {
        "email": "user@example.com",
        "password": "secret",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "phone": "+90 555 000 0000",
        "address": "Street 1"
    }

    Returns auth token for subsequent requests.
    """

    def post(self, request):
        try:
            data = load_json(request)
        except InvalidJSON:
            return invalid_json_response()

        email = str(data.get("email", "")).strip().lower()
        password = str(data.get("password", ""))

        if not email or not password:
            return JsonResponse({"error": "validation_error", "message": "Email and password required"}, status=400)

        try:
            validate_email(email)
        except ValidationError:
            return JsonResponse({"error": "validation_error", "message": "Invalid email address"}, status=400)

        User = get_user_model()
        if User.objects.filter(email__iexact=email).exists():
            return JsonResponse({"error": "validation_error", "message": "Email address already exists"}, status=400)

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    first_name=str(data.get("first_name", "")).strip(),
                    last_name=str(data.get("last_name", "")).strip(),
                    phone=str(data.get("phone", "")).strip(),
                    default_address=str(data.get("address", "")).strip(),
                )
        except IntegrityError:
            return JsonResponse({"error": "validation_error", "message": "Email address already exists"}, status=400)

        logger.info("Registered user %s", user.pk)

        return JsonResponse({
            "token": issue_token(user),
            "user": _user_payload(user),
            "message": "Registration successful",
        })


@method_decorator(csrf_exempt, name="dispatch")
class LoginView(View):
    """Login endpoint.

    POST /api/auth/login/
    {
        "email": "user@example.com",
        "password": "secret"
    }
    """

    def post(self, request):
        try:
            data = load_json(request)
        except InvalidJSON:
            return invalid_json_response()

        email = str(data.get("email", "")).strip().lower()
        password = str(data.get("password", ""))

        if not email or not password:
            return JsonResponse({"error": "validation_error", "message": "Email and password required"}, status=400)

        user = authenticate(request, username=email, password=password)

        if not user:
            return JsonResponse({"error": "invalid_credentials", "message": "Invalid credentials"}, status=401)

        return JsonResponse({
            "token": issue_token(user),
            "user": _user_payload(user),
        })


@method_decorator(csrf_exempt, name="dispatch")
class ProfileView(View):
    """The authenticated caller's account details.

    GET /api/auth/profile/
    """

    @method_decorator(require_auth_token)
    def get(self, request):
        return JsonResponse(_user_payload(request.user))
