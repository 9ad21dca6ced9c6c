"""JSON request helpers shared by the API views."""

import json

from django.http import JsonResponse


class InvalidJSON(Exception):
    """Request body is not a JSON object."""


def load_json(request) -> dict:
    """Parse the request body as a JSON object. An empty body is ``{}``.

    Raises:
        InvalidJSON: malformed JSON, bad encoding, or a non-object value
    """
    try:
        data = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidJSON()
    if not isinstance(data, dict):
        raise InvalidJSON()
    return data


def invalid_json_response():
    return JsonResponse({"error": "invalid_json", "message": "Invalid JSON"}, status=400)
