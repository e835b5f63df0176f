import json

from django.http import JsonResponse


def read_json(request) -> dict | None:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def invalid_json() -> JsonResponse:
    return JsonResponse({"error": "Invalid JSON payload."}, status=400)


def form_errors(form) -> JsonResponse:
    errors = {field: [str(message) for message in messages] for field, messages in form.errors.items()}
    first = next(iter(errors.get("__all__", [])), None) or "Please correct the highlighted fields."
    return JsonResponse({"error": first, "fields": errors}, status=400)
