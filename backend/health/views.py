from django.conf import settings
from django.http import Http404, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from core.context import profile_required
from core.http import form_errors, invalid_json, read_json

from . import services
from .emergency import GUIDES, find_guide, render_guide
from .forms import MedicationForm
from .medications import add_medications, group_by_slot, parse_medications, remove, toggle_taken, unique_names
from .symptoms import SymptomWizard


@require_GET
@profile_required
def emergency_view(request):
    number = settings.EMERGENCY_NUMBER
    return JsonResponse(
        {
            "number": number,
            "guides": [render_guide(guide, number) for guide in GUIDES],
        }
    )


@require_GET
@profile_required
def emergency_guide_view(request, slug: str):
    guide = find_guide(slug)
    if not guide:
        raise Http404("Guide not found.")
    return JsonResponse(render_guide(guide, settings.EMERGENCY_NUMBER))


@csrf_exempt
@require_POST
@profile_required
def add_medication_view(request):
    payload = read_json(request)
    if payload is None:
        return invalid_json()
    try:
        current = parse_medications(payload.get("medications"))
    except ValueError as exc:
        return JsonResponse({"error": str(exc)}, status=400)

    form = MedicationForm(payload)
    if not form.is_valid():
        return form_errors(form)

    data = form.cleaned_data
    updated = add_medications(current, data["name"], data["times"], data["dosage"], data["duration"])
    outcome = services.check_interactions(unique_names(updated))
    return JsonResponse(_schedule_payload(updated, interactions=outcome.to_payload()))


@csrf_exempt
@require_POST
@profile_required
def toggle_medication_view(request):
    return _update_schedule(request, toggle_taken)


@csrf_exempt
@require_POST
@profile_required
def delete_medication_view(request):
    return _update_schedule(request, remove)


@csrf_exempt
@require_POST
@profile_required
def symptom_step_view(request):
    payload = read_json(request)
    if payload is None:
        return invalid_json()

    action = payload.get("action")
    if action not in ("next", "back"):
        return JsonResponse({"error": "action must be 'next' or 'back'."}, status=400)

    wizard = SymptomWizard.from_dict(payload)
    if action == "back":
        wizard.back()
        return JsonResponse({"wizard": wizard.to_dict(), "submitted": False})

    try:
        ready = wizard.next()
    except ValueError as exc:
        return JsonResponse({"error": str(exc), "wizard": wizard.to_dict(), "submitted": False}, status=400)
    if not ready:
        return JsonResponse({"wizard": wizard.to_dict(), "submitted": False})

    outcome = services.analyze_symptoms(wizard.intake())
    return JsonResponse(
        {"wizard": wizard.to_dict(), "submitted": True, "result": outcome.to_payload()},
        status=outcome.http_status,
    )


def _update_schedule(request, operation):
    payload = read_json(request)
    if payload is None:
        return invalid_json()
    medication_id = str(payload.get("id") or "").strip()
    if not medication_id:
        return JsonResponse({"error": "id is required."}, status=400)
    try:
        current = parse_medications(payload.get("medications"))
    except ValueError as exc:
        return JsonResponse({"error": str(exc)}, status=400)
    return JsonResponse(_schedule_payload(operation(current, medication_id)))


def _schedule_payload(medications, interactions=None) -> dict:
    payload = {
        "medications": [medication.to_dict() for medication in medications],
        "schedule": group_by_slot(medications),
    }
    if interactions is not None:
        payload["interactions"] = interactions
    return payload
