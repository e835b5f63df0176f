import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from health.dictation import UNSUPPORTED_MESSAGE
from health.services import NOT_CONFIGURED_MESSAGE, ai_configured

from .context import clear_profile, profile_required, save_profile
from .forms import SignInForm, SleepForm, WaterForm
from .http import form_errors, invalid_json, read_json
from .wellness import (
    WaterTracker,
    format_duration,
    greeting,
    manual_sleep,
    mood_label,
    sleep_duration,
    steps_progress,
)

logger = logging.getLogger(__name__)

DEFAULT_BEDTIME = "22:30"
DEFAULT_WAKETIME = "06:30"
DEFAULT_MOOD = 70


@require_GET
def session_view(request):
    context = request.app_context
    return JsonResponse(
        {
            "authenticated": context.signed_in,
            "profile": context.profile.to_dict() if context.signed_in else None,
        }
    )


@csrf_exempt
@require_POST
def signin_view(request):
    payload = read_json(request)
    if payload is None:
        return invalid_json()

    form = SignInForm(payload)
    if not form.is_valid():
        return form_errors(form)

    profile = form.profile()
    save_profile(request.session, profile)
    logger.info("Profile signed in (%s)", form.cleaned_data["mode"])
    return JsonResponse({"authenticated": True, "profile": profile.to_dict()})


@csrf_exempt
@require_POST
def logout_view(request):
    clear_profile(request.session)
    return JsonResponse({"authenticated": False, "profile": None})


@require_GET
@profile_required
def dashboard_view(request):
    profile = request.app_context.profile
    try:
        mood = int(request.GET.get("mood", DEFAULT_MOOD))
        steps = int(request.GET.get("steps", 0))
    except ValueError:
        return JsonResponse({"error": "mood and steps must be whole numbers."}, status=400)

    water = WaterTracker(goal=settings.WATER_GOAL_ML, increment=settings.WATER_INCREMENT_ML)
    return JsonResponse(
        {
            "greeting": f"{greeting(timezone.localtime().hour)}, {profile.first_name}",
            "initial": profile.initial,
            "water": water.to_dict(),
            "sleep": {
                "mode": "auto",
                "bedtime": DEFAULT_BEDTIME,
                "waketime": DEFAULT_WAKETIME,
                "duration": format_duration(sleep_duration(DEFAULT_BEDTIME, DEFAULT_WAKETIME)),
            },
            "mood": {"score": mood, "label": mood_label(mood)},
            "steps": {
                "count": steps,
                "goal": settings.STEPS_GOAL,
                "progress_percent": steps_progress(steps, settings.STEPS_GOAL),
            },
            "ai_enabled": ai_configured(),
        }
    )


@csrf_exempt
@require_POST
@profile_required
def sleep_view(request):
    payload = read_json(request)
    if payload is None:
        return invalid_json()

    form = SleepForm(payload)
    if not form.is_valid():
        return form_errors(form)

    data = form.cleaned_data
    if data["mode"] == "manual":
        minutes = manual_sleep(data["hours"])
    else:
        minutes = sleep_duration(data["bedtime"], data["waketime"])
    return JsonResponse({"mode": data["mode"], "minutes": minutes, "duration": format_duration(minutes)})


@csrf_exempt
@require_POST
@profile_required
def water_view(request):
    payload = read_json(request)
    if payload is None:
        return invalid_json()

    form = WaterForm(payload)
    if not form.is_valid():
        return form_errors(form)

    data = form.cleaned_data
    tracker = WaterTracker(
        current=data["current"] or 0,
        goal=data["goal"] or settings.WATER_GOAL_ML,
        increment=settings.WATER_INCREMENT_ML,
    )
    action = data["action"]
    if action == "add":
        tracker.add()
    elif action == "reset":
        tracker.reset()
    else:
        try:
            tracker.set_goal(data["new_goal"])
        except ValueError as exc:
            return JsonResponse({"error": str(exc)}, status=400)
    return JsonResponse(tracker.to_dict())


@require_GET
def capabilities_view(request):
    configured = ai_configured()
    return JsonResponse(
        {
            "ai_enabled": configured,
            "ai_message": "" if configured else NOT_CONFIGURED_MESSAGE,
            "dictation_unsupported_message": UNSUPPORTED_MESSAGE,
        }
    )
