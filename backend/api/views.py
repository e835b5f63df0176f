import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from health import services
from health.dictation import DictationCapability, append_transcript
from health.forms import ReportUploadForm
from health.gateway import ChatTurn, SymptomIntake
from health.guardrails.input_guardrails import run_image_guardrails
from health.images import ImageInputError, from_data_uri, from_upload
from health.insights import step_highlights, validate_metrics
from health.symptoms import MISSING_SYMPTOMS_MESSAGE

logger = logging.getLogger(__name__)

REPORT_DISCLAIMER = (
    "This analysis is generated by AI and may contain errors. "
    "Always consult a certified medical professional for diagnosis."
)


def _error(message: str, status_code=status.HTTP_400_BAD_REQUEST, **extra) -> Response:
    return Response({"status": "error", "message": message, **extra}, status=status_code)


def _outcome_response(request, outcome) -> Response:
    return Response(outcome.to_payload(ticket=request.data.get("ticket")), status=outcome.http_status)


def _whole_number(value) -> int:
    # int() would truncate 7.9 to 7 and accept True as 1.
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"{value!r} is not a whole number")
    return int(value)


def _checked_image(image):
    result = run_image_guardrails(image)
    if not result["safe"]:
        logger.info("Rejected image input: %s", result["reason"])
        raise ImageInputError(result["reason"])
    return image


class ChatView(APIView):
    def post(self, request):
        message = str(request.data.get("message") or "").strip()
        image_uri = request.data.get("image")
        if not message and not image_uri:
            return _error("message or image is required.")

        history = request.data.get("history") or []
        if not isinstance(history, list):
            return _error("history must be a list of turns.")
        try:
            turns = [ChatTurn(role=str(turn.get("role")), text=str(turn.get("text") or "")) for turn in history]
        except (AttributeError, ValueError) as exc:
            return _error(f"Invalid history: {exc}")

        image = None
        if image_uri:
            try:
                image = _checked_image(from_data_uri(str(image_uri)))
            except ImageInputError as exc:
                return _error(str(exc))

        outcome = services.chat(message, turns, image)
        return _outcome_response(request, outcome)


class DictationView(APIView):
    def post(self, request):
        capability = DictationCapability(supported=bool(request.data.get("supported")))
        draft = str(request.data.get("draft") or "")
        if not capability.supported:
            return Response(
                {
                    "status": "error",
                    "message": capability.session_config()["message"],
                    "data": {"draft": draft, "dictation": capability.session_config()},
                },
                status=status.HTTP_409_CONFLICT,
            )

        transcript = str(request.data.get("transcript") or "")
        return Response(
            {
                "status": "success",
                "data": {
                    "draft": append_transcript(draft, transcript),
                    "dictation": capability.session_config(),
                },
            }
        )


class ReportAnalyzeView(APIView):
    def post(self, request):
        form = ReportUploadForm(request.data, request.FILES)
        if not form.is_valid():
            return _error("Upload a report photo.", fields=form.errors.get_json_data())

        try:
            upload = form.cleaned_data.get("report_file")
            image = from_upload(upload) if upload else from_data_uri(form.cleaned_data["image"])
            _checked_image(image)
        except ImageInputError as exc:
            return _error(str(exc))

        outcome = services.analyze_report(image)
        if outcome.ok:
            outcome.data["disclaimer"] = REPORT_DISCLAIMER
        return _outcome_response(request, outcome)


class SymptomAnalyzeView(APIView):
    def post(self, request):
        try:
            intake = SymptomIntake(
                symptoms=str(request.data.get("symptoms") or "").strip(),
                duration=str(request.data.get("duration") or "").strip(),
                severity=_whole_number(request.data.get("severity", 5)),
                history=str(request.data.get("history") or "").strip(),
            )
        except (TypeError, ValueError):
            return _error("severity must be a whole number between 1 and 10.")
        if not intake.symptoms:
            return _error(MISSING_SYMPTOMS_MESSAGE)

        outcome = services.analyze_symptoms(intake)
        return _outcome_response(request, outcome)


class InteractionCheckView(APIView):
    def post(self, request):
        medications = request.data.get("medications")
        if not isinstance(medications, list):
            return _error("medications must be a list.")

        names = []
        for item in medications:
            name = item.get("name") if isinstance(item, dict) else item
            if not isinstance(name, str):
                return _error("Each medication must be a name or an object with a name.")
            names.append(name)

        outcome = services.check_interactions(names)
        return _outcome_response(request, outcome)


class InsightsView(APIView):
    def post(self, request):
        try:
            metrics = validate_metrics(request.data.get("metrics"))
        except ValueError as exc:
            return _error(str(exc))

        outcome = services.weekly_insights(metrics)
        outcome.data["steps"] = step_highlights(metrics)
        return _outcome_response(request, outcome)
