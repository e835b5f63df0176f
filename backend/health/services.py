import logging
from dataclasses import dataclass
from typing import Any, Sequence

from . import gateway as gateway_module
from .contracts import decode_report_findings, decode_symptom_assessments, has_interaction_warning
from .exceptions import AIServiceError, ConfigurationError, MalformedResponseError
from .gateway import ChatTurn, SymptomIntake
from .images import InlineImage

logger = logging.getLogger(__name__)

CHAT_CONNECTION_MESSAGE = "I'm having trouble connecting right now. Please check your internet or API key."
CHAT_EMPTY_MESSAGE = "I'm sorry, I couldn't process that request."
REPORT_FAILED_MESSAGE = "Failed to analyze report. Please try again."
SYMPTOMS_FAILED_MESSAGE = "Something went wrong. Please try again."
INSIGHTS_FAILED_MESSAGE = "Could not load AI insights at the moment."
INTERACTIONS_FAILED_MESSAGE = "Interaction check is unavailable right now."
NOT_CONFIGURED_MESSAGE = "AI features are unavailable because the AI service is not configured."

MIN_INTERACTION_NAMES = 2


@dataclass
class Outcome:
    data: Any
    error: str | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def ai_disabled(self) -> bool:
        return self.error == ConfigurationError.kind

    @property
    def http_status(self) -> int:
        if self.ok:
            return 200
        if self.error == MalformedResponseError.kind:
            return 502
        return 503

    def to_payload(self, ticket=None) -> dict:
        if self.ok:
            payload = {"status": "success", "data": self.data}
        else:
            payload = {
                "status": "error",
                "error": self.error,
                "message": self.message,
                "ai_disabled": self.ai_disabled,
                "data": self.data,
            }
        if ticket is not None:
            payload["ticket"] = ticket
        return payload


def chat(message: str, history: Sequence[ChatTurn] = (), image: InlineImage | None = None) -> Outcome:
    try:
        reply = gateway_module.get_gateway().chat_reply(message, history, image)
    except AIServiceError as exc:
        _log_failure("chat", exc)
        return Outcome(data={"reply": CHAT_CONNECTION_MESSAGE}, error=exc.kind, message=_message_for(exc, CHAT_CONNECTION_MESSAGE))
    return Outcome(data={"reply": reply or CHAT_EMPTY_MESSAGE, "empty": not reply})


def analyze_report(image: InlineImage) -> Outcome:
    try:
        raw = gateway_module.get_gateway().analyze_report(image)
        findings = decode_report_findings(raw).unwrap()
    except AIServiceError as exc:
        _log_failure("report", exc)
        return Outcome(data={"findings": []}, error=exc.kind, message=_message_for(exc, REPORT_FAILED_MESSAGE))
    return Outcome(data={"findings": [finding.to_dict() for finding in findings]})


def analyze_symptoms(intake: SymptomIntake) -> Outcome:
    try:
        raw = gateway_module.get_gateway().analyze_symptoms(intake)
        assessments = decode_symptom_assessments(raw).unwrap()
    except AIServiceError as exc:
        _log_failure("symptoms", exc)
        return Outcome(data={"assessments": []}, error=exc.kind, message=_message_for(exc, SYMPTOMS_FAILED_MESSAGE))
    return Outcome(data={"assessments": [item.to_dict() for item in assessments]})


def check_interactions(names: Sequence[str]) -> Outcome:
    unique = list(dict.fromkeys(name.strip() for name in names if name and name.strip()))
    if len(unique) < MIN_INTERACTION_NAMES:
        return Outcome(data={"checked": False, "warning": None, "medications": unique})

    try:
        summary = gateway_module.get_gateway().check_interactions(unique)
    except AIServiceError as exc:
        _log_failure("interactions", exc)
        return Outcome(
            data={"checked": False, "warning": None, "medications": unique},
            error=exc.kind,
            message=_message_for(exc, INTERACTIONS_FAILED_MESSAGE),
        )
    warning = summary if has_interaction_warning(summary) else None
    return Outcome(data={"checked": True, "warning": warning, "medications": unique})


def weekly_insights(metrics) -> Outcome:
    try:
        summary = gateway_module.get_gateway().health_insights(metrics)
    except AIServiceError as exc:
        _log_failure("insights", exc)
        return Outcome(data={"summary": INSIGHTS_FAILED_MESSAGE}, error=exc.kind, message=_message_for(exc, INSIGHTS_FAILED_MESSAGE))
    return Outcome(data={"summary": summary})


def ai_configured() -> bool:
    return gateway_module.get_gateway().is_configured


def _log_failure(operation: str, exc: AIServiceError) -> None:
    if isinstance(exc, ConfigurationError):
        logger.error("%s unavailable: %s", operation, exc)
    elif isinstance(exc, MalformedResponseError):
        logger.warning("%s returned malformed output (%s): %.500s", operation, exc, exc.raw_text)
    else:
        logger.warning("%s failed: %s", operation, exc)


def _message_for(exc: AIServiceError, default: str) -> str:
    if isinstance(exc, ConfigurationError):
        return NOT_CONFIGURED_MESSAGE
    return default
