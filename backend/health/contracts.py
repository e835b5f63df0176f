import json
import re
from dataclasses import dataclass, field
from typing import Any

from .exceptions import MalformedResponseError
from .schemas import (
    MAX_SYMPTOM_ASSESSMENTS,
    REPORT_FIELDS,
    REPORT_STATUSES,
    SYMPTOM_FIELDS,
    SYMPTOM_SEVERITIES,
)

FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)
NO_INTERACTIONS_PHRASE = "no interactions"


@dataclass(frozen=True)
class ReportFinding:
    test_name: str
    value: str
    unit: str
    status: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "testName": self.test_name,
            "value": self.value,
            "unit": self.unit,
            "status": self.status,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class SymptomAssessment:
    condition: str
    probability: str
    description: str
    recommendation: str
    severity: str

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "probability": self.probability,
            "description": self.description,
            "recommendation": self.recommendation,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class Decoded:
    """Either a tuple of decoded records or the reason decoding failed."""

    records: tuple = field(default_factory=tuple)
    error: str | None = None
    raw_text: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> tuple:
        if self.error is not None:
            raise MalformedResponseError(self.error, raw_text=self.raw_text)
        return self.records


def strip_fences(text: str) -> str:
    return FENCE_PATTERN.sub("", text or "").strip()


def decode_report_findings(text: str) -> Decoded:
    items, error = _load_array(text)
    if error:
        return Decoded(error=error, raw_text=text or "")

    findings = []
    for index, item in enumerate(items):
        error = _check_record(item, REPORT_FIELDS, "status", REPORT_STATUSES)
        if error:
            return Decoded(error=f"finding {index}: {error}", raw_text=text)
        findings.append(
            ReportFinding(
                test_name=item["testName"],
                value=item["value"],
                unit=item["unit"],
                status=item["status"],
                explanation=item["explanation"],
            )
        )
    return Decoded(records=tuple(findings), raw_text=text)


def decode_symptom_assessments(text: str) -> Decoded:
    items, error = _load_array(text)
    if error:
        return Decoded(error=error, raw_text=text or "")
    if len(items) > MAX_SYMPTOM_ASSESSMENTS:
        return Decoded(
            error=f"expected at most {MAX_SYMPTOM_ASSESSMENTS} assessments, got {len(items)}",
            raw_text=text,
        )

    assessments = []
    for index, item in enumerate(items):
        error = _check_record(item, SYMPTOM_FIELDS, "severity", SYMPTOM_SEVERITIES)
        if error:
            return Decoded(error=f"assessment {index}: {error}", raw_text=text)
        assessments.append(SymptomAssessment(**{name: item[name] for name in SYMPTOM_FIELDS}))
    return Decoded(records=tuple(assessments), raw_text=text)


def has_interaction_warning(text: str) -> bool:
    value = (text or "").strip()
    if not value:
        return False
    return NO_INTERACTIONS_PHRASE not in value.lower()


def _load_array(text: str) -> tuple[list, str | None]:
    value = strip_fences(text)
    if not value:
        return [], "empty response"
    try:
        payload = json.loads(value)
    except json.JSONDecodeError as exc:
        return [], f"invalid JSON: {exc.msg}"
    if not isinstance(payload, list):
        return [], f"expected a JSON array, got {type(payload).__name__}"
    return payload, None


def _check_record(
    item: Any,
    fields: tuple[str, ...],
    enum_field: str,
    allowed: tuple[str, ...],
) -> str | None:
    if not isinstance(item, dict):
        return f"expected an object, got {type(item).__name__}"
    for name in fields:
        if name not in item:
            return f"missing field '{name}'"
        if not isinstance(item[name], str):
            return f"field '{name}' must be a string"
    if item[enum_field] not in allowed:
        return f"'{item[enum_field]}' is not one of {', '.join(allowed)}"
    return None
