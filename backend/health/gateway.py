"""Single point of contact with the Gemini backend.

Every operation builds a prompt (and, for the two structured operations, a
response schema), makes exactly one ``generate_content`` call and returns the
raw text. Nothing is cached or retried and no state is kept between calls.
"""

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import google.generativeai as genai
from django.conf import settings

from .exceptions import ConfigurationError, NetworkError
from .images import InlineImage
from .prompts import (
    INSIGHTS_PROMPT,
    INTERACTION_PROMPT,
    PERSONA_INSTRUCTION,
    REPORT_PROMPT,
    SYMPTOM_PROMPT,
)
from .schemas import MAX_SYMPTOM_ASSESSMENTS, report_findings_schema, symptom_assessments_schema

logger = logging.getLogger(__name__)

CHAT_ROLES = ("user", "model")
INSIGHTS_WORD_LIMIT = 150

EMPTY_REPORT = "[]"
EMPTY_SYMPTOMS = "[]"
EMPTY_INTERACTIONS = "No interactions found."
EMPTY_INSIGHTS = "Keep up the good work!"


@dataclass(frozen=True)
class ChatTurn:
    role: str
    text: str

    def __post_init__(self):
        if self.role not in CHAT_ROLES:
            raise ValueError(f"role must be one of {', '.join(CHAT_ROLES)}")

    def to_content(self) -> dict:
        return {"role": self.role, "parts": [{"text": self.text}]}


@dataclass(frozen=True)
class SymptomIntake:
    symptoms: str
    duration: str
    severity: int
    history: str

    def __post_init__(self):
        if not 1 <= int(self.severity) <= 10:
            raise ValueError("severity must be between 1 and 10")


class HealthGateway:
    def __init__(self, api_key: str | None, model_name: str):
        self.api_key = (api_key or "").strip()
        self.model_name = model_name

    @classmethod
    def from_settings(cls) -> "HealthGateway":
        return cls(
            api_key=getattr(settings, "GEMINI_API_KEY", ""),
            model_name=getattr(settings, "GEMINI_MODEL", "gemini-2.5-flash"),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def chat_reply(
        self,
        message: str,
        history: Sequence[ChatTurn] = (),
        image: InlineImage | None = None,
    ) -> str:
        parts = [{"text": message}]
        if image is not None:
            parts.insert(0, image.to_part())
        contents = [turn.to_content() for turn in history]
        contents.append({"role": "user", "parts": parts})
        return self._generate("chat", contents, system_instruction=PERSONA_INSTRUCTION)

    def analyze_report(self, image: InlineImage) -> str:
        contents = [{"role": "user", "parts": [image.to_part(), {"text": REPORT_PROMPT}]}]
        text = self._generate("report", contents, response_schema=report_findings_schema())
        return text or EMPTY_REPORT

    def analyze_symptoms(self, intake: SymptomIntake) -> str:
        prompt = SYMPTOM_PROMPT.format(
            symptoms=intake.symptoms,
            duration=intake.duration,
            severity=intake.severity,
            history=intake.history,
            count=MAX_SYMPTOM_ASSESSMENTS,
        )
        text = self._generate("symptoms", prompt, response_schema=symptom_assessments_schema())
        return text or EMPTY_SYMPTOMS

    def check_interactions(self, names: Iterable[str]) -> str:
        unique = list(dict.fromkeys(name.strip() for name in names if name and name.strip()))
        prompt = INTERACTION_PROMPT.format(names=", ".join(unique))
        return self._generate("interactions", prompt) or EMPTY_INTERACTIONS

    def health_insights(self, metrics) -> str:
        prompt = INSIGHTS_PROMPT.format(
            metrics=json.dumps(metrics, default=str),
            word_limit=INSIGHTS_WORD_LIMIT,
        )
        return self._generate("insights", prompt) or EMPTY_INSIGHTS

    def _model(self, system_instruction: str | None, response_schema: dict | None):
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY not set.")

        genai.configure(api_key=self.api_key)
        generation_config = None
        if response_schema is not None:
            generation_config = genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=response_schema,
            )
        return genai.GenerativeModel(
            self.model_name,
            system_instruction=system_instruction,
            generation_config=generation_config,
        )

    def _generate(
        self,
        operation: str,
        contents,
        system_instruction: str | None = None,
        response_schema: dict | None = None,
    ) -> str:
        model = self._model(system_instruction, response_schema)
        logger.info("Gemini %s request with %s", operation, self.model_name)
        try:
            response = model.generate_content(contents)
        except Exception as exc:
            logger.warning("Gemini %s request failed: %s", operation, exc)
            raise NetworkError(f"Gemini {operation} request failed: {exc}") from exc
        return _response_text(response)


def _response_text(response) -> str:
    # .text raises when the candidate was blocked or carries no parts.
    try:
        return (response.text or "").strip()
    except ValueError:
        return ""


def get_gateway() -> HealthGateway:
    return HealthGateway.from_settings()
