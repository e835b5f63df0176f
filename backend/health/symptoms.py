from dataclasses import dataclass, field

from .gateway import SymptomIntake

FIRST_STEP = 1
LAST_STEP = 4
DEFAULT_SEVERITY = 5
MISSING_SYMPTOMS_MESSAGE = "Please describe your symptoms."
STEP_FIELDS = {1: "symptoms", 2: "duration", 3: "severity", 4: "history"}


@dataclass
class SymptomWizard:
    """Four-step intake: symptoms, duration, severity, history."""

    step: int = FIRST_STEP
    answers: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "SymptomWizard":
        try:
            step = int(data.get("step", FIRST_STEP))
        except (TypeError, ValueError):
            step = FIRST_STEP
        step = min(max(step, FIRST_STEP), LAST_STEP)
        answers = {
            "symptoms": str(data.get("symptoms") or ""),
            "duration": str(data.get("duration") or ""),
            "severity": clamp_severity(data.get("severity", DEFAULT_SEVERITY)),
            "history": str(data.get("history") or ""),
        }
        return cls(step=step, answers=answers)

    @property
    def is_last_step(self) -> bool:
        return self.step == LAST_STEP

    @property
    def current_field(self) -> str:
        return STEP_FIELDS[self.step]

    @property
    def has_symptoms(self) -> bool:
        return bool(self.answers.get("symptoms", "").strip())

    def next(self) -> bool:
        """Advance one step; return True when the wizard is ready to submit.

        Leaving the first step and submitting both raise ``ValueError`` while
        no symptoms have been described.
        """
        if (self.step == FIRST_STEP or self.is_last_step) and not self.has_symptoms:
            raise ValueError(MISSING_SYMPTOMS_MESSAGE)
        if self.is_last_step:
            return True
        self.step += 1
        return False

    def back(self) -> None:
        if self.step > FIRST_STEP:
            self.step -= 1

    def intake(self) -> SymptomIntake:
        return SymptomIntake(
            symptoms=self.answers["symptoms"],
            duration=self.answers["duration"],
            severity=self.answers["severity"],
            history=self.answers["history"],
        )

    def to_dict(self) -> dict:
        return {"step": self.step, "field": self.current_field, **self.answers}


def clamp_severity(value) -> int:
    try:
        severity = int(value)
    except (TypeError, ValueError):
        return DEFAULT_SEVERITY
    return min(max(severity, 1), 10)
