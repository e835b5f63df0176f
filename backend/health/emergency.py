from dataclasses import dataclass

from django.utils.text import slugify


@dataclass(frozen=True)
class EmergencyGuide:
    title: str
    icon: str
    steps: tuple[str, ...]

    @property
    def slug(self) -> str:
        return slugify(self.title)

    def to_dict(self) -> dict:
        return {"title": self.title, "slug": self.slug, "icon": self.icon, "steps": list(self.steps)}


GUIDES = (
    EmergencyGuide(
        title="CPR (Adult)",
        icon="\U0001FAC0",
        steps=(
            "Check responsiveness",
            "Call {number}",
            "Push hard & fast in center of chest (100-120 bpm)",
            "Give 2 rescue breaths after 30 compressions",
        ),
    ),
    EmergencyGuide(
        title="Choking",
        icon="\U0001F62E",
        steps=(
            "Stand behind person",
            "Wrap arms around waist",
            "Make a fist above navel",
            "Thrust inward and upward",
        ),
    ),
    EmergencyGuide(
        title="Severe Bleeding",
        icon="\U0001FA78",
        steps=(
            "Apply direct pressure with cloth",
            "Keep applying pressure",
            "Use tourniquet if needed",
            "Keep person warm",
        ),
    ),
    EmergencyGuide(
        title="Burns",
        icon="\U0001F525",
        steps=(
            "Cool with running water (10 mins)",
            "Do NOT use ice",
            "Cover with sterile dressing",
            "Do not pop blisters",
        ),
    ),
)


def render_guide(guide: EmergencyGuide, number: str) -> dict:
    data = guide.to_dict()
    data["steps"] = [step.format(number=number) for step in guide.steps]
    return data


def find_guide(slug: str) -> EmergencyGuide | None:
    for guide in GUIDES:
        if guide.slug == slug:
            return guide
    return None
