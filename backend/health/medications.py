import uuid
from dataclasses import asdict, dataclass
from typing import Iterable

TIME_SLOTS = ("Morning", "Afternoon", "Evening", "Night")
DEFAULT_DOSAGE = "1 Pill"
DEFAULT_DURATION = "Ongoing"


@dataclass
class Medication:
    id: str
    name: str
    dosage: str
    time: str
    duration: str
    taken: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Medication":
        time = str(data.get("time") or "").strip()
        if time not in TIME_SLOTS:
            raise ValueError(f"time must be one of {', '.join(TIME_SLOTS)}")
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        return cls(
            id=str(data.get("id") or uuid.uuid4().hex),
            name=name,
            dosage=str(data.get("dosage") or DEFAULT_DOSAGE).strip(),
            time=time,
            duration=str(data.get("duration") or DEFAULT_DURATION).strip(),
            taken=bool(data.get("taken", False)),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def parse_medications(items) -> list[Medication]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError("medications must be a list")
    parsed = []
    for item in items:
        if not isinstance(item, dict):
            raise ValueError("each medication must be an object")
        parsed.append(Medication.from_dict(item))
    return parsed


def add_medications(
    current: list[Medication],
    name: str,
    times: Iterable[str],
    dosage: str = "",
    duration: str = "",
) -> list[Medication]:
    """Return ``current`` plus one new record per selected time slot."""
    name = (name or "").strip()
    slots = [slot for slot in TIME_SLOTS if slot in set(times or ())]
    if not name or not slots:
        raise ValueError("Please enter a name and select at least one time.")

    added = [
        Medication(
            id=uuid.uuid4().hex,
            name=name,
            dosage=(dosage or "").strip() or DEFAULT_DOSAGE,
            time=slot,
            duration=(duration or "").strip() or DEFAULT_DURATION,
        )
        for slot in slots
    ]
    return [*current, *added]


def toggle_taken(current: list[Medication], medication_id: str) -> list[Medication]:
    for medication in current:
        if medication.id == medication_id:
            medication.taken = not medication.taken
    return current


def remove(current: list[Medication], medication_id: str) -> list[Medication]:
    return [medication for medication in current if medication.id != medication_id]


def unique_names(current: list[Medication]) -> list[str]:
    return list(dict.fromkeys(medication.name for medication in current))


def group_by_slot(current: list[Medication]) -> list[dict]:
    groups = []
    for slot in TIME_SLOTS:
        items = [medication.to_dict() for medication in current if medication.time == slot]
        if items:
            groups.append({"time": slot, "medications": items})
    return groups
