"""Dashboard arithmetic: sleep duration, water intake, greeting and mood."""

import math
import re
from dataclasses import dataclass

MINUTES_PER_DAY = 24 * 60
CLOCK_PATTERN = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})$")


def parse_clock(value: str) -> int:
    """Return minutes after midnight for an ``HH:MM`` string."""
    match = CLOCK_PATTERN.match((value or "").strip())
    if not match:
        raise ValueError(f"Invalid time '{value}'. Use HH:MM.")
    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time '{value}'. Use HH:MM.")
    return hour * 60 + minute


def sleep_duration(bedtime: str, waketime: str) -> int:
    """Minutes slept; a wake time at or before bedtime falls on the next day."""
    bed = parse_clock(bedtime)
    wake = parse_clock(waketime)
    if wake <= bed:
        wake += MINUTES_PER_DAY
    return wake - bed


def manual_sleep(hours: float) -> int:
    hours = float(hours)
    if not math.isfinite(hours) or hours < 0:
        raise ValueError("Sleep hours cannot be negative.")
    return math.floor(hours * 60 + 0.5)


def format_duration(minutes: int) -> str:
    hours, minutes = divmod(int(minutes), 60)
    return f"{hours}h {minutes}m"


@dataclass
class WaterTracker:
    current: int = 0
    goal: int = 2500
    increment: int = 250

    @property
    def cap(self) -> int:
        return self.goal * 2

    @property
    def progress_percent(self) -> float:
        if self.goal <= 0:
            return 0.0
        return round(min(self.current / self.goal * 100, 100.0), 1)

    def add(self) -> int:
        self.current = min(self.current + self.increment, self.cap)
        return self.current

    def reset(self) -> int:
        self.current = 0
        return self.current

    def set_goal(self, goal) -> int:
        try:
            value = float(goal)
        except (TypeError, ValueError) as exc:
            raise ValueError("Water goal must be a number of millilitres.") from exc
        if not math.isfinite(value) or value <= 0:
            raise ValueError("Water goal must be positive.")
        self.goal = int(value)
        return self.goal

    def to_dict(self) -> dict:
        return {
            "current": self.current,
            "goal": self.goal,
            "current_liters": f"{self.current / 1000:.1f}L",
            "goal_liters": f"{self.goal / 1000:.1f}L",
            "progress_percent": self.progress_percent,
        }


def greeting(hour: int) -> str:
    if hour < 12:
        return "Good Morning"
    if hour < 18:
        return "Good Afternoon"
    return "Good Evening"


def mood_label(score: int) -> str:
    if score > 70:
        return "Great!"
    if score > 40:
        return "Okay"
    return "Low"


def steps_progress(steps: int, goal: int) -> float:
    if goal <= 0:
        return 0.0
    return round(min(steps / goal * 100, 100.0), 1)
