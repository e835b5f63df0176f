from collections.abc import Mapping

STEPS_HIGHLIGHT_THRESHOLD = 8000


def validate_metrics(metrics) -> dict:
    if not isinstance(metrics, Mapping) or not metrics:
        raise ValueError("metrics must be a non-empty object")
    return dict(metrics)


def step_highlights(metrics: Mapping) -> list[dict]:
    """Mark each day of a ``steps`` series that reached the highlight threshold."""
    series = metrics.get("steps")
    if not isinstance(series, list):
        return []

    days = []
    for entry in series:
        if not isinstance(entry, Mapping):
            continue
        try:
            steps = int(entry.get("steps"))
        except (TypeError, ValueError):
            continue
        days.append(
            {
                "day": str(entry.get("day", "")),
                "steps": steps,
                "goal_met": steps >= STEPS_HIGHLIGHT_THRESHOLD,
            }
        )
    return days
