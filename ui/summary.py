"""
Derived values for experiment views.

Everything here is computed from data already fetched; nothing calls the
API. Scores are rounded half-up to two decimals for display, and helpers
return ``None`` for experiments without responses.
"""

import math
from datetime import datetime
from typing import Dict, Hashable, Iterator, List, Optional, Set

from api.schemas import ExperimentData, ParameterBounds, ResponseData

PREVIEW_LENGTH = 150
PROMPT_PREVIEW_LENGTH = 100
INVALID_DATE = "Invalid Date"

COMPONENT_METRICS = ("coherence", "completeness", "readability", "relevance")
ALL_METRICS = COMPONENT_METRICS + ("overall_score",)


def format_score(score: float) -> float:
    return math.floor(score * 100 + 0.5) / 100


def format_date(value: str) -> str:
    """Render an ISO timestamp as ``Oct 18 2026, 09:12 AM`` in its own offset."""
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        date = datetime.fromisoformat(value)
    except (TypeError, ValueError, AttributeError):
        return INVALID_DATE
    return f"{date:%b} {date.day} {date.year}, {date:%I:%M %p}"


def truncate_text(text: str, max_length: int = PREVIEW_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def prompt_preview(prompt: str) -> str:
    return truncate_text(prompt, PROMPT_PREVIEW_LENGTH)


def export_filename(experiment_id: str, format: str) -> str:
    return f"experiment_{experiment_id}.{format}"


def _plain_number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_range(bounds: ParameterBounds) -> str:
    """``min - max`` without trailing zeros, e.g. ``0.1 - 1``."""
    return f"{_plain_number(bounds.min)} - {_plain_number(bounds.max)}"


def experiment_title(experiment: ExperimentData) -> str:
    return experiment.name or f"Experiment {experiment.id[-8:]}"


def best_score(experiment: ExperimentData) -> Optional[float]:
    if not experiment.responses:
        return None
    return max(r.metrics.overall_score for r in experiment.responses)


def average_score(experiment: ExperimentData) -> Optional[float]:
    if not experiment.responses:
        return None
    return sum(r.metrics.overall_score for r in experiment.responses) / len(experiment.responses)


def best_response(experiment: ExperimentData) -> Optional[ResponseData]:
    """Highest overall score; the earliest response wins ties."""
    best = None
    for response in experiment.responses:
        if best is None or response.metrics.overall_score > best.metrics.overall_score:
            best = response
    return best


def average_metrics(experiment: ExperimentData) -> Optional[Dict[str, float]]:
    """Mean of every metric, keyed by its wire name."""
    responses = experiment.responses
    if not responses:
        return None
    averages = {}
    for name in ALL_METRICS:
        key = "overallScore" if name == "overall_score" else name
        averages[key] = sum(getattr(r.metrics, name) for r in responses) / len(responses)
    return averages


def chart_data(experiment: ExperimentData) -> List[Dict[str, object]]:
    """One bar group per response, scores rounded for display."""
    rows = []
    for index, response in enumerate(experiment.responses):
        metrics = response.metrics
        rows.append({
            "name": f"Response {index + 1}",
            "coherence": format_score(metrics.coherence),
            "completeness": format_score(metrics.completeness),
            "readability": format_score(metrics.readability),
            "relevance": format_score(metrics.relevance),
            "overall": format_score(metrics.overall_score),
        })
    return rows


def radar_data(experiment: ExperimentData) -> List[Dict[str, object]]:
    averages = average_metrics(experiment)
    if averages is None:
        return []
    return [
        {"metric": name.capitalize(), "score": averages[name]}
        for name in COMPONENT_METRICS
    ]


def responses_outside_range(experiment: ExperimentData) -> List[ResponseData]:
    """Responses whose sampling point is outside the experiment's own range."""
    return [
        r for r in experiment.responses
        if not experiment.parameter_range.contains(r.parameters)
    ]


class ExpansionState:
    """Set of open panel identifiers.

    Each identifier toggles independently, so any number of panels
    (response bodies, export menus) can be open at once.
    """

    def __init__(self) -> None:
        self._open: Set[Hashable] = set()

    def toggle(self, key: Hashable) -> bool:
        """Flip one panel; return whether it is now open."""
        if key in self._open:
            self._open.discard(key)
            return False
        self._open.add(key)
        return True

    def open(self, key: Hashable) -> None:
        self._open.add(key)

    def close(self, key: Hashable) -> None:
        self._open.discard(key)

    def is_open(self, key: Hashable) -> bool:
        return key in self._open

    def clear(self) -> None:
        self._open.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._open

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._open)

    def __len__(self) -> int:
        return len(self._open)
