"""
Data contract shared by the proxy routes and the ui layer.

The backend speaks camelCase JSON (``overallScore``, ``parameterRange``,
``totalRuns``). Models expose snake_case attributes, accept either spelling
on input and serialize with the wire aliases.
"""

import math
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")

RUN_COUNT_OPTIONS = (3, 5, 10, 15, 20)
DEFAULT_RUN_COUNT = 5
PARAMETER_NAMES = ("temperature", "top_p", "max_tokens")
BOUND_FIELDS = ("min", "max", "step")

# Tolerance for float comparisons on sweep grids (0.1 + 0.2 style drift)
_EPSILON = 1e-9


class InvalidParameterRangeError(ValueError):
    """Raised when a ParameterRange has a non-finite or inverted bound, or a non-positive step."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class WireModel(BaseModel):
    """Base for every model exchanged with the backend."""
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls.model_validate(data)


# ============================================================================
# Parameter Range
# ============================================================================


class ParameterBounds(WireModel):
    """Inclusive bounds and step for a float sampling parameter."""
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    min: float
    max: float
    step: float

    def is_finite(self) -> bool:
        return all(math.isfinite(getattr(self, field)) for field in BOUND_FIELDS)

    def span(self) -> float:
        """Steps between min and max; inf when the range overflows a float."""
        return (self.max - self.min) / self.step

    def overflows(self) -> bool:
        return not math.isfinite(self.span())

    def is_well_formed(self) -> bool:
        return (
            self.is_finite()
            and self.step > 0
            and self.min <= self.max
            and not self.overflows()
        )

    def count(self) -> int:
        """Number of grid points, computed without building the grid."""
        if not self.is_well_formed():
            return 0
        return int(math.floor(self.span() + _EPSILON)) + 1

    def values(self) -> List[float]:
        """Inclusive grid ``min, min+step, ... <= max``. Empty when malformed."""
        return [round(self.min + i * self.step, 10) for i in range(self.count())]

    def contains(self, value: float) -> bool:
        return self.min - _EPSILON <= value <= self.max + _EPSILON


class TokenBounds(ParameterBounds):
    """Inclusive bounds and step for an integer sampling parameter."""
    min: int
    max: int
    step: int

    # Integer grids are counted exactly, whatever their size
    def is_finite(self) -> bool:
        return True

    def overflows(self) -> bool:
        return False

    def count(self) -> int:
        if not self.is_well_formed():
            return 0
        return (self.max - self.min) // self.step + 1

    def values(self) -> List[int]:
        if not self.is_well_formed():
            return []
        return list(range(self.min, self.max + 1, self.step))


class ParameterRange(WireModel):
    """Bounds for every tunable sampling parameter of a sweep.

    Construction accepts inverted or zero-step bounds so that an editor can
    hold intermediate drafts; call :meth:`ensure_valid` before a range leaves
    the process.
    """
    temperature: ParameterBounds
    top_p: ParameterBounds
    max_tokens: TokenBounds

    @classmethod
    def default(cls) -> "ParameterRange":
        return cls(
            temperature=ParameterBounds(min=0.1, max=1.0, step=0.1),
            top_p=ParameterBounds(min=0.1, max=1.0, step=0.1),
            max_tokens=TokenBounds(min=100, max=1000, step=100),
        )

    def bounds(self, name: str) -> ParameterBounds:
        if name not in PARAMETER_NAMES:
            raise KeyError(f"Unknown parameter: {name}")
        return getattr(self, name)

    def validation_errors(self) -> List[str]:
        errors = []
        for name in PARAMETER_NAMES:
            bounds = self.bounds(name)
            if not bounds.is_finite():
                errors.append(
                    f"{name}: bounds must be finite numbers "
                    f"(got min={bounds.min}, max={bounds.max}, step={bounds.step})"
                )
                continue
            if not bounds.step > 0:
                errors.append(f"{name}: step must be positive (got {bounds.step})")
            if bounds.min > bounds.max:
                errors.append(f"{name}: min ({bounds.min}) must not exceed max ({bounds.max})")
            if bounds.step > 0 and bounds.min <= bounds.max and bounds.overflows():
                errors.append(f"{name}: range is too wide for step {bounds.step}")
        return errors

    def is_valid(self) -> bool:
        return not self.validation_errors()

    def ensure_valid(self) -> "ParameterRange":
        errors = self.validation_errors()
        if errors:
            raise InvalidParameterRangeError(errors)
        return self

    def axis_values(self, name: str) -> list:
        return self.bounds(name).values()

    def combination_count(self) -> int:
        """Number of distinct (temperature, top_p, max_tokens) grid points."""
        return math.prod(self.bounds(name).count() for name in PARAMETER_NAMES)

    def contains(self, parameters: "GenerationParameters") -> bool:
        return all(
            self.bounds(name).contains(getattr(parameters, name))
            for name in PARAMETER_NAMES
        )


# ============================================================================
# Responses and experiments
# ============================================================================


class GenerationParameters(WireModel):
    """Concrete sampling point used for one generated response."""
    temperature: float
    top_p: float
    max_tokens: int
    model: Optional[str] = None


class QualityMetrics(WireModel):
    """Component scores plus the aggregate, nominally in [0, 1]."""
    coherence: float
    completeness: float
    readability: float
    relevance: float
    overall_score: float = Field(alias="overallScore")


class MetricDetails(WireModel):
    score: float
    explanation: str = ""
    calculation: str = ""
    factors: Dict[str, float] = Field(default_factory=dict)


class ResponseData(WireModel):
    """One generated candidate. Immutable once received."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    content: str
    parameters: GenerationParameters
    metrics: QualityMetrics
    metric_details: Dict[str, MetricDetails] = Field(default_factory=dict, alias="metricDetails")
    generated_at: str = Field(alias="generatedAt")
    model: str
    tokens_used: Optional[int] = Field(None, alias="tokensUsed")
    generation_time: Optional[float] = Field(None, alias="generationTime")


class ExperimentData(WireModel):
    """A prompt, its parameter range and the responses produced for it."""
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    prompt: str
    parameter_range: ParameterRange = Field(alias="parameterRange")
    responses: List[ResponseData] = Field(default_factory=list)
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")
    total_runs: int = Field(alias="totalRuns")

    @property
    def runs_consistent(self) -> bool:
        return self.total_runs == len(self.responses)


class ExperimentList(WireModel):
    """Payload of ``GET /api/experiments``; pagination keys pass through untouched."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    experiments: List[ExperimentData] = Field(default_factory=list)


# ============================================================================
# Request / response envelopes
# ============================================================================


class GenerationRequest(WireModel):
    """Prompt plus sweep definition sent to ``POST /api/generate``."""
    prompt: str
    parameter_range: ParameterRange = Field(alias="parameterRange")
    number_of_runs: int = Field(DEFAULT_RUN_COUNT, alias="numberOfRuns")
    experiment_name: Optional[str] = Field(None, alias="experimentName")
    experiment_description: Optional[str] = Field(None, alias="experimentDescription")

    @model_validator(mode="after")
    def check_request(self) -> "GenerationRequest":
        if not self.prompt.strip():
            raise ValueError("Prompt must not be empty")
        if self.number_of_runs not in RUN_COUNT_OPTIONS:
            options = ", ".join(str(n) for n in RUN_COUNT_OPTIONS)
            raise ValueError(f"numberOfRuns must be one of {options} (got {self.number_of_runs})")
        self.parameter_range.ensure_valid()
        return self


class GenerationResponse(WireModel):
    experiment_id: str = Field(alias="experimentId")
    responses: List[ResponseData] = Field(default_factory=list)
    total_runs: int = Field(alias="totalRuns")
    average_metrics: QualityMetrics = Field(alias="averageMetrics")


class ExportRequest(WireModel):
    experiment_id: str = Field(..., min_length=1, alias="experimentId")
    format: Literal["json", "csv", "pdf"]
    include_metrics: bool = Field(True, alias="includeMetrics")
    include_details: bool = Field(False, alias="includeDetails")


class ApiResponse(WireModel, Generic[T]):
    """Uniform success/error envelope wrapping every proxied call."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def failure(cls, error: str, message: Optional[str] = None) -> "ApiResponse":
        return cls(success=False, error=error, message=message)
