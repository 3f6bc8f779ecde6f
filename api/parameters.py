"""
Parameter range API endpoints.

These routes are served locally (no backend round-trip):
- Default sweep range and allowed run counts for a fresh form
- Preview of a candidate range: validation errors, grid values per axis
  and the number of parameter combinations it spans
"""

from typing import Dict, List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from .schemas import DEFAULT_RUN_COUNT, PARAMETER_NAMES, RUN_COUNT_OPTIONS, ParameterRange
from .shared.relay import error_response

router = APIRouter(prefix="/parameters", tags=["parameters"])

# Per-axis ceiling on listed grid values
MAX_PREVIEW_POINTS = 10_000


class RangePreview(BaseModel):
    """What a sweep over a ParameterRange would cover."""
    valid: bool
    errors: List[str] = Field(default_factory=list)
    values: Dict[str, list] = Field(default_factory=dict)
    combinations: int = 0


@router.get("/defaults")
async def get_defaults():
    """Default parameter range and run-count options."""
    return {
        "success": True,
        "data": {
            "parameterRange": ParameterRange.default().to_dict(),
            "runCountOptions": list(RUN_COUNT_OPTIONS),
            "defaultRunCount": DEFAULT_RUN_COUNT,
        },
    }


@router.post("/preview")
async def preview_range(parameter_range: ParameterRange):
    """Validate a range and list the grid it spans."""
    errors = parameter_range.validation_errors()
    if errors:
        preview = RangePreview(valid=False, errors=errors)
        return {"success": True, "data": preview.model_dump()}

    for name in PARAMETER_NAMES:
        points = parameter_range.bounds(name).count()
        if points > MAX_PREVIEW_POINTS:
            return error_response(
                400,
                f"{name}: range spans {points} values, preview lists at most {MAX_PREVIEW_POINTS}",
            )

    preview = RangePreview(
        valid=True,
        values={name: parameter_range.axis_values(name) for name in PARAMETER_NAMES},
        combinations=parameter_range.combination_count(),
    )
    return {"success": True, "data": preview.model_dump()}
