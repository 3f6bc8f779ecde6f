"""Parameter range editor state."""

from typing import Callable, List, Optional

from api.schemas import BOUND_FIELDS, PARAMETER_NAMES, ParameterRange


class ParameterRangeEditor:
    """Holds the sweep range being edited and reports every change.

    Edits are not validated: a user raising ``min`` above ``max`` on the way
    to raising ``max`` must be able to do so. :meth:`problems` lists what
    would block a submit.
    """

    def __init__(
        self,
        parameter_range: Optional[ParameterRange] = None,
        on_change: Optional[Callable[[ParameterRange], None]] = None,
    ):
        self.parameter_range = parameter_range or ParameterRange.default()
        self.on_change = on_change

    def _emit(self, parameter_range: ParameterRange) -> ParameterRange:
        self.parameter_range = parameter_range
        if self.on_change is not None:
            self.on_change(parameter_range)
        return parameter_range

    def update(self, parameter: str, field: str, value: float) -> ParameterRange:
        """Replace exactly one bound of one parameter."""
        if parameter not in PARAMETER_NAMES:
            raise KeyError(f"Unknown parameter: {parameter}")
        if field not in BOUND_FIELDS:
            raise KeyError(f"Unknown bound field: {field}")

        if parameter == "max_tokens":
            value = int(value)
        bounds = self.parameter_range.bounds(parameter).model_copy(update={field: value})
        return self._emit(self.parameter_range.model_copy(update={parameter: bounds}))

    def reset(self) -> ParameterRange:
        return self._emit(ParameterRange.default())

    def problems(self) -> List[str]:
        return self.parameter_range.validation_errors()
