"""Prompt and experiment setup form."""

from typing import Optional

from api.schemas import (
    DEFAULT_RUN_COUNT,
    RUN_COUNT_OPTIONS,
    GenerationRequest,
    ParameterRange,
)

EMPTY_PROMPT_MESSAGE = "Please enter a prompt"


class EmptyPromptError(ValueError):
    """The prompt is empty or whitespace only; nothing may be sent."""


def _optional_text(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class GenerationRequestBuilder:
    """Collects the form fields and turns them into a GenerationRequest.

    The builder does not send anything; the session owning it does.
    """

    def __init__(
        self,
        prompt: str = "",
        experiment_name: str = "",
        experiment_description: str = "",
        number_of_runs: int = DEFAULT_RUN_COUNT,
    ):
        self.prompt = prompt
        self.experiment_name = experiment_name
        self.experiment_description = experiment_description
        self.number_of_runs = number_of_runs

    @property
    def number_of_runs(self) -> int:
        return self._number_of_runs

    @number_of_runs.setter
    def number_of_runs(self, value: int) -> None:
        if value not in RUN_COUNT_OPTIONS:
            options = ", ".join(str(n) for n in RUN_COUNT_OPTIONS)
            raise ValueError(f"Number of runs must be one of {options}, got {value}")
        self._number_of_runs = value

    def build(self, parameter_range: ParameterRange) -> GenerationRequest:
        """Build the request.

        Raises:
            EmptyPromptError: if the prompt is blank after trimming.
            InvalidParameterRangeError: if a bound is inverted or a step is not positive.
        """
        prompt = self.prompt.strip()
        if not prompt:
            raise EmptyPromptError(EMPTY_PROMPT_MESSAGE)
        parameter_range.ensure_valid()

        return GenerationRequest(
            prompt=prompt,
            parameter_range=parameter_range,
            number_of_runs=self.number_of_runs,
            experiment_name=_optional_text(self.experiment_name),
            experiment_description=_optional_text(self.experiment_description),
        )
