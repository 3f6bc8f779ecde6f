"""
Page-level experiment orchestration.

The session owns the current experiment, the busy flag and the active tab.
At most one generation call is outstanding: while one runs, further submits
are ignored, the same way the page disables its submit button.
"""

from typing import Callable, Literal, Optional

import httpx
from pydantic import ValidationError

from api.schemas import ExperimentData, GenerationRequest, InvalidParameterRangeError
from api.shared.logger import get_logger

from .client import AnalyzerClient, AnalyzerClientError
from .parameters import ParameterRangeEditor
from .prompt import EmptyPromptError, GenerationRequestBuilder

logger = get_logger(__name__)

Tab = Literal["generate", "history"]


class ExperimentSession:
    """State of the generate page.

    Args:
        client: API client used for the generation call.
        alert: Shows a blocking message (prompt or range problems) to the user.
    """

    def __init__(
        self,
        client: AnalyzerClient,
        alert: Optional[Callable[[str], None]] = None,
    ):
        self.client = client
        self.alert = alert or logger.warning
        self.editor = ParameterRangeEditor()
        self.form = GenerationRequestBuilder()

        self.current_experiment: Optional[ExperimentData] = None
        self.is_generating = False
        self.active_tab: Tab = "generate"

    def select_tab(self, tab: Tab) -> None:
        self.active_tab = tab

    async def submit(self) -> bool:
        """Build a request from the form and the editor, then generate.

        Returns True when a new experiment was stored.
        """
        try:
            request = self.form.build(self.editor.parameter_range)
        except (EmptyPromptError, InvalidParameterRangeError) as e:
            self.alert(str(e))
            return False
        return await self.generate(request)

    async def generate(self, request: GenerationRequest) -> bool:
        """Run one generation call; failures leave the current experiment untouched."""
        if self.is_generating:
            logger.debug("Generation already in progress, ignoring submit")
            return False

        self.is_generating = True
        try:
            result = await self.client.generate(request)
            if not result.success or result.data is None:
                logger.error("Generation error: %s", result.error or "backend reported failure")
                return False
            self.current_experiment = result.data
            self.active_tab = "generate"
            logger.info(
                "Experiment %s ready with %d responses",
                result.data.id, len(result.data.responses),
            )
            return True
        except (AnalyzerClientError, httpx.HTTPError, ValidationError) as e:
            logger.error("Generation error: %s", e)
            return False
        finally:
            self.is_generating = False
