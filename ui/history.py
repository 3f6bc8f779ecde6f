"""
Experiment history view.

Lists stored experiments with their derived scores, lets the user expand
long responses, delete an experiment after confirmation and download
exports. Deletions only update the local list; there is no refetch.
"""

from pathlib import Path
from typing import Callable, Dict, List, Literal, Optional, Union

import httpx
from pydantic import ValidationError

from api.schemas import ExperimentData, ResponseData
from api.shared.logger import get_logger

from . import summary
from .client import AnalyzerClient, AnalyzerClientError
from .display import save_export

logger = get_logger(__name__)

HistoryStatus = Literal["loading", "error", "empty", "loaded"]

DELETE_CONFIRMATION = "Are you sure you want to delete this experiment?"
DELETE_FAILED = "Failed to delete experiment"
FETCH_FAILED = "Failed to fetch experiments"


def _log_alert(message: str) -> None:
    logger.warning(message)


class ExperimentHistory:
    """State of the history tab.

    Args:
        client: API client used for list, delete and export calls.
        confirm: Asked before a delete; returning False cancels it.
        alert: Shows a blocking message to the user.
        download_dir: Where exports are written.
    """

    def __init__(
        self,
        client: AnalyzerClient,
        confirm: Optional[Callable[[str], bool]] = None,
        alert: Optional[Callable[[str], None]] = None,
        download_dir: Union[str, Path] = ".",
    ):
        self.client = client
        self.confirm = confirm or (lambda message: True)
        self.alert = alert or _log_alert
        self.download_dir = Path(download_dir)

        self.experiments: List[ExperimentData] = []
        self.status: HistoryStatus = "loading"
        self.error: Optional[str] = None
        self.expanded = summary.ExpansionState()
        self.export_menus = summary.ExpansionState()

    def _settle(self) -> None:
        self.status = "loaded" if self.experiments else "empty"

    async def refresh(self, page: int = 1, limit: int = 10) -> HistoryStatus:
        """Fetch one page of experiments. Also serves as the retry action."""
        self.status = "loading"
        self.error = None
        try:
            result = await self.client.list_experiments(page=page, limit=limit)
        except AnalyzerClientError as e:
            logger.error("Experiment list failed: %s", e)
            self.error = FETCH_FAILED
        except (httpx.HTTPError, ValidationError) as e:
            logger.error("Experiment list failed: %s", e)
            self.error = str(e) or "Unknown error"
        else:
            if result.success and result.data is not None:
                self.experiments = list(result.data.experiments)
                for experiment in self.experiments:
                    if not experiment.runs_consistent:
                        logger.warning(
                            "Experiment %s reports %d runs but holds %d responses",
                            experiment.id, experiment.total_runs, len(experiment.responses),
                        )
                self._settle()
                return self.status
            self.error = result.error or FETCH_FAILED

        self.status = "error"
        return self.status

    @property
    def count_label(self) -> str:
        count = len(self.experiments)
        return f"{count} experiment{'s' if count != 1 else ''} total"

    def find(self, experiment_id: str) -> Optional[ExperimentData]:
        for experiment in self.experiments:
            if experiment.id == experiment_id:
                return experiment
        return None

    async def delete(self, experiment_id: str) -> bool:
        """Delete after confirmation; the item is removed locally on success."""
        if not self.confirm(DELETE_CONFIRMATION):
            return False

        try:
            await self.client.delete_experiment(experiment_id)
        except (AnalyzerClientError, httpx.HTTPError, ValidationError) as e:
            logger.error("Delete error for %s: %s", experiment_id, e)
            self.alert(DELETE_FAILED)
            return False

        self.experiments = [e for e in self.experiments if e.id != experiment_id]
        self.export_menus.close(experiment_id)
        self._settle()
        return True

    def toggle_export_menu(self, experiment_id: str) -> bool:
        return self.export_menus.toggle(experiment_id)

    async def export(self, experiment_id: str, format: str) -> Optional[Path]:
        """Download an export to ``download_dir``; failures are only logged."""
        try:
            exported = await self.client.export_experiment(experiment_id, format)
            path = await save_export(self.download_dir, experiment_id, format, exported)
        except (AnalyzerClientError, httpx.HTTPError, ValidationError, OSError) as e:
            logger.error("Export error for %s: %s", experiment_id, e)
            return None
        self.export_menus.close(experiment_id)
        return path

    # ----- response previews -----

    def toggle_response(self, response_id: str) -> bool:
        return self.expanded.toggle(response_id)

    def should_truncate(self, response: ResponseData) -> bool:
        return len(response.content) > summary.PREVIEW_LENGTH

    def preview(self, response: ResponseData) -> str:
        """Full text when expanded, otherwise the 150-character preview."""
        if self.expanded.is_open(response.id):
            return response.content
        return summary.truncate_text(response.content)

    def scores(self, experiment: ExperimentData) -> dict:
        best = summary.best_score(experiment)
        average = summary.average_score(experiment)
        return {
            "best": summary.format_score(best) if best is not None else None,
            "average": summary.format_score(average) if average is not None else None,
        }

    def cards(self) -> List[Dict[str, object]]:
        """One summary card per loaded experiment, in list order."""
        cards = []
        for experiment in self.experiments:
            range_ = experiment.parameter_range
            cards.append({
                "id": experiment.id,
                "title": summary.experiment_title(experiment),
                "description": experiment.description,
                "prompt": summary.prompt_preview(experiment.prompt),
                "responses": experiment.total_runs,
                **self.scores(experiment),
                "createdAt": summary.format_date(experiment.created_at),
                "temperature": summary.format_range(range_.temperature),
                "top_p": summary.format_range(range_.top_p),
                "max_tokens": summary.format_range(range_.max_tokens),
                "exportMenuOpen": self.export_menus.is_open(experiment.id),
            })
        return cards
