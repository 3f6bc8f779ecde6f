"""Result view for a freshly generated experiment."""

from pathlib import Path
from typing import Dict, List, Optional, Union

import aiofiles
import httpx
from pydantic import ValidationError

from api.schemas import ExperimentData, ResponseData
from api.shared.logger import get_logger

from . import summary
from .client import AnalyzerClient, AnalyzerClientError, ExportedFile

logger = get_logger(__name__)


async def save_export(
    download_dir: Union[str, Path],
    experiment_id: str,
    format: str,
    exported: ExportedFile,
) -> Path:
    """Write an exported file as ``experiment_<id>.<format>`` and return its path."""
    target_dir = Path(download_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / summary.export_filename(experiment_id, format)
    async with aiofiles.open(target, "wb") as f:
        await f.write(exported.content)
    logger.info("Saved %s (%d bytes, %s)", target, len(exported.content), exported.content_type)
    return target


class ResponseDisplay:
    """Charts, best-response marker and response cards for one experiment."""

    def __init__(
        self,
        experiment: ExperimentData,
        client: Optional[AnalyzerClient] = None,
        download_dir: Union[str, Path] = ".",
    ):
        self.experiment = experiment
        self.client = client
        self.download_dir = Path(download_dir)
        self.export_menus = summary.ExpansionState()
        for warning in self.range_warnings:
            logger.warning("Experiment %s: %s", experiment.id, warning)

    @property
    def chart_data(self) -> List[Dict[str, object]]:
        return summary.chart_data(self.experiment)

    @property
    def radar_data(self) -> List[Dict[str, object]]:
        return summary.radar_data(self.experiment)

    @property
    def best_response(self) -> Optional[ResponseData]:
        return summary.best_response(self.experiment)

    @property
    def average_metrics(self) -> Optional[Dict[str, float]]:
        return summary.average_metrics(self.experiment)

    @property
    def headline(self) -> str:
        return f"Generated {self.experiment.total_runs} diverse responses for comparison"

    @property
    def range_warnings(self) -> List[str]:
        """One message per response sampled outside the experiment's own range."""
        warnings = []
        for response in summary.responses_outside_range(self.experiment):
            p = response.parameters
            warnings.append(
                f"Response {response.id} used temperature={p.temperature}, "
                f"top_p={p.top_p}, max_tokens={p.max_tokens} outside the requested range"
            )
        return warnings

    def is_best(self, response: ResponseData) -> bool:
        best = self.best_response
        return best is not None and best.id == response.id

    def cards(self) -> List[Dict[str, object]]:
        cards = []
        for index, response in enumerate(self.experiment.responses):
            cards.append({
                "id": response.id,
                "title": f"Response {index + 1}",
                "best": self.is_best(response),
                "outOfRange": not self.experiment.parameter_range.contains(response.parameters),
                "temperature": response.parameters.temperature,
                "top_p": response.parameters.top_p,
                "max_tokens": response.parameters.max_tokens,
                "score": summary.format_score(response.metrics.overall_score),
                "generatedAt": summary.format_date(response.generated_at),
                "content": response.content,
            })
        return cards

    def toggle_export_menu(self) -> bool:
        return self.export_menus.toggle(self.experiment.id)

    async def export(self, format: str) -> Optional[Path]:
        """Download the experiment in ``format``; failures are only logged."""
        if self.client is None:
            raise RuntimeError("ResponseDisplay has no client to export with")
        try:
            exported = await self.client.export_experiment(self.experiment.id, format)
            path = await save_export(self.download_dir, self.experiment.id, format, exported)
        except (AnalyzerClientError, httpx.HTTPError, ValidationError, OSError) as e:
            logger.error("Export error for %s: %s", self.experiment.id, e)
            return None
        self.export_menus.close(self.experiment.id)
        return path
