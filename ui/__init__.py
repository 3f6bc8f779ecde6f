"""
Headless view models for the response analyzer.

These classes hold the state the analyzer pages work with and talk to the
``/api`` routes through :class:`AnalyzerClient`:
- Parameter range editing (parameters.py)
- Prompt and experiment setup (prompt.py)
- Generation orchestration (session.py)
- Result display (display.py) and experiment history (history.py)
- Derived scores, chart series and text previews (summary.py)
"""

from .client import AnalyzerClient, AnalyzerClientError, ExportedFile
from .display import ResponseDisplay
from .history import ExperimentHistory
from .parameters import ParameterRangeEditor
from .prompt import EmptyPromptError, GenerationRequestBuilder
from .session import ExperimentSession

__all__ = [
    "AnalyzerClient",
    "AnalyzerClientError",
    "ExportedFile",
    "ExperimentHistory",
    "ExperimentSession",
    "EmptyPromptError",
    "GenerationRequestBuilder",
    "ParameterRangeEditor",
    "ResponseDisplay",
]
