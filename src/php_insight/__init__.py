"""PHP Insight - static analysis and duplication detection for PHP code."""

__version__ = "0.1.0"

from .api import analyze
from .config import AnalysisConfig, ThresholdConfig, load_config
from .exceptions import PhpInsightError
from .models import AnalysisResult, Finding, Severity, Statistics

__all__ = [
    "__version__",
    "analyze",
    "AnalysisConfig",
    "ThresholdConfig",
    "load_config",
    "PhpInsightError",
    "AnalysisResult",
    "Finding",
    "Severity",
    "Statistics",
]
