"""Analysis pipeline and result aggregation."""

from .aggregator import aggregate, compute_statistics, sort_findings
from .pipeline import AnalysisPipeline, FileOutcome, ProgressCallback

__all__ = [
    "AnalysisPipeline",
    "FileOutcome",
    "ProgressCallback",
    "aggregate",
    "compute_statistics",
    "sort_findings",
]
