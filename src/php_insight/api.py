"""Public API for PHP Insight.

Example:
    >>> from php_insight import analyze
    >>>
    >>> result = analyze("/path/to/laravel-app")
    >>> result.statistics.total_issues
    42
    >>>
    >>> # With overrides
    >>> result = analyze("/path/to/app", workers=4, enable_linters=True)
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import load_config
from .core.pipeline import AnalysisPipeline, ProgressCallback
from .logging_config import get_logger, setup_logging
from .models import AnalysisResult

logger = get_logger(__name__)


def analyze(
    path: str = ".",
    config_file: Optional[Path] = None,
    on_progress: ProgressCallback = None,
    **overrides,
) -> AnalysisResult:
    """Analyze every PHP file under ``path``.

    Steps:
    1. Load configuration (auto-discover TOML, env vars, apply overrides)
    2. Discover PHP files, skipping excluded directories
    3. Run the analysis pipeline
    4. Return the aggregated result

    Args:
        path: Project root (default: current directory)
        config_file: Optional explicit config file path
        on_progress: Optional callback receiving status messages
        **overrides: Configuration overrides (e.g. workers=4, verbose=True)

    Returns:
        AnalysisResult with findings and statistics

    Raises:
        ConfigurationError: If configuration is invalid
        InvalidPathError: If ``path`` is not a directory
    """
    log_file = overrides.pop("log_file", None)
    setup_logging(
        verbose=bool(overrides.get("verbose")),
        quiet=bool(overrides.get("quiet")),
        log_file=log_file,
    )

    config = load_config(config_file=config_file, **overrides)
    logger.debug(f"Configuration loaded: {config.verbosity} mode, {config.workers} worker(s)")
    logger.info(f"Starting analysis of {path}")

    pipeline = AnalysisPipeline(config)
    return pipeline.run(Path(path), on_progress=on_progress)
