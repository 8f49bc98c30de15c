"""Configuration loading and management for PHP Insight.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in AnalysisConfig)
    2. Global config (~/.php-insight.toml)
    3. Project config (./php-insight.toml)
    4. Explicit config file
    5. Environment variables (PHP_INSIGHT_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(verbose=True, workers=4)
    >>> config.verbosity
    'verbose'
    >>> config.workers
    4
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "PHP_INSIGHT_"
CONFIG_FILENAME = "php-insight.toml"


@dataclass(frozen=True)
class ThresholdConfig:
    """Rule thresholds and tuning parameters.

    Attributes:
        Duplication:
            similarity_threshold: Jaccard score at or above which two
                method bodies or blocks are reported as duplicates
            min_duplicate_lines: Minimum line span for a method or block to be
                considered at all (getters and one-liners fall below it)

        Class conflicts:
            class_method_similarity: Levenshtein similarity above which two
                same-named methods in different classes count as duplicated
            max_chain_length: Number of chained ``->`` calls on ``$this`` that
                triggers a long-chaining finding

        Method size:
            max_method_lines: Longest method (inclusive line count) that is
                not reported

        Logic and code smells:
            max_nesting_depth: Deepest if/loop/try nesting that is not reported
            max_complexity: Highest cyclomatic complexity that is not reported
            max_parameters: Most parameters a method may declare
    """

    # === Duplication ===
    similarity_threshold: float = 0.85
    min_duplicate_lines: int = 5

    # === Class conflicts ===
    class_method_similarity: float = 0.7
    max_chain_length: int = 4

    # === Method size ===
    max_method_lines: int = 15

    # === Logic and code smells ===
    max_nesting_depth: int = 4
    max_complexity: int = 10
    max_parameters: int = 4

    def __post_init__(self) -> None:
        """Validate threshold configuration."""
        for field_name in ("similarity_threshold", "class_method_similarity"):
            value = getattr(self, field_name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{field_name} must be between 0.0 and 1.0")

        if self.min_duplicate_lines < 1:
            raise ValueError("min_duplicate_lines must be at least 1")
        if self.max_method_lines < 1:
            raise ValueError("max_method_lines must be at least 1")
        if self.max_chain_length < 2:
            raise ValueError("max_chain_length must be at least 2")
        for field_name in ("max_nesting_depth", "max_complexity", "max_parameters"):
            if getattr(self, field_name) < 1:
                raise ValueError(f"{field_name} must be at least 1")


DEFAULT_THRESHOLDS = ThresholdConfig()


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for analysis execution.

    Attributes:
        Performance tuning:
            workers: Number of files analyzed concurrently (1 = sequential)
            file_timeout_seconds: Per-file time limit, counted from when a
                worker starts the file

        File filtering:
            exclude_dirs: Directory names skipped during discovery

        Rule selection:
            analyzers: Names of the analyzers to run, in default order
                (empty runs every analyzer)

        Parsing:
            tolerate_syntax_errors: Analyze files whose tree contains
                ERROR/MISSING nodes instead of skipping them

        Coding-standard bridge:
            enable_linters: Run PHPCS/PHPMD on every analyzed file
            phpcs_command: Path to the phpcs binary
            phpmd_command: Path to the phpmd binary
            linter_timeout_seconds: Subprocess timeout per tool invocation

        Output control:
            verbosity: Logging verbosity level
    """

    # Performance tuning
    workers: int = 1
    file_timeout_seconds: int = 30

    # File filtering
    exclude_dirs: list[str] = field(
        default_factory=lambda: ["vendor", "tests", "node_modules"]
    )

    # Rule selection
    analyzers: list[str] = field(default_factory=list)

    # Parsing
    tolerate_syntax_errors: bool = False

    # Coding-standard bridge
    enable_linters: bool = False
    phpcs_command: str = "vendor/bin/phpcs"
    phpmd_command: str = "vendor/bin/phpmd"
    linter_timeout_seconds: int = 60

    # Output control
    verbosity: Verbosity = "normal"

    # Rule thresholds (nested config)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.file_timeout_seconds < 1:
            raise ValueError("file_timeout_seconds must be at least 1")
        if self.linter_timeout_seconds < 1:
            raise ValueError("linter_timeout_seconds must be at least 1")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of quiet, normal, verbose")

    @property
    def verbose(self) -> bool:
        return self.verbosity == "verbose"


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep lower-priority values.

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ConfigurationError: If a config file is missing or unreadable
        InvalidConfigError: If a value is out of range or unknown

    Example:
        >>> config = load_config(config_file=Path("custom.toml"))
    """
    merged: dict = {}

    global_config = Path.home() / f".{CONFIG_FILENAME}"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / CONFIG_FILENAME
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update(overrides)

    # [thresholds] section from TOML
    thresholds_dict = merged.pop("thresholds", None)
    if thresholds_dict is not None:
        if isinstance(thresholds_dict, ThresholdConfig):
            merged["thresholds"] = thresholds_dict
        elif isinstance(thresholds_dict, dict):
            try:
                merged["thresholds"] = ThresholdConfig(**thresholds_dict)
            except (TypeError, ValueError) as e:
                raise InvalidConfigError("thresholds", thresholds_dict, str(e))
        else:
            raise InvalidConfigError("thresholds", thresholds_dict, "expected a table")

    try:
        return AnalysisConfig(**merged)
    except (TypeError, ValueError) as e:
        raise InvalidConfigError("config", merged, str(e))


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from PHP_INSIGHT_* environment variables.

    Supported environment variables:
        PHP_INSIGHT_WORKERS: int
        PHP_INSIGHT_FILE_TIMEOUT_SECONDS: int
        PHP_INSIGHT_TOLERATE_SYNTAX_ERRORS: bool (true/false/1/0)
        PHP_INSIGHT_ENABLE_LINTERS: bool
        PHP_INSIGHT_PHPCS_COMMAND: str
        PHP_INSIGHT_PHPMD_COMMAND: str
        PHP_INSIGHT_LINTER_TIMEOUT_SECONDS: int
        PHP_INSIGHT_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any PHP_INSIGHT_* vars found.
    """
    type_hints = get_type_hints(AnalysisConfig)

    result: dict[str, Any] = {}

    for field_name in AnalysisConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns:
        Parsed value, or None for types that cannot come from the environment

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Lists and nested configs are file-only
    if origin is list or type_hint is list or type_hint is ThresholdConfig:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If TOML support is missing or parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
