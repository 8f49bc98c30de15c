"""Bridge to the PHP coding-standard tools PHPCS and PHPMD.

Both tools are optional. A missing binary, a crash, a timeout or output that
is not JSON yields no findings for that tool; the reason is logged at debug
level and the run continues.

    PHPCS:  <phpcs> --standard=PSR12 --report=json <file>
    PHPMD:  <phpmd> <file> json codesize,design,naming,unusedcode
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Optional

from ..config import AnalysisConfig
from ..exceptions import ToolUnavailableError
from ..logging_config import get_logger
from ..models import Finding, Severity

logger = get_logger(__name__)

PHPCS_STANDARD = "PSR12"
PHPMD_RULESETS = "codesize,design,naming,unusedcode"


def phpcs_severity(severity: Any) -> Severity:
    return Severity.CRITICAL if severity == 5 else Severity.MINOR


def phpmd_severity(priority: Any) -> Severity:
    try:
        priority = int(priority)
    except (TypeError, ValueError):
        return Severity.MINOR
    if priority >= 5:
        return Severity.CRITICAL
    if priority >= 3:
        return Severity.MAJOR
    return Severity.MINOR


def _line(value: Any) -> int:
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        return 1


class CodingStandardLinter:
    """Runs PHPCS and PHPMD on single files and converts their reports."""

    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        config = config or AnalysisConfig()
        self.phpcs_command = config.phpcs_command
        self.phpmd_command = config.phpmd_command
        self.timeout = config.linter_timeout_seconds

    def check(self, path: Path) -> list[Finding]:
        """Findings from every available tool for one file."""
        path = Path(path)
        findings: list[Finding] = []
        for tool, runner in (("phpcs", self._check_phpcs), ("phpmd", self._check_phpmd)):
            try:
                findings.extend(runner(path))
            except ToolUnavailableError as e:
                logger.debug(f"{tool} skipped for {path}: {e.reason}")
        return findings

    def _run(self, tool: str, args: list[str], path: Path) -> Any:
        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=str(path.parent),
            )
        except FileNotFoundError:
            raise ToolUnavailableError(tool, f"command not found: {args[0]}")
        except subprocess.TimeoutExpired:
            raise ToolUnavailableError(tool, f"timed out after {self.timeout}s")
        except OSError as e:
            raise ToolUnavailableError(tool, str(e))

        # both tools exit non-zero when they report violations; only empty output is a failure
        if not result.stdout.strip():
            raise ToolUnavailableError(
                tool, f"no output (exit code {result.returncode}): {result.stderr.strip()[:200]}"
            )
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ToolUnavailableError(tool, f"invalid JSON output: {e}")

    def _check_phpcs(self, path: Path) -> list[Finding]:
        data = self._run(
            "phpcs",
            [self.phpcs_command, f"--standard={PHPCS_STANDARD}", "--report=json", str(path)],
            path,
        )
        files = _mapping(_mapping(data, "phpcs", "report").get("files") or {}, "phpcs", "files")
        report = files.get(str(path))
        if report is None and len(files) == 1:
            report = next(iter(files.values()))
        if not report:
            return []

        messages = _records(_mapping(report, "phpcs", "file report").get("messages"), "phpcs")
        return [
            Finding(
                type="coding_standard",
                severity=phpcs_severity(message.get("severity")),
                message=str(message.get("message", "")),
                file_path=str(path),
                line=_line(message.get("line")),
                refactor_info={"tool": "PHPCS", "rule": message.get("source")},
            )
            for message in messages
        ]

    def _check_phpmd(self, path: Path) -> list[Finding]:
        data = self._run(
            "phpmd",
            [self.phpmd_command, str(path), "json", PHPMD_RULESETS],
            path,
        )
        files = _records(_mapping(data, "phpmd", "report").get("files"), "phpmd")
        if not files:
            return []

        return [
            Finding(
                type="code_smell",
                severity=phpmd_severity(violation.get("priority")),
                message=str(violation.get("description") or violation.get("message") or ""),
                file_path=str(path),
                line=_line(violation.get("beginLine")),
                refactor_info={"tool": "PHPMD", "rule": violation.get("rule")},
            )
            for violation in _records(files[0].get("violations"), "phpmd")
        ]


def _mapping(value: Any, tool: str, what: str) -> dict:
    if not isinstance(value, dict):
        raise ToolUnavailableError(tool, f"unexpected {what}: {type(value).__name__}")
    return value


def _records(value: Any, tool: str) -> list[dict]:
    """A JSON list whose entries are all objects; None counts as empty."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ToolUnavailableError(tool, f"unexpected report shape: {str(value)[:100]}")
    return value
