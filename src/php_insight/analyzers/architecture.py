"""ARCHITECTURE: layering rules for Laravel controllers, models and services.

Finding types:
    business_logic_in_controller  major  Model::where/find/create/update in a controller
    thick_controller              major  controller method with too much logic
    raw_query_in_controller       major  DB:: in a controller method (index actions allowed)
    missing_response              info   controller action without a view/json/redirect
    missing_fillable              major  model without $fillable/$guarded
    fat_model                     minor  business logic inside a model method
    raw_query_in_model            info   DB:: inside a model method
    missing_di                    info   service class without a constructor
    missing_repository_interface  info   repository without an interface to implement
    direct_db_facade              minor  DB facade imported outside services/repositories
    global_facade                 minor  Auth facade imported outside HTTP/auth contexts

Files are classified by path (see ``laravel``); migrations, seeders and
factories may use the DB facade freely.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import NodeKind, SyntaxNode
from .base import Analyzer
from .laravel import is_controller, is_model, is_scaffolding

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree

MODEL_CALLS = ("::where", "::find", "::create", "::update")
RESPONSE_MARKERS = ("view", "json", "redirect", "response")
AUTH_CONTEXTS = ("Controller", "Middleware", "Policy", "Gate", "AuthService", "NotificationService")
DB_CONTEXTS = ("Services/", "Repositories/", "Models/", "Migration", "Seeder", "Factory")

DB_FACADE_IMPORT = "use Illuminate\\Support\\Facades\\DB;"
AUTH_FACADE_IMPORT = "use Illuminate\\Support\\Facades\\Auth;"

# Non-blank lines, if statements and foreach loops a controller action may hold
THICK_LINES = 20
THICK_IFS = 3
THICK_LOOPS = 1


def has_complex_logic(method: SyntaxNode) -> bool:
    lines = [line for line in method.text.splitlines() if line.strip()]
    ifs = len(method.find_all(NodeKind.IF))
    loops = sum(1 for node in method.find_all(NodeKind.LOOP) if node.type == "foreach_statement")
    return len(lines) > THICK_LINES or ifs > THICK_IFS or loops > THICK_LOOPS


def has_business_logic(text: str) -> bool:
    return (
        ("if (" in text and "calculate" in text)
        or ("foreach" in text and "process" in text)
        or "validate" in text
        or "transform" in text
    )


def is_plumbing_method(name: str) -> bool:
    """Controller methods that are not actions."""
    return name in ("__construct", "__destruct", "middleware") or name.startswith("validate")


class ArchitectureAnalyzer(Analyzer):
    """Keeps controllers thin and models, services and repositories in their layer."""

    name = "architecture"

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        path, code = file.path, file.content
        findings = self._check_facades(path, code)

        controller = is_controller(path)
        model = is_model(path, code)
        for cls in tree.root.find_all(NodeKind.CLASS):
            if model:
                findings.extend(self._check_model_class(path, code, cls))
            if "Services/" in path and "public function __construct" not in code:
                findings.append(
                    Finding(
                        type="missing_di",
                        severity=Severity.INFO,
                        message="Service class may benefit from Dependency Injection",
                        file_path=path,
                        line=cls.start_line,
                        suggestion="Inject dependencies through constructor",
                    )
                )
            implements = cls.child_of_type("class_interface_clause") is not None
            has_interface = implements or "interface" in code or "Interface" in path
            if "Repositories/" in path and not has_interface:
                findings.append(
                    Finding(
                        type="missing_repository_interface",
                        severity=Severity.INFO,
                        message="Repository is missing interface",
                        file_path=path,
                        line=cls.start_line,
                        suggestion="Create interface for Repository to improve testability",
                    )
                )

        for method in tree.methods():
            if controller:
                findings.extend(self._check_controller_method(path, method))
            if model:
                findings.extend(self._check_model_method(path, method))
        return findings

    def _check_controller_method(self, path: str, method: SyntaxNode) -> list[Finding]:
        name = method.name
        text = method.text
        findings: list[Finding] = []

        def add(type_: str, severity: Severity, message: str, suggestion: str) -> None:
            findings.append(
                Finding(
                    type=type_,
                    severity=severity,
                    message=message,
                    file_path=path,
                    line=method.start_line,
                    end_line=method.end_line,
                    suggestion=suggestion,
                    refactor_info={"methodName": name},
                )
            )

        if any(call in text for call in MODEL_CALLS):
            add(
                "business_logic_in_controller",
                Severity.MAJOR,
                f'Controller method "{name}" contains direct model logic',
                "Move model queries to Service Layer or Repository",
            )
        if has_complex_logic(method):
            add(
                "thick_controller",
                Severity.MAJOR,
                f'Controller method "{name}" is doing too much work',
                "Extract business logic to Service Layer",
            )
        if "DB::" in text and "index" not in name:
            add(
                "raw_query_in_controller",
                Severity.MAJOR,
                f'Controller method "{name}" uses raw database queries',
                "Use Eloquent ORM or move to Repository/Service layer",
            )
        responds = "return" in text and any(marker in text for marker in RESPONSE_MARKERS)
        if not is_plumbing_method(name) and not responds:
            add(
                "missing_response",
                Severity.INFO,
                f'Controller method "{name}" may be missing proper response',
                "Ensure method returns proper Laravel Response (view/json/redirect)",
            )
        return findings

    def _check_model_class(self, path: str, code: str, cls: SyntaxNode) -> list[Finding]:
        if "protected $fillable" in code or "protected $guarded" in code:
            return []
        return [
            Finding(
                type="missing_fillable",
                severity=Severity.MAJOR,
                message=f'Model "{cls.name}" is missing $fillable or $guarded property',
                file_path=path,
                line=cls.start_line,
                suggestion=(
                    "Add protected $fillable array to prevent mass assignment vulnerabilities"
                ),
            )
        ]

    def _check_model_method(self, path: str, method: SyntaxNode) -> list[Finding]:
        text = method.text
        findings: list[Finding] = []
        if has_business_logic(text):
            findings.append(
                Finding(
                    type="fat_model",
                    severity=Severity.MINOR,
                    message=f'Model method "{method.name}" contains business logic',
                    file_path=path,
                    line=method.start_line,
                    end_line=method.end_line,
                    suggestion="Move business logic to Service Layer",
                )
            )
        if "DB::" in text:
            findings.append(
                Finding(
                    type="raw_query_in_model",
                    severity=Severity.INFO,
                    message=f'Model method "{method.name}" uses raw database queries',
                    file_path=path,
                    line=method.start_line,
                    end_line=method.end_line,
                    suggestion="Prefer Eloquent query builder methods",
                )
            )
        return findings

    def _check_facades(self, path: str, code: str) -> list[Finding]:
        findings: list[Finding] = []
        db_allowed = is_scaffolding(path) or any(ctx in path for ctx in DB_CONTEXTS)
        if DB_FACADE_IMPORT in code and not db_allowed:
            findings.append(
                Finding(
                    type="direct_db_facade",
                    severity=Severity.MINOR,
                    message="Direct use of DB facade in non-migration file",
                    file_path=path,
                    line=_line_of(code, DB_FACADE_IMPORT),
                    suggestion="Consider using Eloquent or Repository pattern",
                )
            )
        if AUTH_FACADE_IMPORT in code and not any(ctx in path for ctx in AUTH_CONTEXTS):
            findings.append(
                Finding(
                    type="global_facade",
                    severity=Severity.MINOR,
                    message=(
                        "Use of global facade outside typical contexts "
                        "(Controller/Middleware/Policy)"
                    ),
                    file_path=path,
                    line=_line_of(code, AUTH_FACADE_IMPORT),
                    suggestion=(
                        "Inject dependencies through constructor instead of using facades "
                        "(unless in Policy/Gate)"
                    ),
                )
            )
        return findings


def _line_of(code: str, needle: str) -> int:
    return code.count("\n", 0, code.find(needle)) + 1
