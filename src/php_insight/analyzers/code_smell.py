"""CODE_SMELL: class and signature shapes that hint at design problems.

Finding types:
    too_many_parameters       major  more than ``max_parameters`` parameters
    primitive_parameter_list  minor  four or more parameters, all scalar or untyped
    array_parameter_smell     minor  array parameter in a long parameter list
    god_class                 major  too many methods for one class
    too_many_properties       minor  too many properties for one class
    large_class               major  class body longer than 300 lines
    duplicate_code            minor  two methods of a class open with the same statements
    unused_import             info   ``use`` import never referenced in the file
    unused_private_method     info   private method never called
    primitive_obsession       info   inline email/URL validation with filter_var
    id_primitive_obsession    info   three or more distinct *Id variables
    feature_envy              minor  method talks to other objects more than to $this
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..models import Finding, Severity
from ..scanning.syntax import NodeKind, SyntaxNode, parameters, walk
from .base import Analyzer
from .laravel import is_scaffolding

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree

PRIMITIVE_TYPES = frozenset({"int", "string", "bool", "float", "array", "mixed"})

# Method/property counts above which a class is doing too much
MAX_METHODS = 15
MAX_METHODS_CRUD = 20  # controllers and repositories
MAX_PROPERTIES = 10
MAX_PROPERTIES_MODEL = 15
MAX_CLASS_LINES = 300

_IMPORT_CLAUSE = re.compile(r"^\s*\\?([\w\\]+)(?:\s+as\s+(\w+))?\s*$")
_ID_VARIABLE = re.compile(r"\$\w+(?:Id|ID)\b")
_EXTERNAL_CALL = re.compile(r"\$(?!this\b)\w+->(?!save|delete|update|create)\w+")
_THIS_CALL = re.compile(r"\$this->\w+")
_WHITESPACE = re.compile(r"\s+")


def opening_signature(method: SyntaxNode) -> str:
    """First statements of a method body with whitespace collapsed, or "" if too short."""
    body = method.child_of_type("compound_statement")
    if body is None:
        return ""
    lines = [line.strip() for line in body.text.splitlines()[1:-1] if line.strip()]
    if len(lines) < 3:
        return ""
    return _WHITESPACE.sub(" ", " ".join(lines[:5]))[:100]


def imported_names(root: SyntaxNode) -> list[tuple[str, SyntaxNode]]:
    """Short names brought in by namespace ``use`` declarations."""
    names: list[tuple[str, SyntaxNode]] = []
    for declaration in walk(root):
        if declaration.type != "namespace_use_declaration":
            continue
        if declaration.child_of_type("namespace_use_group") is not None:
            continue
        for clause in declaration.children:
            if clause.type != "namespace_use_clause":
                continue
            match = _IMPORT_CLAUSE.match(clause.text)
            if match is None:
                continue
            qualified, alias = match.groups()
            names.append((alias or qualified.rsplit("\\", 1)[-1], declaration))
    return names


class CodeSmellDetector(Analyzer):
    """Flags oversized classes, long parameter lists and dead code."""

    name = "code_smell"

    def __init__(self, max_parameters: int = 4) -> None:
        self.max_parameters = max_parameters

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        findings = self._check_imports(file, tree)
        for cls in tree.root.find_all(NodeKind.CLASS):
            findings.extend(self._check_class(file, cls))
        for node in tree.callables():
            findings.extend(self._check_parameters(file.path, node))
            findings.extend(self._check_primitives(file.path, node))
        for method in tree.methods():
            findings.extend(self._check_private_method(file, method))
            if not is_scaffolding(file.path):
                findings.extend(self._check_feature_envy(file.path, method))
        return findings

    def _check_parameters(self, path: str, node: SyntaxNode) -> list[Finding]:
        name = node.name
        params = parameters(node)
        findings: list[Finding] = []

        if len(params) > self.max_parameters:
            findings.append(
                Finding(
                    type="too_many_parameters",
                    severity=Severity.MAJOR,
                    message=(
                        f'Method "{name}" has {len(params)} parameters '
                        f"(recommended max: {self.max_parameters})"
                    ),
                    file_path=path,
                    line=node.start_line,
                    suggestion=(
                        "Consider using DTO (Data Transfer Object) or Request object to "
                        "group parameters"
                    ),
                    refactor_info={
                        "methodName": name,
                        "parameters": [param.name for param in params],
                    },
                )
            )

        if len(params) > 3 and name != "__construct":
            if all(param.type is None or param.type in PRIMITIVE_TYPES for param in params):
                findings.append(
                    Finding(
                        type="primitive_parameter_list",
                        severity=Severity.MINOR,
                        message=f'Method "{name}" has many primitive parameters',
                        file_path=path,
                        line=node.start_line,
                        suggestion=(
                            "Create a dedicated class or DTO to encapsulate these parameters"
                        ),
                    )
                )

        if len(params) > 3 and any(param.type == "array" for param in params):
            findings.append(
                Finding(
                    type="array_parameter_smell",
                    severity=Severity.MINOR,
                    message=f'Method "{name}" uses array parameter with other params',
                    file_path=path,
                    line=node.start_line,
                    suggestion=(
                        "Consider using typed objects instead of arrays for better IDE support"
                    ),
                )
            )
        return findings

    def _check_class(self, file: SourceFile, cls: SyntaxNode) -> list[Finding]:
        name = cls.name
        path = file.path
        body = cls.child_of_type("declaration_list")
        members = body.children if body is not None else ()
        methods = [member for member in members if member.kind is NodeKind.METHOD]
        properties = sum(1 for member in members if member.kind is NodeKind.PROPERTY)

        crud = any(word in name or word in path for word in ("Controller", "Repository"))
        facade = "Facade" in name or ("Service" in name and len(methods) > 10)
        max_methods = MAX_METHODS_CRUD if crud else MAX_METHODS
        model = "extends Model" in file.content
        max_properties = MAX_PROPERTIES_MODEL if model else MAX_PROPERTIES

        findings: list[Finding] = []
        if len(methods) > max_methods and not facade:
            findings.append(
                Finding(
                    type="god_class",
                    severity=Severity.MAJOR,
                    message=(
                        f'Class "{name}" has {len(methods)} methods '
                        "(too many responsibilities)"
                    ),
                    file_path=path,
                    line=cls.start_line,
                    suggestion=(
                        "Consider splitting this class into smaller, focused classes "
                        "following Single Responsibility Principle"
                    ),
                )
            )
        if properties > max_properties:
            findings.append(
                Finding(
                    type="too_many_properties",
                    severity=Severity.MINOR,
                    message=f'Class "{name}" has {properties} properties',
                    file_path=path,
                    line=cls.start_line,
                    suggestion="Consider if this class is doing too much and should be split",
                )
            )
        if cls.line_span > MAX_CLASS_LINES:
            findings.append(
                Finding(
                    type="large_class",
                    severity=Severity.MAJOR,
                    message=f'Class "{name}" is {cls.line_span} lines (too large)',
                    file_path=path,
                    line=cls.start_line,
                    end_line=cls.end_line,
                    suggestion="Break down large class into smaller, cohesive classes",
                )
            )

        seen: dict[str, SyntaxNode] = {}
        for method in methods:
            signature = opening_signature(method)
            if not signature:
                continue
            first = seen.setdefault(signature, method)
            if first is method:
                continue
            findings.append(
                Finding(
                    type="duplicate_code",
                    severity=Severity.MINOR,
                    message=(
                        f'Method "{method.name}" opens like "{first.name}" '
                        "(possible code duplication)"
                    ),
                    file_path=path,
                    line=method.start_line,
                    end_line=method.end_line,
                    suggestion="Extract common logic into shared private method or trait",
                )
            )
        return findings

    def _check_imports(self, file: SourceFile, tree: SyntaxTree) -> list[Finding]:
        code = file.content
        findings: list[Finding] = []
        for short_name, declaration in imported_names(tree.root):
            pattern = re.compile(rf"\b{re.escape(short_name)}\b")
            uses = len(pattern.findall(code)) - len(pattern.findall(declaration.text))
            if uses > 0:
                continue
            findings.append(
                Finding(
                    type="unused_import",
                    severity=Severity.INFO,
                    message=f"Unused import: {short_name}",
                    file_path=file.path,
                    line=declaration.start_line,
                    suggestion="Remove unused use statements to keep code clean",
                )
            )
        return findings

    def _check_private_method(self, file: SourceFile, method: SyntaxNode) -> list[Finding]:
        visibility = method.child_of_type("visibility_modifier")
        if visibility is None or visibility.text != "private":
            return []
        name = method.name
        if name.startswith("__"):
            return []
        calls = re.compile(rf"(?:->|::)\s*{re.escape(name)}\s*\(|['\"]{re.escape(name)}['\"]")
        if calls.search(file.content):
            return []
        return [
            Finding(
                type="unused_private_method",
                severity=Severity.INFO,
                message=f'Private method "{name}" may be unused',
                file_path=file.path,
                line=method.start_line,
                end_line=method.end_line,
                suggestion="Remove unused methods or consider if they should be protected/public",
            )
        ]

    def _check_primitives(self, path: str, node: SyntaxNode) -> list[Finding]:
        text = node.text
        name = node.name
        findings: list[Finding] = []

        validates = "filter_var" in text and (
            "FILTER_VALIDATE_EMAIL" in text or "FILTER_VALIDATE_URL" in text
        )
        if validates:
            findings.append(
                Finding(
                    type="primitive_obsession",
                    severity=Severity.INFO,
                    message=f'Method "{name}" validates primitives inline',
                    file_path=path,
                    line=node.start_line,
                    suggestion=(
                        "Create Value Objects (Email, Url classes) to encapsulate "
                        "validation logic"
                    ),
                )
            )

        ids = set(_ID_VARIABLE.findall(text))
        if not name.startswith("scope") and len(ids) > 2:
            findings.append(
                Finding(
                    type="id_primitive_obsession",
                    severity=Severity.INFO,
                    message=(
                        f'Method "{name}" juggles {len(ids)} ID variables - '
                        "consider using domain objects"
                    ),
                    file_path=path,
                    line=node.start_line,
                    suggestion="Use typed domain objects instead of passing multiple IDs",
                )
            )
        return findings

    def _check_feature_envy(self, path: str, method: SyntaxNode) -> list[Finding]:
        text = method.text
        external = len(_EXTERNAL_CALL.findall(text))
        own = len(_THIS_CALL.findall(text))
        if external <= own or external <= 3:
            return []
        return [
            Finding(
                type="feature_envy",
                severity=Severity.MINOR,
                message=f'Method "{method.name}" uses external object data more than its own',
                file_path=path,
                line=method.start_line,
                end_line=method.end_line,
                suggestion="Consider moving this method to the class it uses most",
            )
        ]
