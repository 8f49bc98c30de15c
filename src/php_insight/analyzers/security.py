"""SECURITY: injection, unsafe calls and unprotected models and forms.

Finding types:
    sql_injection_risk             critical  raw query built from variables
    dangerous_function             critical  eval/exec/shell_exec/system/passthru/unserialize
    dangerous_extract              major     any extract() call
    mass_assignment_vulnerability  critical  model without $fillable/$guarded
    mass_assignment_risk           major/critical  empty $guarded, create($request->all())
    password_not_hashed            critical  password assigned from input without hashing
    weak_hashing                   major     md5/sha1 inside a method
    file_upload_no_validation      major     uploaded file used without mimes:/max: rules
    unsafe_file_storage            major     uploaded file moved with move() instead of store()
    xss_risk                       major     request input echoed straight into a JSON response
    xss_vulnerability              critical  unescaped {!! !!} output in a Blade view
    missing_csrf                   critical  view form without @csrf

Method-level checks match on the declaration text; call-level checks use the
syntax tree so that a name inside a string or comment is not a call.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from ..models import Finding, Severity
from ..scanning.syntax import NodeVisitor, SyntaxNode, call_name
from .base import Analyzer

if TYPE_CHECKING:
    from ..scanning.models import CorpusSnapshot, SourceFile
    from ..scanning.syntax import SyntaxTree

DANGEROUS_FUNCTIONS = frozenset({"eval", "exec", "shell_exec", "system", "passthru", "unserialize"})
SUPERGLOBALS = ("$_GET", "$_POST", "$_REQUEST", "$_ENV", "$_SERVER", "$_FILES")

_DB_RAW_INTERPOLATION = re.compile(r"""DB::raw\s*\(\s*["'][^"']*\$[^"']*["']""")
_DB_RAW_BINDING = re.compile(r"DB::raw\s*\([^,]+,\s*\[")
_RAW_INTERPOLATION = re.compile(r"""(?:whereRaw|selectRaw)\s*\(\s*["'][^"']*\$[^"']*["']""")
_RAW_CONCATENATION = re.compile(r"(?:whereRaw|selectRaw)\s*\([^)]*\.")
_RAW_BINDING = re.compile(r"(?:whereRaw|selectRaw)\s*\([^,]+,\s*\[")
_QUERY_INTERPOLATION = re.compile(r"""query\s*\(\s*["'].*\$.*["']\s*\)""")

_PASSWORD_SOURCES = ("= $request->", "= $_POST", "= $_GET", "->password =", "['password'] =")
_HASHING_CALLS = ("password_hash", "Hash::make", "bcrypt(", "Hash::check")
_UPLOAD_RULES = ("mimes:", "mimetypes:", "max:")
_REQUEST_INPUT = (
    "$request->input",
    "$request->all()",
    "$request->get(",
    "$request->post(",
    "$request->query(",
)


class _SecurityVisitor(NodeVisitor):
    """Collects per-method and per-call findings for one file."""

    def __init__(self, file_path: str) -> None:
        super().__init__()
        self.file_path = file_path
        self.findings: list[Finding] = []

    def _add(
        self,
        type_: str,
        severity: Severity,
        message: str,
        node: SyntaxNode,
        suggestion: str,
        end_line: Optional[int] = None,
    ) -> None:
        self.findings.append(
            Finding(
                type=type_,
                severity=severity,
                message=message,
                file_path=self.file_path,
                line=node.start_line,
                end_line=end_line if end_line is not None else node.end_line,
                suggestion=suggestion,
            )
        )

    def visit_method(self, node: SyntaxNode) -> None:
        text = node.text
        self._check_sql_injection(node, text)
        self._check_passwords(node, text)
        self._check_file_upload(node, text)
        self._check_json_output(node, text)

    visit_function = visit_method

    def visit_function_call(self, node: SyntaxNode) -> None:
        name = call_name(node)
        if name in DANGEROUS_FUNCTIONS:
            self._add(
                "dangerous_function",
                Severity.CRITICAL,
                f"Dangerous function {name}() can lead to code execution vulnerabilities",
                node,
                f"Avoid using {name}(). If absolutely necessary, sanitize all inputs rigorously",
                end_line=node.start_line,
            )
        elif name == "extract":
            text = node.text
            if any(superglobal in text for superglobal in SUPERGLOBALS):
                message = "Using extract() with superglobals can overwrite variables"
            else:
                message = "Using extract() is dangerous and can cause security issues"
            self._add(
                "dangerous_extract",
                Severity.MAJOR,
                message,
                node,
                "Avoid extract() or use EXTR_SKIP flag and never with user input",
            )

    def _check_sql_injection(self, node: SyntaxNode, text: str) -> None:
        if "DB::raw" in text:
            if _DB_RAW_INTERPOLATION.search(text) and not _DB_RAW_BINDING.search(text):
                self._add(
                    "sql_injection_risk",
                    Severity.CRITICAL,
                    "Potential SQL Injection: DB::raw() with string interpolation",
                    node,
                    'Use parameter binding: DB::raw("query WHERE id = ?", [$id]) '
                    "or use Query Builder methods",
                )

        if "whereRaw" in text or "selectRaw" in text:
            unsafe = _RAW_INTERPOLATION.search(text) or _RAW_CONCATENATION.search(text)
            if unsafe and not _RAW_BINDING.search(text):
                self._add(
                    "sql_injection_risk",
                    Severity.CRITICAL,
                    "Potential SQL Injection: Raw query methods with variables",
                    node,
                    "Use parameter binding with ? placeholders and pass variables "
                    "as second argument",
                )

        if _QUERY_INTERPOLATION.search(text):
            self._add(
                "sql_injection_risk",
                Severity.CRITICAL,
                "Potential SQL Injection: String concatenation in query",
                node,
                "Never concatenate user input into SQL queries. Use parameter binding",
            )

    def _check_passwords(self, node: SyntaxNode, text: str) -> None:
        assigns_password = ("password" in text or "pwd" in text) and any(
            source in text for source in _PASSWORD_SOURCES
        )
        if assigns_password and not any(call in text for call in _HASHING_CALLS):
            self._add(
                "password_not_hashed",
                Severity.CRITICAL,
                "Password stored without hashing",
                node,
                "Use Hash::make($password) or bcrypt($password) to hash passwords",
            )

        if "md5" in text or "sha1" in text:
            self._add(
                "weak_hashing",
                Severity.MAJOR,
                "Using weak hashing algorithm (md5/sha1)",
                node,
                "Use bcrypt or Hash::make() for password hashing",
            )

    def _check_file_upload(self, node: SyntaxNode, text: str) -> None:
        if "$request->file" not in text and "hasFile" not in text:
            return
        if not any(rule in text for rule in _UPLOAD_RULES):
            self._add(
                "file_upload_no_validation",
                Severity.MAJOR,
                "File upload without validation",
                node,
                "Validate file type, size and extension. Use Form Request validation "
                "with mimes: and max: rules",
            )
        if "->move(" in text and "->store" not in text:
            self._add(
                "unsafe_file_storage",
                Severity.MAJOR,
                "Using move() instead of Laravel storage methods",
                node,
                "Use $request->file()->store() or storeAs() for secure file handling",
            )

    def _check_json_output(self, node: SyntaxNode, text: str) -> None:
        if "response()->json" not in text:
            return
        if any(source in text for source in _REQUEST_INPUT):
            self._add(
                "xss_risk",
                Severity.MAJOR,
                "User input directly in JSON response without validation",
                node,
                "Validate and sanitize user input before outputting, use Resources "
                "for API responses",
            )


class SecurityAnalyzer(Analyzer):
    """Security heuristics for PHP/Laravel code."""

    name = "security"

    def analyze(
        self, file: SourceFile, tree: SyntaxTree, corpus: CorpusSnapshot
    ) -> list[Finding]:
        visitor = _SecurityVisitor(file.path)
        visitor.visit(tree.root)
        findings = visitor.findings
        findings.extend(self._check_mass_assignment(file))
        findings.extend(self._check_csrf(file))
        findings.extend(self._check_unescaped_output(file))
        return findings

    def _check_mass_assignment(self, file: SourceFile) -> list[Finding]:
        code = file.content
        if "extends Model" not in code and "use HasFactory" not in code:
            return []

        findings: list[Finding] = []
        if "$fillable" not in code and "$guarded" not in code:
            findings.append(
                Finding(
                    type="mass_assignment_vulnerability",
                    severity=Severity.CRITICAL,
                    message="Model without $fillable or $guarded protection",
                    file_path=file.path,
                    line=1,
                    suggestion=(
                        "Add protected $fillable = [...] to prevent mass assignment "
                        "vulnerabilities"
                    ),
                )
            )

        if "$guarded = []" in code:
            findings.append(
                Finding(
                    type="mass_assignment_risk",
                    severity=Severity.MAJOR,
                    message="Model with empty $guarded allows mass assignment of all fields",
                    file_path=file.path,
                    line=1,
                    suggestion="Use $fillable with explicit field list instead of empty $guarded",
                )
            )

        if "::create($request->all())" in code or "::update($request->all())" in code:
            findings.append(
                Finding(
                    type="mass_assignment_risk",
                    severity=Severity.CRITICAL,
                    message="Using $request->all() for mass assignment without validation",
                    file_path=file.path,
                    line=1,
                    suggestion="Use validated data: Model::create($request->validated())",
                )
            )
        return findings

    def _check_unescaped_output(self, file: SourceFile) -> list[Finding]:
        if "views/" not in file.path:
            return []
        findings: list[Finding] = []
        for number, line in enumerate(file.content.splitlines(), start=1):
            if "{!!" not in line:
                continue
            findings.append(
                Finding(
                    type="xss_vulnerability",
                    severity=Severity.CRITICAL,
                    message="Potential XSS: Unescaped output with {!! !!}",
                    file_path=file.path,
                    line=number,
                    suggestion=(
                        "Use {{ }} for automatic escaping unless you explicitly trust "
                        "the content"
                    ),
                )
            )
        return findings

    def _check_csrf(self, file: SourceFile) -> list[Finding]:
        if "views/" not in file.path or "<form" not in file.content or "@csrf" in file.content:
            return []
        return [
            Finding(
                type="missing_csrf",
                severity=Severity.CRITICAL,
                message="Form without @csrf token",
                file_path=file.path,
                line=1,
                suggestion="Add @csrf directive inside all forms for CSRF protection",
            )
        ]
