"""Tests for SecurityAnalyzer."""

import textwrap

import pytest

from php_insight.analyzers import SecurityAnalyzer
from php_insight.models import Severity
from php_insight.scanning.models import CorpusSnapshot, SourceFile
from php_insight.scanning.treesitter_parser import TREE_SITTER_AVAILABLE


def _method(body):
    """Wrap statements in a class method starting on line 5."""
    indented = textwrap.indent(textwrap.dedent(body).strip("\n"), " " * 8)
    return (
        "<?php\n\nclass Handler\n{\n    public function handle($request, $id)\n    {\n"
        f"{indented}\n    }}\n}}\n"
    )


def _types(findings):
    return [f.type for f in findings]


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestSqlInjection:
    """Test sql_injection_risk."""

    def test_db_raw_interpolation(self, analyze_source):
        code = _method('return DB::select(DB::raw("SELECT * FROM users WHERE id = $id"));')
        findings = analyze_source(SecurityAnalyzer(), code)
        assert _types(findings) == ["sql_injection_risk"]
        assert findings[0].severity is Severity.CRITICAL
        assert findings[0].line == 5

    def test_db_raw_with_bindings_is_safe(self, analyze_source):
        code = _method('return DB::select(DB::raw("SELECT * FROM users WHERE id = ?", [$id]));')
        assert analyze_source(SecurityAnalyzer(), code) == []

    def test_where_raw_concatenation(self, analyze_source):
        code = _method("return User::whereRaw('age > ' . $id)->get();")
        assert _types(analyze_source(SecurityAnalyzer(), code)) == ["sql_injection_risk"]


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestDangerousCalls:
    """Test dangerous_function and dangerous_extract."""

    def test_exec_reported_on_call_line(self, analyze_source):
        code = _method(
            """
            $cmd = 'ls';
            $out = exec($cmd);
            return $out;
            """
        )
        findings = analyze_source(SecurityAnalyzer(), code)
        assert _types(findings) == ["dangerous_function"]
        assert findings[0].line == 8
        assert findings[0].end_line == 8
        assert "exec()" in findings[0].message

    def test_function_name_in_string_not_reported(self, analyze_source):
        code = _method("return 'please do not exec($x) here';")
        assert analyze_source(SecurityAnalyzer(), code) == []

    def test_extract_with_superglobal(self, analyze_source):
        findings = analyze_source(SecurityAnalyzer(), "<?php\nextract($_POST);\n")
        assert _types(findings) == ["dangerous_extract"]
        assert "superglobals" in findings[0].message
        assert findings[0].line == 2

    def test_extract_without_superglobal(self, analyze_source):
        findings = analyze_source(SecurityAnalyzer(), "<?php\nextract($data);\n")
        assert findings[0].message == "Using extract() is dangerous and can cause security issues"


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestModelsAndPasswords:
    """Test mass assignment, password and upload checks."""

    def test_model_without_fillable(self, analyze_source):
        code = "<?php\n\nclass Post extends Model\n{\n}\n"
        findings = analyze_source(SecurityAnalyzer(), code)
        assert _types(findings) == ["mass_assignment_vulnerability"]
        assert findings[0].line == 1

    def test_model_with_empty_guarded(self, analyze_source):
        code = "<?php\n\nclass Post extends Model\n{\n    protected $guarded = [];\n}\n"
        findings = analyze_source(SecurityAnalyzer(), code)
        assert _types(findings) == ["mass_assignment_risk"]
        assert findings[0].severity is Severity.MAJOR

    def test_model_with_fillable_is_clean(self, analyze_source):
        code = "<?php\n\nclass Post extends Model\n{\n    protected $fillable = ['title'];\n}\n"
        assert analyze_source(SecurityAnalyzer(), code) == []

    def test_plain_password_assignment(self, analyze_source):
        code = _method(
            """
            $user = User::find($id);
            $user->password = $request->password;
            $user->save();
            """
        )
        assert _types(analyze_source(SecurityAnalyzer(), code)) == ["password_not_hashed"]

    def test_hashed_password_is_clean(self, analyze_source):
        code = _method(
            """
            $user = User::find($id);
            $user->password = Hash::make($request->password);
            $user->save();
            """
        )
        assert analyze_source(SecurityAnalyzer(), code) == []

    def test_weak_hashing(self, analyze_source):
        code = _method("return md5($request->token);")
        findings = analyze_source(SecurityAnalyzer(), code)
        assert _types(findings) == ["weak_hashing"]
        assert findings[0].severity is Severity.MAJOR

    def test_upload_without_validation(self, analyze_source):
        code = _method("return $request->file('avatar')->store('avatars');")
        assert _types(analyze_source(SecurityAnalyzer(), code)) == ["file_upload_no_validation"]

    def test_upload_with_validation(self, analyze_source):
        code = _method(
            """
            $request->validate(['avatar' => 'required|mimes:jpg,png|max:2048']);
            return $request->file('avatar')->store('avatars');
            """
        )
        assert analyze_source(SecurityAnalyzer(), code) == []


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestCsrf:
    """Test missing_csrf on view files."""

    FORM = '<form method="POST" action="/save">\n    <input name="title">\n</form>\n'

    def _run(self, parser, path, content):
        source = SourceFile(path=path, content=content)
        tree = parser.parse("<?php\n", path)
        return SecurityAnalyzer().analyze(source, tree, CorpusSnapshot.from_sources([source]))

    def test_view_form_without_token(self, parser):
        findings = self._run(parser, "resources/views/post.blade.php", self.FORM)
        assert _types(findings) == ["missing_csrf"]
        assert findings[0].severity is Severity.CRITICAL

    def test_view_form_with_token(self, parser):
        content = self.FORM.replace("<input", "@csrf\n    <input")
        assert self._run(parser, "resources/views/post.blade.php", content) == []

    def test_form_outside_views_ignored(self, parser):
        assert self._run(parser, "app/Helpers/html.php", self.FORM) == []


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestOutputAndStorage:
    """Test xss_risk, xss_vulnerability and unsafe_file_storage."""

    def test_request_input_in_json_response(self, analyze_source):
        code = _method("return response()->json(['name' => $request->input('name')]);")
        findings = analyze_source(SecurityAnalyzer(), code)
        assert _types(findings) == ["xss_risk"]
        assert findings[0].severity is Severity.MAJOR

    def test_json_response_without_request_input(self, analyze_source):
        code = _method("return response()->json(['id' => $id]);")
        assert analyze_source(SecurityAnalyzer(), code) == []

    def test_upload_moved_instead_of_stored(self, analyze_source):
        code = _method(
            """
            $request->validate(['avatar' => 'required|mimes:jpg,png|max:2048']);
            $request->file('avatar')->move(public_path('avatars'));
            return $id;
            """
        )
        assert _types(analyze_source(SecurityAnalyzer(), code)) == ["unsafe_file_storage"]

    def test_unescaped_blade_output(self, parser):
        content = "<h1>{{ $post->title }}</h1>\n<div>{!! $post->body !!}</div>\n"
        source = SourceFile("resources/views/post.blade.php", content)
        tree = parser.parse("<?php\n", source.path)
        findings = SecurityAnalyzer().analyze(source, tree, CorpusSnapshot.from_sources([source]))
        assert [(f.type, f.line) for f in findings] == [("xss_vulnerability", 2)]
        assert findings[0].severity is Severity.CRITICAL
