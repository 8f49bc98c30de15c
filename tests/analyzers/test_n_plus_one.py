"""Tests for NPlusOneDetector."""

import textwrap

import pytest

from php_insight.analyzers import NPlusOneDetector
from php_insight.analyzers.n_plus_one import has_eager_loading, has_relationship_access
from php_insight.models import Severity
from php_insight.scanning.treesitter_parser import TREE_SITTER_AVAILABLE


def _method(body):
    indented = textwrap.indent(textwrap.dedent(body).strip("\n"), " " * 8)
    return (
        "<?php\n\nclass PostController\n{\n    public function index()\n    {\n"
        f"{indented}\n    }}\n}}\n"
    )


def _types(findings):
    return sorted(f.type for f in findings)


class TestHeuristics:
    """Text heuristics used inside loop bodies."""

    @pytest.mark.parametrize(
        "text",
        ["$post->author", "$order->items->count()", "$users->load('roles')"],
    )
    def test_relationship_access(self, text):
        assert has_relationship_access(text)

    @pytest.mark.parametrize("text", ["$post->getTitle()", "$post->id", "$user->email", "echo $x;"])
    def test_not_relationship_access(self, text):
        assert not has_relationship_access(text)

    def test_eager_loading(self):
        assert has_eager_loading("Post::with('author')->get()")
        assert has_eager_loading("$posts->load('author')")
        assert not has_eager_loading("Post::all()")


@pytest.mark.skipif(not TREE_SITTER_AVAILABLE, reason="tree-sitter PHP grammar not installed")
class TestNPlusOneDetector:
    """Test n_plus_one findings on parsed methods."""

    def test_relationship_in_foreach_without_eager_loading(self, analyze_source):
        code = _method(
            """
            $posts = Post::all();
            foreach ($posts as $post) {
                echo $post->author;
            }
            """
        )
        findings = analyze_source(NPlusOneDetector(), code)
        assert _types(findings) == ["missing_eager_loading", "n_plus_one_query"]
        n_plus_one = next(f for f in findings if f.type == "n_plus_one_query")
        assert n_plus_one.severity is Severity.CRITICAL
        assert n_plus_one.refactor_info["methodName"] == "index"
        assert n_plus_one.line == 5

    def test_eager_loaded_collection_is_clean(self, analyze_source):
        code = _method(
            """
            $posts = Post::with('author')->get();
            foreach ($posts as $post) {
                echo $post->author;
            }
            """
        )
        assert analyze_source(NPlusOneDetector(), code) == []

    def test_access_outside_loop_is_clean(self, analyze_source):
        code = _method(
            """
            $post = Post::first();
            echo $post->author;
            foreach ($tags as $tag) {
                echo $tag;
            }
            """
        )
        assert analyze_source(NPlusOneDetector(), code) == []

    def test_query_in_loop_reported_at_loop(self, analyze_source):
        code = _method(
            """
            $users = [];
            foreach ($ids as $id) {
                $users[] = User::find($id);
            }
            return $users;
            """
        )
        findings = analyze_source(NPlusOneDetector(), code)
        assert _types(findings) == ["query_in_loop"]
        assert findings[0].line == 8
        assert findings[0].end_line == 10

    def test_each_callback_counts_as_loop(self, analyze_source):
        code = _method(
            """
            $posts = Post::all();
            $posts->each(function ($post) {
                echo $post->author;
            });
            """
        )
        assert "n_plus_one_query" in _types(analyze_source(NPlusOneDetector(), code))

    def test_method_without_loop_skipped(self, analyze_source):
        code = _method("return Post::find(1)->author;")
        assert analyze_source(NPlusOneDetector(), code) == []

    def test_collection_handed_to_view_without_eager_loading(self, analyze_source):
        code = _method(
            """
            $posts = Post::where('published', true)->get();
            return view('posts.index', compact('posts'));
            """
        )
        findings = analyze_source(NPlusOneDetector(), code)
        assert _types(findings) == ["n_plus_one_blade"]
        assert findings[0].severity is Severity.MAJOR

    def test_view_with_eager_loaded_collection(self, analyze_source):
        code = _method(
            """
            $posts = Post::with('author')->get();
            return view('posts.index', compact('posts'));
            """
        )
        assert analyze_source(NPlusOneDetector(), code) == []
