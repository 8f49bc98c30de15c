"""Shared test fixtures for PHP Insight tests."""

import textwrap

import pytest

from php_insight.scanning.models import CorpusSnapshot, SourceFile
from php_insight.scanning.treesitter_parser import PhpParser


def php(code: str) -> str:
    """Dedent an inline PHP snippet and strip the leading newline."""
    return textwrap.dedent(code).lstrip("\n")


@pytest.fixture
def parser():
    """Strict PHP parser (syntax errors raise)."""
    return PhpParser()


@pytest.fixture
def analyze_source(parser):
    """Run one analyzer on one source file, with a one-file corpus."""

    def _run(analyzer, code: str, path: str = "app/Example.php", corpus=None):
        source = SourceFile(path=path, content=code)
        corpus = corpus if corpus is not None else CorpusSnapshot.from_sources([source])
        analyzer.prepare(corpus, parser)
        tree = parser.parse(code, path)
        return analyzer.analyze(source, tree, corpus)

    return _run


def calculate_total_source(collection: str, bonus: int) -> str:
    """A class with one calculateTotal method, parameterized by names and literals."""
    return php(
        f"""
        <?php

        class Calculator
        {{
            public function calculateTotal(${collection})
            {{
                $sum = 0;
                foreach (${collection} as $entry) {{
                    if ($entry->price > 0) {{
                        $sum += $entry->price * $entry->quantity;
                    }}
                }}
                return $sum + {bonus};
            }}
        }}
        """
    )


@pytest.fixture
def calculate_total_corpus():
    """Two files whose calculateTotal differs only in names and literals."""
    return {
        "A.php": calculate_total_source("items", 10),
        "B.php": calculate_total_source("orders", 20),
    }


@pytest.fixture
def getters_source():
    """One class with the same 3-line getter repeated ten times."""
    methods = "".join(
        f"    public function getValue{i}() {{\n        return $this->value;\n    }}\n\n"
        for i in range(10)
    )
    return f"<?php\n\nclass Getters\n{{\n{methods}}}\n"
