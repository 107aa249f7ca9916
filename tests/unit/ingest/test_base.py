"""Tests for the shared chunking helpers."""

from __future__ import annotations

import pytest

from repoqa.ingest.base import (
    BaseChunker,
    code_text,
    collect_preamble,
    estimate_tokens,
    extension_of,
    language_for_path,
    scan_comment,
)
from repoqa.ingest.plaintext import SizeChunker


# ------------------------------------------------------------------
# estimate_tokens
# ------------------------------------------------------------------


def test_estimate_tokens_counts_whitespace_pieces():
    assert estimate_tokens("a b  c\td") == 4


def test_estimate_tokens_counts_edge_pieces():
    # leading and trailing whitespace produce empty pieces that still count
    assert estimate_tokens(" a ") == 3
    assert estimate_tokens("line\n") == 2


def test_estimate_tokens_empty_string_is_one():
    assert estimate_tokens("") == 1


# ------------------------------------------------------------------
# Languages
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    "path,language",
    [
        ("a.js", "javascript"),
        ("a.JSX", "javascript"),
        ("src/a.ts", "typescript"),
        ("a.tsx", "typescript"),
        ("pkg/mod.py", "python"),
        ("Main.java", "java"),
        ("main.go", "go"),
        ("x.c", "c"),
        ("x.h", "c"),
        ("x.cpp", "cpp"),
        ("x.hpp", "cpp"),
        ("lib.rs", "rust"),
        ("index.html", "html"),
        ("style.css", "css"),
        ("README.md", "text"),
        ("Makefile", "text"),
    ],
)
def test_language_for_path(path, language):
    assert language_for_path(path) == language


def test_extension_of_lowercases_last_suffix():
    assert extension_of("archive.tar.GZ") == "gz"
    assert extension_of("Makefile") == "makefile"


# ------------------------------------------------------------------
# collect_preamble
# ------------------------------------------------------------------


def _is_import(s: str) -> bool:
    return s.startswith(("import ", "from "))


def _is_trivia(s: str) -> bool:
    return not s or s.startswith("#")


def test_preamble_stops_at_first_statement():
    lines = ["import os", "", "# utils", "import sys", "", "x = 1"]
    preamble, start = collect_preamble(lines, _is_import, _is_trivia)
    assert preamble == "import os\n\n# utils\nimport sys\n"
    assert start == 4


def test_preamble_multiline_import_is_kept_whole():
    lines = ["from x import (", "    a,", "    b,", ")", "", "def f():", "    pass"]
    preamble, start = collect_preamble(lines, _is_import, _is_trivia)
    assert preamble == "from x import (\n    a,\n    b,\n)\n"
    assert start == 4


def test_preamble_backslash_continuation():
    lines = ["from x import a, \\", "    b", "y = 2"]
    preamble, start = collect_preamble(lines, _is_import, _is_trivia)
    assert preamble == "from x import a, \\\n    b\n"
    assert start == 2


def test_no_preamble():
    preamble, start = collect_preamble(["x = 1"], _is_import, _is_trivia)
    assert preamble == ""
    assert start == 0


def test_preamble_ignores_bracket_in_trailing_comment():
    lines = ["import os  # noqa :(", "", "def a():", "    return 1"]
    preamble, start = collect_preamble(lines, _is_import, _is_trivia, line_comment="#")
    assert preamble == "import os  # noqa :(\n"
    assert start == 1


def test_preamble_ignores_bracket_in_string_literal():
    lines = ["import a from 'a(';", "", "function f() {", "}"]
    preamble, start = collect_preamble(lines, _is_import, _is_trivia)
    assert preamble == "import a from 'a(';\n"
    assert start == 1


def test_unclosed_bracket_stops_at_declaration():
    lines = ["from x import (a,", "def f():", "    pass"]
    preamble, start = collect_preamble(
        lines,
        _is_import,
        _is_trivia,
        line_comment="#",
        is_declaration=lambda line: line.startswith("def "),
    )
    assert preamble == "from x import (a,\n"
    assert start == 1


def test_unclosed_bracket_stops_at_next_statement():
    lines = ["import { a,", "import b from 'b';", "const c = 1;"]
    preamble, start = collect_preamble(lines, _is_import, _is_trivia)
    assert preamble == "import { a,\nimport b from 'b';\n"
    assert start == 2


def test_brackets_disabled_only_backslash_continues():
    lines = ["#define OPEN {", "int x;"]
    preamble, start = collect_preamble(
        lines,
        lambda s: s.startswith("#define"),
        lambda s: not s,
        brackets=False,
    )
    assert preamble == "#define OPEN {\n"
    assert start == 1


# ------------------------------------------------------------------
# code_text / scan_comment
# ------------------------------------------------------------------


def test_code_text_drops_strings_and_line_comment():
    assert code_text('x = "(" # (', "#", "\"\'") == "x =  "


def test_code_text_honours_escapes():
    assert code_text(r'a("\")(")b') == "a()b"


@pytest.mark.parametrize(
    "line, in_block, expected",
    [
        ("/* start", False, (True, True)),
        ("  still inside", True, (True, True)),
        ("end */", True, (True, False)),
        ("/* whole */", False, (True, False)),
        ("// note", False, (True, False)),
        ("*gen() {", False, (False, False)),
        ("int x; /* trailing", False, (False, True)),
        ('s = "/*";', False, (False, False)),
    ],
)
def test_scan_comment(line, in_block, expected):
    assert scan_comment(line, in_block) == expected


def test_scan_comment_without_block_comments():
    assert scan_comment("/* x", False, block_comments=False) == (False, False)
    assert scan_comment("// x", False, block_comments=False) == (True, False)


# ------------------------------------------------------------------
# BaseChunker
# ------------------------------------------------------------------


def test_max_tokens_must_be_positive():
    with pytest.raises(ValueError):
        SizeChunker(max_tokens=0)


def test_metadata_for_path():
    meta = BaseChunker.metadata_for("src/app.tsx")
    assert meta.path == "src/app.tsx"
    assert meta.language == "typescript"
    assert meta.extension == "tsx"
    assert meta.chunk_type == "code"
    assert meta.name == "Unnamed section"
