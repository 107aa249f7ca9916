"""C / C++ chunker — function definitions and class/struct/enum/union types."""

from __future__ import annotations

import re

from repoqa.ingest.base import BraceChunker, SegmentBuilder

_FUNCTION_RE = re.compile(r"^\s*\w+(?:[\s*]+\w+)*\s+\w+\s*\(")
_FUNCTION_NAME_RE = re.compile(r"\s(\w+)\s*\(")
_TYPE_RE = re.compile(r"^\s*(?:class|struct|enum|union)\s+\w+")
_TYPEDEF_RE = re.compile(r"^\s*typedef\s+(?:struct|enum|union)\s+\w+")
_TYPE_NAME_RE = re.compile(r"(?:class|struct|enum|union|typedef)\s+(?:struct|enum|union)?\s*(\w+)")


class CFamilyChunker(BraceChunker):
    """Split C and C++ sources at top-level definitions.

    A line shaped like ``returnType name(`` without a ``;`` starts a
    function; prototypes are therefore left in the surrounding section.
    Unlike the other brace languages, any line containing ``}`` that brings
    the depth back to 0 closes the chunk (``};`` after a class, ``} Foo;``
    after a typedef).
    """

    language = "c"
    # preprocessor lines continue only with a trailing backslash
    preamble_brackets = False

    def _is_preamble_statement(self, stripped: str) -> bool:
        return stripped.startswith(("#include", "#define", "#pragma"))

    def _match_declaration(self, line: str) -> str | None:
        if _FUNCTION_RE.search(line) and ";" not in line:
            m = _FUNCTION_NAME_RE.search(line)
            return m.group(1) if m else "Unnamed function"
        if _TYPE_RE.search(line) or _TYPEDEF_RE.search(line):
            m = _TYPE_NAME_RE.search(line)
            return m.group(1) if m else "Unnamed type"
        return None

    def _at_boundary(self, line: str, seg: SegmentBuilder) -> bool:
        return "}" in line or seg.tokens() > self.max_tokens
