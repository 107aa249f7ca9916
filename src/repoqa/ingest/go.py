"""Go chunker — top-level ``func`` and ``type … struct`` declarations."""

from __future__ import annotations

import re

from repoqa.ingest.base import BraceChunker, SegmentBuilder

_FUNC_RE = re.compile(r"func\s+(?:\([^)]+\)\s+)?(\w+)")
_TYPE_RE = re.compile(r"type\s+(\w+)")


class GoChunker(BraceChunker):
    """Split Go sources at top-level functions (methods included) and structs.

    The receiver of a method is skipped when naming it: ``func (s *Server) Run()``
    is named ``Run``.
    """

    language = "go"
    comment_prefixes = ("//",)
    block_comments = False

    def _is_preamble_statement(self, stripped: str) -> bool:
        return stripped.startswith(("package ", "import ")) or stripped == "import("

    def _match_declaration(self, line: str) -> str | None:
        stripped = line.strip()
        if stripped.startswith("func "):
            m = _FUNC_RE.search(line)
            return m.group(1) if m else "Unnamed function"
        if stripped.startswith("type ") and "struct" in line:
            m = _TYPE_RE.search(line)
            return m.group(1) if m else "Unnamed struct"
        return None

    def _at_boundary(self, line: str, seg: SegmentBuilder) -> bool:
        return line.strip() == "}" or seg.tokens() > self.max_tokens
