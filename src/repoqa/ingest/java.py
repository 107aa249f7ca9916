"""Java chunker — top-level types and their methods as separate chunks."""

from __future__ import annotations

import re

from repoqa.ingest.base import (
    BaseChunker,
    SegmentBuilder,
    brace_delta,
    collect_preamble,
    scan_comment,
)
from repoqa.models import Chunk

_TYPE_RE = re.compile(r"(?:(?:public|private|protected)\s+)?(?:class|interface|enum)\s+(\w+)")
_METHOD_NAME_RE = re.compile(r"\s+(\w+)\s*\(")
_METHOD_MARKERS = ("public ", "private ", "protected ", "void ")


def _is_trivia(stripped: str) -> bool:
    return not stripped or stripped.startswith(("//", "/*", "*", "@"))


def _is_method_signature(line: str) -> bool:
    return any(marker in line for marker in _METHOD_MARKERS) and "(" in line and ";" not in line


class JavaChunker(BaseChunker):
    """Split Java sources into one chunk per method plus the type's remaining body.

    Types are detected at brace depth 0, methods at depth 1 (directly inside
    a type). A method chunk ends at its closing ``}`` line; fields and other
    members between methods are reported under the enclosing type's name.
    """

    language = "java"

    def chunk(self, content: str, path: str = "") -> list[Chunk]:
        if not content.strip():
            return []
        lines = content.split("\n")
        preamble, start = collect_preamble(
            lines,
            lambda s: s.startswith(("package ", "import ")),
            lambda s: not s or s.startswith("//"),
            is_declaration=lambda line: bool(_TYPE_RE.search(line)),
        )
        seg = SegmentBuilder(self.metadata_for(path), preamble, _is_trivia)

        depth = 0
        in_method = False
        in_type = False
        type_name = ""
        in_comment = False
        for line in lines[start:]:
            stripped = line.strip()
            is_comment, in_comment = scan_comment(line, in_comment)
            code = not is_comment and not _is_trivia(stripped)
            if depth == 1 and code and _is_method_signature(line):
                m = _METHOD_NAME_RE.search(line)
                seg.start(line, m.group(1) if m else "Unnamed method", default="Unnamed class")
                in_method = True
            elif depth == 0 and code and _TYPE_RE.search(line):
                m = _TYPE_RE.search(line)
                type_name = m.group(1) if m else "Unnamed class"
                seg.start(line, type_name)
                in_type = True
            else:
                seg.append(line)

            if not is_comment:
                depth = max(0, depth + brace_delta(line))

            if in_method and depth == 1 and (
                stripped == "}" or seg.tokens() > self.max_tokens
            ):
                seg.flush(default="Unnamed method")
                seg.name = type_name
                in_method = False

            if depth == 0 and stripped == "}" and (in_type or in_method):
                if seg.text.strip() == "}":
                    seg.fold_into_last()
                seg.flush(default="Unnamed class", reset_name=True)
                in_type = False
                in_method = False
                type_name = ""
            elif depth == 0 and not in_method and seg.tokens() > self.max_tokens:
                seg.flush()

        return seg.finish()
