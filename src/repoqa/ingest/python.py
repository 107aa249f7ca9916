"""Python chunker — indentation-tracked top-level ``def`` / ``class`` blocks."""

from __future__ import annotations

import re

from repoqa.ingest.base import BaseChunker, SegmentBuilder, collect_preamble
from repoqa.models import Chunk

_DEF_RE = re.compile(r"def\s+(\w+)\s*\(")
_CLASS_RE = re.compile(r"class\s+(\w+)")

# Unindented lines that continue the previous statement rather than start a new one.
_CONTINUATION_PREFIXES = (")", "]", "}")


def _is_trivia(stripped: str) -> bool:
    return not stripped or stripped.startswith(("#", "@"))


def _is_import(stripped: str) -> bool:
    return stripped.startswith(("import ", "from "))


def _is_top_level_definition(line: str) -> bool:
    return line.startswith(("def ", "async def ", "class ", "@"))


class PythonChunker(BaseChunker):
    """Split Python sources at top-level ``def``/``class`` statements.

    A block ends at the next unindented statement. Unindented comments do
    not end a block. Size flushes only happen between blocks, so a large
    function is always emitted whole.
    """

    language = "python"

    def chunk(self, content: str, path: str = "") -> list[Chunk]:
        if not content.strip():
            return []
        lines = content.split("\n")
        preamble, start = collect_preamble(
            lines,
            _is_import,
            lambda s: not s or s.startswith("#"),
            line_comment="#",
            quotes="\"'",
            is_declaration=_is_top_level_definition,
        )
        seg = SegmentBuilder(self.metadata_for(path), preamble, _is_trivia)

        in_block = False
        for line in lines[start:]:
            stripped = line.strip()
            top_level = bool(stripped) and line[0] not in (" ", "\t")

            if top_level and stripped.startswith(("def ", "async def ")):
                m = _DEF_RE.search(line)
                seg.start(line, m.group(1) if m else "Unnamed function")
                in_block = True
            elif top_level and stripped.startswith("class "):
                m = _CLASS_RE.search(line)
                seg.start(line, m.group(1) if m else "Unnamed class")
                in_block = True
            elif (
                in_block
                and top_level
                and not stripped.startswith("#")
                and not stripped.startswith(_CONTINUATION_PREFIXES)
            ):
                # First statement after a block: close the block, open an unnamed section.
                seg.start(line, "")
                in_block = False
            else:
                seg.append(line)

            if not in_block and seg.tokens() > self.max_tokens:
                seg.flush()

        return seg.finish()
