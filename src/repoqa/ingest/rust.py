"""Rust chunker — ``fn``, ``struct``, ``enum``, ``trait``, ``impl``, ``type`` and ``mod`` items."""

from __future__ import annotations

import re

from repoqa.ingest.base import BraceChunker, SegmentBuilder

_FN_RE = re.compile(r"\s*(?:pub\s+)?fn\s+\w+")
_FN_NAME_RE = re.compile(r"fn\s+(\w+)")
_ITEM_RE = re.compile(r"\s*(?:pub\s+)?(?:struct|enum|trait|impl|type|mod)\s+\w+")
_ITEM_NAME_RE = re.compile(r"(?:struct|enum|trait|impl|type|mod)\s+(\w+)")


class RustChunker(BraceChunker):
    """Split Rust sources at top-level items.

    ``#[...]`` attributes and doc comments directly above an item travel
    with it.
    """

    language = "rust"
    comment_prefixes = ("//", "/*", "*")
    annotation_prefixes = ("#[", "#![")
    # single quotes also open lifetimes ('a), so only double quotes delimit strings
    string_quotes = "\""

    def _is_preamble_statement(self, stripped: str) -> bool:
        return stripped.startswith(("use ", "pub use ", "extern crate"))

    def _match_declaration(self, line: str) -> str | None:
        if _FN_RE.search(line):
            m = _FN_NAME_RE.search(line)
            return m.group(1) if m else "Unnamed function"
        if _ITEM_RE.search(line):
            m = _ITEM_NAME_RE.search(line)
            return m.group(1) if m else "Unnamed type"
        return None

    def _at_boundary(self, line: str, seg: SegmentBuilder) -> bool:
        return line.strip() == "}" or seg.tokens() > self.max_tokens
