"""JavaScript / TypeScript chunker — function, class and const declarations."""

from __future__ import annotations

import re

from repoqa.ingest.base import BraceChunker

# Checked in this order; the first match supplies the chunk name.
_DECLARATION_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"function\s+(\w+)\s*\("), 1),
    (re.compile(r"class\s+(\w+)"), 1),
    (re.compile(r"const\s+(\w+)\s*=\s*(?:async\s+)?(?:\([^)]*\)\s*=>|\w+\s*=>|function|\{)"), 1),
    (re.compile(r"export\s+(default\s+)?function\s+(\w+)"), 2),
    (re.compile(r"export\s+(default\s+)?class\s+(\w+)"), 2),
)

_REEXPORT_RE = re.compile(r"^export\s+.*\bfrom\s+[\"']")


class JavaScriptChunker(BraceChunker):
    """Split JS/TS sources at top-level declarations.

    Preamble: ``import`` statements, ``export … from`` re-exports and a
    ``'use strict'`` directive. Size flushes happen only at brace depth 0
    and keep the current name, so trailing top-level statements after a
    function are reported under that function's name.
    """

    language = "javascript"
    annotation_prefixes = ("@",)
    reset_name_on_flush = False

    def _is_preamble_statement(self, stripped: str) -> bool:
        if stripped.startswith("import ") or stripped.startswith("import{"):
            return True
        if stripped in ("'use strict';", '"use strict";', "'use strict'", '"use strict"'):
            return True
        return bool(_REEXPORT_RE.match(stripped))

    def _match_declaration(self, line: str) -> str | None:
        for pattern, group in _DECLARATION_PATTERNS:
            m = pattern.search(line)
            if m:
                return m.group(group)
        return None
