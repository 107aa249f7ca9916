"""Base chunker interface and the shared segmenting helpers for code files.

Token counting is a whitespace-delimited word count, not a real tokenizer.
Chunk sizes are compared against ``max_tokens`` with that estimate only, so
the same file always splits the same way regardless of the embedding model.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import replace

from repoqa.models import UNNAMED_SECTION, Chunk, ChunkMetadata

_WHITESPACE_RE = re.compile(r"\s+")

EXTENSION_LANGUAGES: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "go": "go",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "hpp": "cpp",
    "rs": "rust",
    "html": "html",
    "css": "css",
}


def extension_of(path: str) -> str:
    """Return the lower-cased text after the last dot (the whole name if there is none)."""
    return path.rsplit(".", 1)[-1].lower()


def language_for_path(path: str) -> str:
    return EXTENSION_LANGUAGES.get(extension_of(path), "text")


def estimate_tokens(text: str) -> int:
    """Approximate token count: number of whitespace-separated pieces.

    Leading/trailing whitespace yields empty pieces that are still counted,
    and the empty string counts as 1.
    """
    return len(_WHITESPACE_RE.split(text))


def brace_delta(line: str) -> int:
    return line.count("{") - line.count("}")


def _nesting_delta(line: str) -> int:
    return line.count("(") + line.count("{") - line.count(")") - line.count("}")


def code_text(line: str, line_comment: str = "//", quotes: str = "\"'`") -> str:
    """Return *line* without its string literals and trailing line comment.

    Literals are delimited by any character in *quotes*; a backslash escapes
    the next character inside a literal. An unterminated literal runs to the
    end of the line.
    """
    out: list[str] = []
    quote = ""
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch in quotes:
            quote = ch
        elif line.startswith(line_comment, i):
            break
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def collect_preamble(
    lines: list[str],
    is_statement: Callable[[str], bool],
    is_trivia: Callable[[str], bool],
    *,
    line_comment: str = "//",
    quotes: str = "\"'`",
    brackets: bool = True,
    is_declaration: Callable[[str], bool] | None = None,
) -> tuple[str, int]:
    """Split the leading import/include block off *lines*.

    The preamble runs from the top of the file to the end of the last
    import-like statement. Blank and comment lines between statements belong
    to it; trivia after the last statement is left to the body.

    A statement that ends with a line continuation extends to the next line.
    With *brackets*, a statement that opens a bracket (``import {``,
    ``from x import (``) extends until balanced; brackets inside string
    literals and the trailing *line_comment* are not counted. A bracket
    continuation never swallows a line that starts a new statement or that
    *is_declaration* accepts.

    Returns:
        ``(preamble_text, body_start_index)``.
    """
    n = len(lines)
    end = 0
    i = 0
    while i < n:
        stripped = lines[i].strip()
        if is_statement(stripped):
            depth = _nesting_delta(code_text(lines[i], line_comment, quotes)) if brackets else 0
            continued = lines[i].rstrip().endswith("\\")
            i += 1
            while i < n and (depth > 0 or continued):
                if not continued and (
                    is_statement(lines[i].strip())
                    or (is_declaration is not None and is_declaration(lines[i]))
                ):
                    break
                if brackets:
                    depth += _nesting_delta(code_text(lines[i], line_comment, quotes))
                continued = lines[i].rstrip().endswith("\\")
                i += 1
            end = i
        elif is_trivia(stripped):
            i += 1
        else:
            break
    return "".join(f"{line}\n" for line in lines[:end]), end


class SegmentBuilder:
    """Accumulates body lines of one file and emits preamble-prefixed chunks.

    Comment, decorator and blank lines directly above a declaration are
    carried into that declaration's chunk instead of being flushed with the
    previous one.
    """

    def __init__(
        self,
        metadata: ChunkMetadata,
        preamble: str,
        is_trivia: Callable[[str], bool],
    ) -> None:
        self._metadata = metadata
        self._is_trivia = is_trivia
        self.preamble = preamble
        self.lines: list[str] = []
        self.name = ""
        self.chunks: list[Chunk] = []

    @property
    def text(self) -> str:
        return "".join(f"{line}\n" for line in self.lines)

    def is_blank(self) -> bool:
        return not self.text.strip()

    def tokens(self) -> int:
        return estimate_tokens(self.text)

    def append(self, line: str) -> None:
        self.lines.append(line)

    def flush(self, default: str = UNNAMED_SECTION, reset_name: bool = False) -> None:
        """Emit the accumulated lines as a chunk (if non-blank) and clear them."""
        text = self.text
        if text.strip():
            self.chunks.append(
                Chunk(
                    content=self.preamble + text,
                    metadata=replace(self._metadata, name=self.name or default),
                )
            )
        self.lines = []
        if reset_name:
            self.name = ""

    def start(self, line: str, name: str, default: str = UNNAMED_SECTION) -> None:
        """Flush the current chunk and begin a new one at declaration *line*."""
        split = len(self.lines)
        while split > 0 and self._is_trivia(self.lines[split - 1].strip()):
            split -= 1
        carried = self.lines[split:]
        self.lines = self.lines[:split]
        self.flush(default)
        self.lines = [*carried, line]
        self.name = name

    def fold_into_last(self) -> None:
        """Append the accumulated lines to the previous chunk instead of emitting a new one."""
        if self.chunks:
            last = self.chunks[-1]
            self.chunks[-1] = Chunk(content=last.content + self.text, metadata=last.metadata)
            self.lines = []

    def finish(self) -> list[Chunk]:
        self.flush()
        if not self.chunks and self.preamble.strip():
            self.chunks.append(
                Chunk(content=self.preamble, metadata=replace(self._metadata, name=UNNAMED_SECTION))
            )
        return self.chunks


class BaseChunker(ABC):
    """Abstract base for all chunkers.

    Subclasses implement ``chunk()``. ``language`` is informational; the
    metadata language is always derived from the file extension so that
    ``.ts`` files report ``typescript`` even though they share the
    JavaScript strategy.
    """

    language: str = "text"

    def __init__(self, max_tokens: int = 400) -> None:
        if max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")
        self.max_tokens = max_tokens

    @abstractmethod
    def chunk(self, content: str, path: str = "") -> list[Chunk]:
        """Split *content* of the file at *path* into ordered Chunk objects."""

    @staticmethod
    def estimate_tokens(text: str) -> int:
        return estimate_tokens(text)

    @staticmethod
    def metadata_for(path: str) -> ChunkMetadata:
        return ChunkMetadata(
            path=path,
            language=language_for_path(path),
            extension=extension_of(path),
        )


def scan_comment(
    line: str,
    in_block: bool,
    line_comment: str = "//",
    quotes: str = "\"'`",
    block_comments: bool = True,
) -> tuple[bool, bool]:
    """Classify *line* as comment or code, tracking ``/* ... */`` blocks.

    A line is a comment when it starts with *line_comment*, starts a block
    comment, or sits inside a block opened on an earlier line. A code line
    that opens a block without closing it puts the following lines in the
    block.

    Returns:
        ``(is_comment, in_block_after_line)``.
    """
    stripped = line.strip()
    if in_block:
        return True, "*/" not in stripped
    if stripped.startswith(line_comment):
        return True, False
    if not block_comments:
        return False, False
    if stripped.startswith("/*"):
        return True, "*/" not in stripped[2:]
    code = code_text(line, line_comment, quotes)
    return False, code.rfind("/*") > code.rfind("*/")


class BraceChunker(BaseChunker):
    """Declaration-driven chunker for brace-delimited languages.

    A declaration line seen at brace depth 0 starts a new chunk. After each
    code line the depth is updated (clamped at 0) and, back at depth 0,
    ``_at_boundary()`` decides whether to flush without a new declaration.
    Comment lines, including every line of a ``/* ... */`` block, neither
    declare nor move the depth.
    """

    comment_prefixes: tuple[str, ...] = ("//", "/*", "*")
    annotation_prefixes: tuple[str, ...] = ()
    reset_name_on_flush = True
    line_comment = "//"
    string_quotes = "\"'`"
    block_comments = True
    preamble_brackets = True

    def chunk(self, content: str, path: str = "") -> list[Chunk]:
        if not content.strip():
            return []
        lines = content.split("\n")
        preamble, start = collect_preamble(
            lines,
            self._is_preamble_statement,
            self._is_trivia,
            line_comment=self.line_comment,
            quotes=self.string_quotes,
            brackets=self.preamble_brackets,
            is_declaration=lambda line: self._match_declaration(line) is not None,
        )
        seg = SegmentBuilder(self.metadata_for(path), preamble, self._is_trivia)

        depth = 0
        in_block = False
        for line in lines[start:]:
            is_comment, in_block = scan_comment(
                line, in_block, self.line_comment, self.string_quotes, self.block_comments
            )
            name = self._match_declaration(line) if depth == 0 and not is_comment else None
            if name is not None:
                seg.start(line, name)
            else:
                seg.append(line)

            if not is_comment:
                depth = max(0, depth + brace_delta(line))

            if depth == 0 and not seg.is_blank() and self._at_boundary(line, seg):
                seg.flush(reset_name=self.reset_name_on_flush)

        return seg.finish()

    def _is_trivia(self, stripped: str) -> bool:
        return not stripped or stripped.startswith(self.comment_prefixes + self.annotation_prefixes)

    @abstractmethod
    def _is_preamble_statement(self, stripped: str) -> bool:
        """True for import/include-like lines that belong to the preamble."""

    @abstractmethod
    def _match_declaration(self, line: str) -> str | None:
        """Return the declaration's name (or its fallback label), None if *line* declares nothing."""

    def _at_boundary(self, line: str, seg: SegmentBuilder) -> bool:
        return seg.tokens() > self.max_tokens
