"""Nested directory tree built from a flat list of repository file paths."""

from __future__ import annotations

from collections.abc import Iterable

from repoqa.models import FileNode


def _sort_key(node: FileNode) -> tuple[bool, str, str]:
    return (not node.is_dir, node.name.lower(), node.name)


def sort_tree(node: FileNode) -> FileNode:
    """Order children directories first, then by name, at every level. Sorts in place."""
    node.children.sort(key=_sort_key)
    for child in node.children:
        if child.is_dir:
            sort_tree(child)
    return node


def build_file_tree(paths: Iterable[str], root_name: str) -> FileNode:
    """Build a sorted tree rooted at *root_name* from ``/``-separated *paths*.

    Intermediate directories are created on demand; an empty *paths* yields
    a root with no children.
    """
    root = FileNode(name=root_name)
    for path in paths:
        parts = [part for part in path.split("/") if part]
        if not parts:
            continue
        current = root
        for part in parts[:-1]:
            nxt = next((c for c in current.children if c.is_dir and c.name == part), None)
            if nxt is None:
                nxt = FileNode(name=part)
                current.children.append(nxt)
            current = nxt
        current.children.append(FileNode(name=parts[-1], type="file", path=path))
    return sort_tree(root)
