"""Tests for JavaChunker."""

from __future__ import annotations

from repoqa.ingest.java import JavaChunker

_PREAMBLE = "package com.example;\n\nimport java.util.List;\n"

_GREETER = _PREAMBLE + (
    "\n"
    "public class Greeter {\n"
    "    private String name;\n"
    "\n"
    "    public Greeter(String name) {\n"
    "        this.name = name;\n"
    "    }\n"
    "\n"
    "    public String greet() {\n"
    "        return \"Hello \" + name;\n"
    "    }\n"
    "}\n"
)


def test_type_and_methods_become_chunks():
    chunks = JavaChunker().chunk(_GREETER, "src/Greeter.java")
    assert [c.metadata.name for c in chunks] == ["Greeter", "Greeter", "greet"]


def test_fields_reported_under_type_name():
    chunks = JavaChunker().chunk(_GREETER, "src/Greeter.java")
    assert "private String name;" in chunks[0].content
    assert "public class Greeter {" in chunks[0].content


def test_closing_brace_folded_into_last_method():
    chunks = JavaChunker().chunk(_GREETER, "src/Greeter.java")
    assert chunks[-1].content.rstrip().endswith("}\n}")


def test_every_chunk_carries_preamble():
    chunks = JavaChunker().chunk(_GREETER, "src/Greeter.java")
    assert all(c.content.startswith(_PREAMBLE) for c in chunks)


def test_no_line_dropped():
    chunks = JavaChunker().chunk(_GREETER, "src/Greeter.java")
    body = "".join(c.content[len(_PREAMBLE):] for c in chunks)
    expected = [l for l in _GREETER[len(_PREAMBLE):].split("\n") if l.strip()]
    assert [l for l in body.split("\n") if l.strip()] == expected


def test_modifiers_before_class_keyword():
    content = "public final class Util {\n    static void run() {\n    }\n}\n"
    chunks = JavaChunker().chunk(content, "Util.java")
    assert chunks[0].metadata.name == "Util"
    assert [c.metadata.name for c in chunks] == ["Util", "run"]


def test_annotation_travels_with_method():
    content = (
        "public class Svc {\n"
        "    @Override\n"
        "    public String toString() {\n"
        "        return \"svc\";\n"
        "    }\n"
        "}\n"
    )
    chunks = JavaChunker().chunk(content, "Svc.java")
    method = next(c for c in chunks if c.metadata.name == "toString")
    assert "@Override" in method.content


def test_interface_and_enum():
    content = "interface Shape {\n    double area();\n}\n\nenum Color {\n    RED, GREEN\n}\n"
    chunks = JavaChunker().chunk(content, "Shapes.java")
    assert [c.metadata.name for c in chunks] == ["Shape", "Color"]


def test_bracket_in_import_comment_does_not_swallow_file():
    content = "import java.util.List; // (\n\npublic class A {\n}\n"
    chunks = JavaChunker().chunk(content, "A.java")
    assert [c.metadata.name for c in chunks] == ["A"]


def test_block_commented_class_is_not_a_declaration():
    content = "/*\npublic class Old {\n}\n*/\npublic class New {\n}\n"
    chunks = JavaChunker().chunk(content, "New.java")
    assert [c.metadata.name for c in chunks] == ["Unnamed section", "New"]
