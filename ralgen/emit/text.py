"""Small text helpers shared by the emitters."""

from __future__ import annotations

INDENT = "    "

FILE_HEADER = (
    "#![allow(non_snake_case, non_upper_case_globals)]\n"
    "#![allow(non_camel_case_types)]\n"
)


def doc_comment(prefix: str, doc: str) -> str:
    """Render doc as one comment line per source line, each ending in a newline."""
    return "".join(f"{prefix} {line.strip()}".rstrip() + "\n" for line in doc.splitlines())


def indent(text: str, levels: int = 1) -> str:
    prefix = INDENT * levels
    return "\n".join(prefix + line if line else line for line in text.splitlines())


def rust_str(value: str) -> str:
    """Quote value as a Rust string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
