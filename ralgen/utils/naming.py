"""Identifier derivation for generated Rust code."""

from __future__ import annotations

import re

RUST_KEYWORDS = frozenset(
    {
        "as", "async", "await", "box", "break", "const", "continue", "crate",
        "do", "dyn", "else", "enum", "extern", "false", "final", "fn", "for",
        "gen", "if", "impl", "in", "let", "loop", "macro", "match", "mod",
        "move", "mut", "override", "priv", "pub", "ref", "return", "self",
        "static", "struct", "super", "trait", "true", "try", "type", "typeof",
        "unsafe", "unsized", "use", "virtual", "where", "while", "yield",
    }
)

_INVALID = re.compile(r"[^A-Za-z0-9_]")


def identifier(name: str) -> str:
    """Make name a valid Rust identifier, keeping its case.

    Characters outside [A-Za-z0-9_] become '_', a leading digit gets a
    '_' prefix and keywords get a '_' suffix.
    """
    ident = _INVALID.sub("_", name.strip())
    if not ident:
        ident = "_"
    if ident[0].isdigit():
        ident = "_" + ident
    if ident in RUST_KEYWORDS:
        ident += "_"
    return ident


def module_name(name: str) -> str:
    """Lowercase identifier used for generated module and file names."""
    return identifier(name.lower())
