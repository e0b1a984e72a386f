"""Device description loaders.

Each loader satisfies the DescriptionParser protocol. get_parser() picks
one from the description file's suffix.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

from ralgen.core.exceptions import DescriptionError
from ralgen.interfaces.description import DescriptionParser
from ralgen.parsers.svd import SvdParser
from ralgen.parsers.yaml_description import YamlDescriptionParser

_PARSERS: dict[str, type] = {
    ".svd": SvdParser,
    ".xml": SvdParser,
    ".yaml": YamlDescriptionParser,
    ".yml": YamlDescriptionParser,
}


def get_parser(path: Union[str, Path]) -> DescriptionParser:
    """Return a parser for the description file at path.

    Raises:
        DescriptionError: If the suffix is not a known description format
    """
    suffix = Path(path).suffix.lower()
    parser_class = _PARSERS.get(suffix)
    if parser_class is None:
        raise DescriptionError(
            str(path),
            f"unknown description format '{suffix}'. Known: {sorted(_PARSERS)}",
        )
    return parser_class()


__all__ = ["SvdParser", "YamlDescriptionParser", "get_parser"]
