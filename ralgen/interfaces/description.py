"""Parsed device description tree and the parser protocol.

The description parser is the boundary between a textual hardware
description (SVD, YAML, ...) and the model builder.

PROTOCOL CONTRACT:
- parse() returns a fully resolved tree: derivedFrom links are already
  followed, so a derived peripheral carries its parent's registers
- Registers are listed in address order
- Register size/access/reset value may be None; the builder falls back
  to the device defaults, then to its own defaults
- Parse failures raise DescriptionError; nothing else escapes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class ParsedField:
    name: str
    bit_offset: int
    bit_width: int
    description: Optional[str] = None


@dataclass(frozen=True)
class ParsedRegister:
    name: str
    address_offset: int
    size: Optional[int] = None  # bits
    access: Optional[str] = None
    reset_value: Optional[int] = None
    fields: tuple[ParsedField, ...] = ()
    description: Optional[str] = None


@dataclass(frozen=True)
class ParsedPeripheral:
    name: str
    base_address: int
    registers: tuple[ParsedRegister, ...] = ()
    description: Optional[str] = None


@dataclass(frozen=True)
class ParsedDevice:
    name: str
    peripherals: tuple[ParsedPeripheral, ...] = ()
    description: Optional[str] = None
    default_size: Optional[int] = None
    default_access: Optional[str] = None
    default_reset_value: Optional[int] = None


class DescriptionParser(Protocol):
    """Turns description text into a ParsedDevice (structural subtyping)."""

    def parse(self, text: str, source: str = "<string>") -> ParsedDevice:
        """Parse a device description.

        Args:
            text: Description document contents
            source: Name used in error messages (usually the file path)

        Raises:
            DescriptionError: If the document is malformed
        """
        ...
