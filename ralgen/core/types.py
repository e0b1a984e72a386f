"""Canonical device model.

The model is built once from a parsed description and consumed read-only
by the emitters. Register order inside a shape is memory order and is
part of the shape's identity: the generated register block is overlaid
on raw memory, so nothing downstream may reorder it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

STANDARD_WIDTHS = (8, 16, 32, 64)


class AccessKind(Enum):
    """Register access permission as seen by firmware."""

    READ_ONLY = "read-only"
    WRITE_ONLY = "write-only"
    READ_WRITE = "read-write"

    @property
    def wrapper_type_name(self) -> str:
        """Name of the ral_registers wrapper type for this access kind."""
        return _WRAPPER_TYPES[self]

    @classmethod
    def parse(cls, text: str) -> "AccessKind":
        try:
            return _ACCESS_ALIASES[text.strip()]
        except KeyError:
            raise ValueError(f"Unknown access kind {text!r}") from None


_WRAPPER_TYPES = {
    AccessKind.READ_ONLY: "RORegister",
    AccessKind.WRITE_ONLY: "WORegister",
    AccessKind.READ_WRITE: "RWRegister",
}

_ACCESS_ALIASES = {
    "read-only": AccessKind.READ_ONLY,
    "write-only": AccessKind.WRITE_ONLY,
    "read-write": AccessKind.READ_WRITE,
    "writeOnce": AccessKind.WRITE_ONLY,
    "read-writeOnce": AccessKind.READ_WRITE,
}


def round_width(bits: int) -> Optional[int]:
    """Round a declared register width up to the next standard width.

    Returns None when no standard width can hold it (0 or above 64 bits).
    """
    if bits < 1:
        return None
    for width in STANDARD_WIDTHS:
        if bits <= width:
            return width
    return None


@dataclass(frozen=True)
class AccessProperties:
    access_kind: AccessKind
    bit_width: int  # one of STANDARD_WIDTHS

    @property
    def access_type_name(self) -> str:
        return self.access_kind.wrapper_type_name

    @property
    def size_type_name(self) -> str:
        return f"u{self.bit_width}"

    @property
    def byte_size(self) -> int:
        return self.bit_width // 8


@dataclass(frozen=True)
class BitRange:
    offset: int
    width: int

    @property
    def base_mask(self) -> int:
        """Mask of the field before shifting into place."""
        return (1 << self.width) - 1

    @property
    def mask(self) -> int:
        return self.base_mask << self.offset


@dataclass(frozen=True)
class FieldDef:
    name: str
    bit_range: BitRange
    description: Optional[str] = None


@dataclass(frozen=True)
class RegisterDef:
    name: str
    offset: int  # bytes from the peripheral base
    properties: AccessProperties
    fields: tuple[FieldDef, ...] = ()
    description: Optional[str] = None

    @property
    def end(self) -> int:
        """First byte offset after this register."""
        return self.offset + self.properties.byte_size


@dataclass(frozen=True)
class PeripheralShape:
    name: str
    module_name: str
    description: str
    registers: tuple[RegisterDef, ...] = ()


@dataclass(frozen=True)
class ResetValue:
    register_name: str
    value: int


@dataclass(frozen=True)
class PeripheralInstance:
    name: str
    module_name: str
    shape: PeripheralShape
    description: str
    base_address: int
    reset_values: tuple[ResetValue, ...] = ()

    @property
    def peripheral_module(self) -> str:
        return self.shape.module_name


@dataclass(frozen=True)
class DeviceModel:
    name: str
    shapes: tuple[PeripheralShape, ...] = ()
    instances: tuple[PeripheralInstance, ...] = ()
    description: Optional[str] = None
