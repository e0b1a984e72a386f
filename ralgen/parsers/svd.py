"""CMSIS-SVD loader.

Reads the subset of SVD the generator needs: device and peripheral
register-property defaults, derivedFrom peripherals, register arrays
(dim/dimIncrement/dimIndex) and the three ways SVD spells a field's bit
position (bitOffset/bitWidth, lsb/msb, bitRange).

Alternate registers and clusters cannot be expressed in a flat register
block and are skipped with a log message.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import replace
from typing import Optional

from ralgen.core.exceptions import DescriptionError
from ralgen.core.types import AccessKind
from ralgen.interfaces.description import (
    ParsedDevice,
    ParsedField,
    ParsedPeripheral,
    ParsedRegister,
)

logger = logging.getLogger(__name__)

_BIT_RANGE = re.compile(r"^\[(\d+):(\d+)\]$")
_DIM_RANGE = re.compile(r"^(\d+)-(\d+)$")
_MAX_DERIVE_DEPTH = 8


def _t(node: Optional[ET.Element], tag: str) -> Optional[str]:
    if node is None:
        return None
    e = node.find(tag)
    return e.text.strip() if (e is not None and e.text) else None


def _int(s: Optional[str]) -> Optional[int]:
    """Parse an SVD scaled integer: decimal, 0x hex, #binary."""
    if s is None:
        return None
    s = s.strip().lower()
    if s.startswith("#"):
        return int(s[1:], 2)
    if s.startswith("0b"):
        return int(s[2:], 2)
    try:
        return int(s, 0)
    except ValueError:
        # some SVDs use hex without 0x
        return int(s, 16)


class SvdParser:
    """DescriptionParser for CMSIS-SVD XML documents."""

    def parse(self, text: str, source: str = "<string>") -> ParsedDevice:
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise DescriptionError(source, f"invalid XML: {exc}") from exc

        try:
            return _Loader(source).device(root)
        except ValueError as exc:
            raise DescriptionError(source, str(exc)) from exc


class _Loader:
    def __init__(self, source: str):
        self.source = source

    def device(self, root: ET.Element) -> ParsedDevice:
        name = _t(root, "name")
        if not name:
            raise DescriptionError(self.source, "device has no <name>")

        access = self.access(root, name)
        peripherals_node = root.find("peripherals")
        if peripherals_node is None:
            logger.warning("No <peripherals> found in SVD: %s", self.source)
            nodes: list[ET.Element] = []
        else:
            nodes = peripherals_node.findall("peripheral")

        # ---- first pass: peripherals by name, derivedFrom unresolved
        raw: dict[str, ET.Element] = {}
        for node in nodes:
            pname = _t(node, "name")
            if not pname:
                raise DescriptionError(self.source, "peripheral without <name>")
            if pname in raw:
                raise DescriptionError(self.source, f"duplicate peripheral {pname}")
            raw[pname] = node

        resolved: dict[str, ParsedPeripheral] = {}

        def resolve(pname: str, depth: int = 0) -> ParsedPeripheral:
            if pname in resolved:
                return resolved[pname]
            if depth > _MAX_DERIVE_DEPTH:
                raise DescriptionError(self.source, f"derivedFrom chain too deep at {pname}")
            node = raw.get(pname)
            if node is None:
                raise DescriptionError(self.source, f"peripheral not found: {pname}")

            peripheral = self.peripheral(node, pname)
            parent_name = node.get("derivedFrom")
            if parent_name:
                parent = resolve(parent_name, depth + 1)
                if not peripheral.registers:
                    peripheral = replace(peripheral, registers=parent.registers)
                if peripheral.description is None:
                    peripheral = replace(peripheral, description=parent.description)

            resolved[pname] = peripheral
            return peripheral

        peripherals = tuple(resolve(pname) for pname in raw)
        logger.info("Loaded SVD device=%s peripherals=%d", name, len(peripherals))
        return ParsedDevice(
            name=name,
            peripherals=peripherals,
            description=_t(root, "description"),
            default_size=_int(_t(root, "size")),
            default_access=access,
            default_reset_value=_int(_t(root, "resetValue")),
        )

    def peripheral(self, node: ET.Element, name: str) -> ParsedPeripheral:
        base = _int(_t(node, "baseAddress"))
        if base is None:
            raise DescriptionError(self.source, f"{name}: missing <baseAddress>")

        size = _int(_t(node, "size"))
        access = self.access(node, name)
        reset = _int(_t(node, "resetValue"))

        registers: list[ParsedRegister] = []
        regs_node = node.find("registers")
        if regs_node is not None:
            if regs_node.find("cluster") is not None:
                logger.warning("%s: <cluster> blocks are not supported, skipped", name)
            for r in regs_node.findall("register"):
                if r.find("alternateRegister") is not None or r.find("alternateGroup") is not None:
                    logger.info("%s: skipping alternate register %s", name, _t(r, "name"))
                    continue
                for reg in self.registers(r, name):
                    registers.append(
                        replace(
                            reg,
                            size=reg.size if reg.size is not None else size,
                            access=reg.access if reg.access is not None else access,
                            reset_value=reg.reset_value if reg.reset_value is not None else reset,
                        )
                    )

        registers.sort(key=lambda reg: reg.address_offset)
        return ParsedPeripheral(
            name=name,
            base_address=base,
            registers=tuple(registers),
            description=_t(node, "description"),
        )

    def registers(self, node: ET.Element, peripheral: str) -> list[ParsedRegister]:
        """One register, or several when the register is a dim array."""
        rname = _t(node, "name")
        if not rname:
            raise DescriptionError(self.source, f"{peripheral}: register without <name>")
        where = f"{peripheral}.{rname}"

        offset = _int(_t(node, "addressOffset"))
        if offset is None:
            raise DescriptionError(self.source, f"{where}: missing <addressOffset>")

        template = ParsedRegister(
            name=rname,
            address_offset=offset,
            size=_int(_t(node, "size")),
            access=self.access(node, where),
            reset_value=_int(_t(node, "resetValue")),
            fields=self.fields(node, where),
            description=_t(node, "description"),
        )

        dim = _int(_t(node, "dim"))
        if dim is None:
            return [template]

        increment = _int(_t(node, "dimIncrement"))
        if increment is None:
            raise DescriptionError(self.source, f"{where}: <dim> without <dimIncrement>")
        indices = self.dim_indices(_t(node, "dimIndex"), dim, where)

        expanded = []
        for i, index in enumerate(indices):
            name = rname.replace("[%s]", index).replace("%s", index)
            expanded.append(
                replace(template, name=name, address_offset=offset + i * increment)
            )
        return expanded

    def dim_indices(self, raw: Optional[str], dim: int, where: str) -> list[str]:
        if raw is None:
            return [str(i) for i in range(dim)]
        match = _DIM_RANGE.match(raw)
        if match:
            indices = [str(i) for i in range(int(match.group(1)), int(match.group(2)) + 1)]
        else:
            indices = [part.strip() for part in raw.split(",")]
        if len(indices) != dim:
            raise DescriptionError(
                self.source, f"{where}: dimIndex {raw!r} does not have {dim} entries"
            )
        return indices

    def fields(self, node: ET.Element, where: str) -> tuple[ParsedField, ...]:
        fnode = node.find("fields")
        if fnode is None:
            return ()

        fields: list[ParsedField] = []
        for f in fnode.findall("field"):
            fname = _t(f, "name")
            if not fname:
                raise DescriptionError(self.source, f"{where}: field without <name>")
            offset, width = self.bit_position(f, f"{where}.{fname}")
            fields.append(
                ParsedField(
                    name=fname,
                    bit_offset=offset,
                    bit_width=width,
                    description=_t(f, "description"),
                )
            )
        return tuple(fields)

    def bit_position(self, node: ET.Element, where: str) -> tuple[int, int]:
        offset = _int(_t(node, "bitOffset"))
        if offset is not None:
            width = _int(_t(node, "bitWidth"))
            return offset, width if width is not None else 1

        lsb = _int(_t(node, "lsb"))
        msb = _int(_t(node, "msb"))
        if lsb is not None and msb is not None:
            return lsb, msb - lsb + 1

        bit_range = _t(node, "bitRange")
        if bit_range:
            match = _BIT_RANGE.match(bit_range)
            if match:
                msb, lsb = int(match.group(1)), int(match.group(2))
                return lsb, msb - lsb + 1

        raise DescriptionError(self.source, f"{where}: no bit position")

    def access(self, node: ET.Element, where: str) -> Optional[str]:
        value = _t(node, "access")
        if value is None:
            return None
        try:
            AccessKind.parse(value)
        except ValueError as exc:
            raise DescriptionError(self.source, f"{where}: {exc}") from exc
        return value
