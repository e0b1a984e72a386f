"""YAML device description loader.

Example document:

    name: STM32F103
    size: 32
    access: read-write
    reset_value: 0
    peripherals:
      - name: GPIOA
        base_address: 0x40010800
        description: General purpose I/O
        registers:
          - name: ODR
            offset: 0x0C
            description: Port output data register
            fields:
              - {name: PIN0, offset: 0, width: 1}
      - name: GPIOB
        derived_from: GPIOA
        base_address: 0x40010C00

`derived_from` copies the parent's registers (and description when the
derived peripheral has none).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]

from ralgen.core.exceptions import DescriptionError
from ralgen.core.types import AccessKind
from ralgen.interfaces.description import (
    ParsedDevice,
    ParsedField,
    ParsedPeripheral,
    ParsedRegister,
)

logger = logging.getLogger(__name__)


class YamlDescriptionParser:
    """DescriptionParser for the YAML description format."""

    def parse(self, text: str, source: str = "<string>") -> ParsedDevice:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise DescriptionError(source, f"invalid YAML: {exc}") from exc

        if not isinstance(raw, dict):
            raise DescriptionError(source, "document must be a mapping")

        return _Builder(source).device(raw)


class _Builder:
    def __init__(self, source: str):
        self.source = source

    def error(self, where: str, message: str) -> DescriptionError:
        return DescriptionError(self.source, f"{where}: {message}")

    def device(self, raw: dict[str, Any]) -> ParsedDevice:
        name = self.text(raw, "name", "device", required=True)
        peripherals_raw = raw.get("peripherals") or []
        if not isinstance(peripherals_raw, list):
            raise self.error(name, "'peripherals' must be a list")

        by_name: dict[str, ParsedPeripheral] = {}
        peripherals: list[ParsedPeripheral] = []
        for index, entry in enumerate(peripherals_raw):
            if not isinstance(entry, dict):
                raise self.error(f"peripherals[{index}]", "must be a mapping")
            peripheral = self.peripheral(entry, by_name)
            if peripheral.name in by_name:
                raise self.error(peripheral.name, "duplicate peripheral name")
            by_name[peripheral.name] = peripheral
            peripherals.append(peripheral)

        return ParsedDevice(
            name=name,
            peripherals=tuple(peripherals),
            description=self.text(raw, "description", name),
            default_size=self.integer(raw, "size", name),
            default_access=self.access(raw, name),
            default_reset_value=self.integer(raw, "reset_value", name),
        )

    def peripheral(
        self, raw: dict[str, Any], known: dict[str, ParsedPeripheral]
    ) -> ParsedPeripheral:
        name = self.text(raw, "name", "peripheral", required=True)
        base = self.integer(raw, "base_address", name, required=True)
        description = self.text(raw, "description", name)
        registers = tuple(
            self.register(entry, f"{name}.registers[{i}]")
            for i, entry in enumerate(self.items(raw, "registers", name))
        )

        parent_name = self.text(raw, "derived_from", name)
        if parent_name is not None:
            parent = known.get(parent_name)
            if parent is None:
                raise self.error(name, f"derived_from unknown peripheral {parent_name!r}")
            logger.debug("%s derived from %s", name, parent_name)
            if not registers:
                registers = parent.registers
            if description is None:
                description = parent.description

        return ParsedPeripheral(
            name=name,
            base_address=base,
            registers=registers,
            description=description,
        )

    def register(self, raw: Any, where: str) -> ParsedRegister:
        if not isinstance(raw, dict):
            raise self.error(where, "must be a mapping")
        name = self.text(raw, "name", where, required=True)
        fields = tuple(
            self.field(entry, f"{name}.fields[{i}]")
            for i, entry in enumerate(self.items(raw, "fields", name))
        )
        return ParsedRegister(
            name=name,
            address_offset=self.integer(raw, "offset", name, required=True),
            size=self.integer(raw, "size", name),
            access=self.access(raw, name),
            reset_value=self.integer(raw, "reset_value", name),
            fields=fields,
            description=self.text(raw, "description", name),
        )

    def field(self, raw: Any, where: str) -> ParsedField:
        if not isinstance(raw, dict):
            raise self.error(where, "must be a mapping")
        name = self.text(raw, "name", where, required=True)
        return ParsedField(
            name=name,
            bit_offset=self.integer(raw, "offset", name, required=True),
            bit_width=self.integer(raw, "width", name, required=True),
            description=self.text(raw, "description", name),
        )

    # Scalar helpers -------------------------------------------------------

    def items(self, raw: dict[str, Any], key: str, where: str) -> list[Any]:
        value = raw.get(key) or []
        if not isinstance(value, list):
            raise self.error(where, f"'{key}' must be a list")
        return value

    def text(
        self, raw: dict[str, Any], key: str, where: str, required: bool = False
    ) -> Optional[str]:
        value = raw.get(key)
        if value is None:
            if required:
                raise self.error(where, f"missing '{key}'")
            return None
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            raise self.error(where, f"'{key}' must be a string")
        return str(value)

    def integer(
        self, raw: dict[str, Any], key: str, where: str, required: bool = False
    ) -> Optional[int]:
        value = raw.get(key)
        if value is None:
            if required:
                raise self.error(where, f"missing '{key}'")
            return None
        if isinstance(value, str):
            try:
                value = int(value, 0)
            except ValueError:
                raise self.error(where, f"'{key}' is not an integer: {value!r}") from None
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise self.error(where, f"'{key}' must be a non-negative integer")
        return value

    def access(self, raw: dict[str, Any], where: str) -> Optional[str]:
        value = self.text(raw, "access", where)
        if value is None:
            return None
        try:
            AccessKind.parse(value)
        except ValueError as exc:
            raise self.error(where, str(exc)) from exc
        return value
