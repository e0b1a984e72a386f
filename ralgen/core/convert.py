"""Device model builder.

Converts a parsed description tree into the canonical DeviceModel:
- one PeripheralShape per distinct register layout
- one PeripheralInstance per physical peripheral (address + reset values)

Peripherals are grouped into shapes through a canonical key derived from
their full register layout. The first peripheral seen with a key names
the shape; later ones become extra instances of it.
"""

from __future__ import annotations

import logging
from typing import Hashable, Optional

from ralgen.core.exceptions import (
    AddressRangeError,
    DuplicateMemberError,
    DuplicateModuleNameError,
    InconsistentFieldError,
    ModelError,
    RegisterLayoutError,
    UnsupportedWidthError,
)
from ralgen.core.types import (
    AccessKind,
    AccessProperties,
    BitRange,
    DeviceModel,
    FieldDef,
    PeripheralInstance,
    PeripheralShape,
    RegisterDef,
    ResetValue,
    round_width,
)
from ralgen.interfaces.description import (
    ParsedDevice,
    ParsedPeripheral,
    ParsedRegister,
)
from ralgen.utils.config_loader import GeneratorConfig
from ralgen.utils.naming import identifier, module_name

logger = logging.getLogger(__name__)

DEFAULT_ACCESS = AccessKind.READ_WRITE
DEFAULT_RESET_VALUE = 0


class _Defaults:
    """Register property fallbacks resolved once per device."""

    def __init__(self, device: ParsedDevice, config: GeneratorConfig):
        self.size = device.default_size or config.address_size.bits
        self.access = (
            _access_kind(device.default_access, device.name)
            if device.default_access
            else DEFAULT_ACCESS
        )
        self.reset_value = (
            device.default_reset_value
            if device.default_reset_value is not None
            else DEFAULT_RESET_VALUE
        )


def build(device: ParsedDevice, config: Optional[GeneratorConfig] = None) -> DeviceModel:
    """Build the canonical model for a parsed device.

    Args:
        device: Resolved description tree from a DescriptionParser
        config: Generator settings; the address size is the default
            register width and bounds the base addresses. Peripherals on
            the ignore list are dropped before validation.

    Returns:
        DeviceModel with deduplicated shapes and one instance per peripheral

    Raises:
        ModelError: On any inconsistency; nothing is returned partially
    """
    config = config or GeneratorConfig()
    defaults = _Defaults(device, config)

    shapes: list[PeripheralShape] = []
    instances: list[PeripheralInstance] = []
    shape_by_key: dict[Hashable, PeripheralShape] = {}
    shape_modules: dict[str, str] = {}
    instance_modules: dict[str, str] = {}

    for peripheral in device.peripherals:
        if config.is_ignored(peripheral.name):
            logger.info("Skipping peripheral %s (ignored)", peripheral.name)
            continue
        if not config.address_size.fits(peripheral.base_address):
            raise AddressRangeError(
                peripheral.name, peripheral.base_address, config.address_size.bits
            )

        registers, resets = _convert_registers(peripheral, defaults)
        key = _shape_key(registers)

        shape = shape_by_key.get(key)
        if shape is None:
            shape = PeripheralShape(
                name=peripheral.name,
                module_name=module_name(peripheral.name),
                description=peripheral.description or peripheral.name,
                registers=registers,
            )
            _claim(shape_modules, shape.module_name, shape.name)
            shape_by_key[key] = shape
            shapes.append(shape)
            logger.debug("New shape %s (%d registers)", shape.name, len(registers))
        else:
            logger.debug("Peripheral %s shares shape %s", peripheral.name, shape.name)

        instance = PeripheralInstance(
            name=peripheral.name,
            module_name=module_name(peripheral.name),
            shape=shape,
            description=peripheral.description or peripheral.name,
            base_address=peripheral.base_address,
            reset_values=tuple(
                # Registers of a folded peripheral are positionally equal to
                # the shape's, so shape names are used for the reset table.
                ResetValue(register_name=reg.name, value=value)
                for reg, value in zip(shape.registers, resets)
            ),
        )
        _claim(instance_modules, instance.module_name, instance.name)
        instances.append(instance)

    logger.info(
        "Device %s: %d peripherals, %d distinct shapes",
        device.name,
        len(instances),
        len(shapes),
    )
    return DeviceModel(
        name=device.name,
        shapes=tuple(shapes),
        instances=tuple(instances),
        description=device.description,
    )


def _claim(taken: dict[str, str], module: str, owner: str) -> None:
    first = taken.get(module)
    if first is not None:
        raise DuplicateModuleNameError(module, first, owner)
    taken[module] = owner


def _convert_registers(
    peripheral: ParsedPeripheral, defaults: _Defaults
) -> tuple[tuple[RegisterDef, ...], list[int]]:
    registers: list[RegisterDef] = []
    resets: list[int] = []
    seen: set[str] = set()
    previous: Optional[RegisterDef] = None

    for parsed in peripheral.registers:
        reg, reset = _convert_register(peripheral.name, parsed, defaults)

        if reg.name in seen:
            raise DuplicateMemberError(peripheral.name, "register", reg.name)
        seen.add(reg.name)

        if reg.offset % reg.properties.byte_size:
            raise RegisterLayoutError(
                peripheral.name,
                reg.name,
                reg.offset,
                f"not aligned to its {reg.properties.bit_width}-bit width",
            )
        if previous is not None and reg.offset < previous.end:
            raise RegisterLayoutError(
                peripheral.name,
                reg.name,
                reg.offset,
                f"overlaps or precedes {previous.name} (ends at 0x{previous.end:X})",
            )

        registers.append(reg)
        resets.append(reset)
        previous = reg

    return tuple(registers), resets


def _convert_register(
    peripheral: str, parsed: ParsedRegister, defaults: _Defaults
) -> tuple[RegisterDef, int]:
    owner = f"{peripheral}.{parsed.name}"
    declared = parsed.size if parsed.size is not None else defaults.size
    width = round_width(declared)
    if width is None:
        raise UnsupportedWidthError(owner, declared)
    if width != declared:
        logger.debug("%s: %d-bit register widened to %d bits", owner, declared, width)

    access = _access_kind(parsed.access, owner) if parsed.access else defaults.access
    name = identifier(parsed.name)

    fields: list[FieldDef] = []
    field_names: set[str] = set()
    for f in parsed.fields:
        if f.bit_width < 1 or f.bit_offset < 0 or f.bit_offset + f.bit_width > declared:
            raise InconsistentFieldError(
                peripheral, parsed.name, f.name, f.bit_offset, f.bit_width, declared
            )
        fname = identifier(f.name)
        if fname in field_names:
            raise DuplicateMemberError(owner, "field", fname)
        field_names.add(fname)
        fields.append(
            FieldDef(
                name=fname,
                bit_range=BitRange(offset=f.bit_offset, width=f.bit_width),
                description=f.description,
            )
        )

    reset = parsed.reset_value if parsed.reset_value is not None else defaults.reset_value
    limit = (1 << declared) - 1
    if reset & ~limit:
        logger.warning(
            "%s: reset value 0x%X wider than %d bits, truncated", owner, reset, declared
        )
        reset &= limit

    reg = RegisterDef(
        name=name,
        offset=parsed.address_offset,
        properties=AccessProperties(access_kind=access, bit_width=width),
        fields=tuple(fields),
        description=parsed.description,
    )
    return reg, reset


def _access_kind(text: str, owner: str) -> AccessKind:
    try:
        return AccessKind.parse(text)
    except ValueError as exc:
        raise ModelError(f"{owner}: {exc}", details={"access": text}) from exc


def _shape_key(registers: tuple[RegisterDef, ...]) -> Hashable:
    """Canonical structural key: register order matters, field order does not."""
    return tuple(
        (
            reg.name,
            reg.offset,
            reg.properties.bit_width,
            reg.properties.access_kind,
            tuple(sorted((f.name, f.bit_range.offset, f.bit_range.width) for f in reg.fields)),
        )
        for reg in registers
    )
