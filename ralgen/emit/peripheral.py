"""Peripheral type emitter.

One artifact per PeripheralShape, containing:
- a module per register holding offset/mask constants for each field
- RegisterBlock: the register layout, member order == memory order
- ResetValues: the same members as plain integers
- Instance: an address-bound handle dereferencing to RegisterBlock

Output is a pure function of (shape, config) so that regenerating an
unchanged description produces byte-identical files.
"""

from __future__ import annotations

from ralgen.core.types import FieldDef, PeripheralShape, RegisterDef
from ralgen.emit.text import FILE_HEADER, doc_comment, indent
from ralgen.utils.config_loader import GeneratorConfig

_INSTANCE_TEMPLATE = """\
pub struct Instance {{
    pub(crate) addr: {address_type},
    pub(crate) _marker: PhantomData<*const RegisterBlock>,
}}

impl ::core::ops::Deref for Instance {{
    type Target = RegisterBlock;
    #[inline(always)]
    fn deref(&self) -> &RegisterBlock {{
        unsafe {{ &*(self.addr as *const _) }}
    }}
}}
"""


def emit_peripheral(shape: PeripheralShape, config: GeneratorConfig) -> str:
    """Render the type definitions shared by every instance of shape."""
    out = [FILE_HEADER, doc_comment("//!", shape.description), "\n"]

    access_types = sorted({reg.properties.access_type_name for reg in shape.registers})
    if access_types:
        out.append(f"use ral_registers::{{{', '.join(access_types)}}};\n")
    out.append("use core::marker::PhantomData;\n\n")

    for reg in shape.registers:
        out.append(_register_module(reg))
        out.append("\n")

    out.append(_register_block(shape))
    out.append("\n")
    out.append(_reset_values(shape))
    out.append("\n")
    out.append(_INSTANCE_TEMPLATE.format(address_type=config.address_size.type_name))
    return "".join(out)


def _register_module(reg: RegisterDef) -> str:
    code = doc_comment("///", reg.description) if reg.description else ""
    if not reg.fields:
        return code + f"pub mod {reg.name} {{}}\n"

    body = "\n".join(
        _field_module(f, reg.properties.size_type_name) for f in reg.fields
    )
    return code + f"pub mod {reg.name} {{\n{indent(body)}\n}}\n"


def _field_module(field: FieldDef, size_type: str) -> str:
    bits = field.bit_range
    code = doc_comment("///", field.description) if field.description else ""
    plural = "bit" if bits.width == 1 else "bits"
    code += (
        f"pub mod {field.name} {{\n"
        f"    /// Offset ({bits.offset} bits)\n"
        f"    pub const offset: u32 = {bits.offset};\n"
        f"    /// Mask ({bits.width} {plural}: {bits.base_mask:#x} << {bits.offset})\n"
        f"    pub const mask: {size_type} = {bits.base_mask:#x} << offset;\n"
        "    /// Read-only values (empty)\n"
        "    pub mod R {}\n"
        "    /// Write-only values (empty)\n"
        "    pub mod W {}\n"
        "    /// Read-write values (empty)\n"
        "    pub mod RW {}\n"
        "}\n"
    )
    return code


def _register_block(shape: PeripheralShape) -> str:
    members = []
    position = 0
    reserved = 0
    for reg in shape.registers:
        gap = reg.offset - position
        if gap > 0:
            members.append(f"    _reserved{reserved}: [u8; {gap}],\n")
            reserved += 1
        doc = doc_comment("    ///", reg.description) if reg.description else ""
        props = reg.properties
        members.append(
            f"{doc}    pub {reg.name}: {props.access_type_name}<{props.size_type_name}>,\n"
        )
        position = reg.end

    return "#[repr(C)]\npub struct RegisterBlock {\n" + "".join(members) + "}\n"


def _reset_values(shape: PeripheralShape) -> str:
    members = "".join(
        f"    pub {reg.name}: {reg.properties.size_type_name},\n"
        for reg in shape.registers
    )
    return "pub struct ResetValues {\n" + members + "}\n"
