"""Index and metadata artifacts written after all units are emitted."""

from __future__ import annotations

from typing import Sequence

from ralgen.emit.text import rust_str

DEVICE_MODULE_HEADER = """\
/// Peripherals shared by multiple devices
pub mod peripherals;

/// Peripheral instances shared by multiple devices
pub(crate) mod instances;

/// Metadata
pub mod metadata;

"""


def emit_metadata(
    peripheral_modules: Sequence[str],
    instance_modules: Sequence[str],
    instance_names: Sequence[str],
) -> str:
    """Render the three name tables, keeping emission order."""
    tables = [
        _name_table("PERIPHERAL_MODULES", peripheral_modules),
        _name_table("INSTANCE_MODULES", instance_modules),
        _name_table("INSTANCE_NAMES", instance_names),
    ]
    return "\n".join(tables)


def _name_table(const: str, names: Sequence[str]) -> str:
    entries = "".join(f"    {rust_str(name)},\n" for name in names)
    return f"pub const {const}: &[&str] = &[\n{entries}];\n"


def emit_module_index(modules: Sequence[str]) -> str:
    """peripherals/mod.rs and instances/mod.rs: one declaration per module."""
    return "".join(f"pub mod {module};\n" for module in modules)


def emit_device_module(instance_modules: Sequence[str]) -> str:
    """Top-level mod.rs of a device directory."""
    reexports = "".join(
        f"pub use self::instances::{module};\n" for module in instance_modules
    )
    return DEVICE_MODULE_HEADER + reexports
