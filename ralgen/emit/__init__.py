"""Emitters turning the canonical model into Rust source text.

- peripheral: one type module per shape
- instance: one accessor module per instance
- metadata: name tables and module indexes
"""

from ralgen.emit.instance import emit_instance
from ralgen.emit.metadata import emit_device_module, emit_metadata, emit_module_index
from ralgen.emit.peripheral import emit_peripheral

__all__ = [
    "emit_peripheral",
    "emit_instance",
    "emit_metadata",
    "emit_module_index",
    "emit_device_module",
]
