"""Core modules for the generator.

- exceptions: error hierarchy
- types: canonical device model (shapes, instances, registers, fields)
- convert: model builder (parsed tree -> DeviceModel)
- ownership: executable model of the emitted take/release protocol
"""

from ralgen.core.convert import build
from ralgen.core.exceptions import (
    AddressRangeError,
    ConfigurationError,
    DescriptionError,
    DuplicateMemberError,
    DuplicateModuleNameError,
    InconsistentFieldError,
    ModelError,
    OutputError,
    OwnershipError,
    RalgenError,
    RegisterLayoutError,
    UnsupportedWidthError,
)
from ralgen.core.ownership import Handle, InstanceGuard
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
)

__all__ = [
    # Model builder
    "build",
    # Canonical model
    "AccessKind",
    "AccessProperties",
    "BitRange",
    "FieldDef",
    "RegisterDef",
    "PeripheralShape",
    "ResetValue",
    "PeripheralInstance",
    "DeviceModel",
    # Ownership model
    "Handle",
    "InstanceGuard",
    # Errors
    "RalgenError",
    "ConfigurationError",
    "DescriptionError",
    "ModelError",
    "InconsistentFieldError",
    "DuplicateModuleNameError",
    "DuplicateMemberError",
    "UnsupportedWidthError",
    "RegisterLayoutError",
    "AddressRangeError",
    "OutputError",
    "OwnershipError",
]
