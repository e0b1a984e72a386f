"""Custom exceptions used throughout the ralgen package."""

from typing import Any, Optional


class RalgenError(Exception):
    """Base exception for all generator errors.

    All ralgen-specific exceptions should inherit from this class.
    This allows catching all generator errors with a single except clause.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Additional context about the error
        """

        super().__init__(message)
        self.details = details or {}


class ConfigurationError(RalgenError):
    """Raised when there's an error in generator configuration.

    This includes:
    - Invalid configuration value
    - Unknown configuration key
    - Configuration file that cannot be parsed
    """

    def __init__(
        self,
        config_key: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """Initialize configuration error.

        Args:
            config_key: The configuration key that caused the error
            message: Description of what's wrong. If omitted, config_key is
                treated as the message and the key defaults to "configuration".
            details: Additional context
        """
        if message is None:
            message = config_key or "Invalid configuration"
            config_key = "configuration"
        if config_key is None:
            config_key = "configuration"

        full_message = f"Configuration error for '{config_key}': {message}"
        super().__init__(message=full_message, details=details)
        self.config_key = config_key


class DescriptionError(RalgenError):
    """Raised when a device description cannot be parsed.

    Loader failures are reported as-is; the model builder never sees a
    partially parsed tree.
    """

    def __init__(
        self,
        source: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=f"{source}: {message}", details=details)
        self.source = source


class ModelError(RalgenError):
    """Base exception for inconsistent device models.

    Raised while building the canonical model, before any output is written.
    """


class InconsistentFieldError(ModelError):
    """Raised when a field does not fit inside its register.

    Examples:
    - bit offset + bit width exceeds the declared register width
    - zero-width field
    """

    def __init__(
        self,
        peripheral: str,
        register: str,
        field: str,
        offset: int,
        width: int,
        register_width: int,
    ):
        message = (
            f"Field {peripheral}.{register}.{field} at bits "
            f"[{offset}+{width}] does not fit a {register_width}-bit register"
        )
        super().__init__(
            message=message,
            details={
                "peripheral": peripheral,
                "register": register,
                "field": field,
                "offset": offset,
                "width": width,
                "register_width": register_width,
            },
        )
        self.peripheral = peripheral
        self.register = register
        self.field = field


class DuplicateModuleNameError(ModelError):
    """Raised when two distinct shapes or instances share a module name."""

    def __init__(self, module_name: str, first: str, second: str):
        message = (
            f"Module name '{module_name}' is derived from both "
            f"'{first}' and '{second}'"
        )
        super().__init__(
            message=message,
            details={"module_name": module_name, "first": first, "second": second},
        )
        self.module_name = module_name


class DuplicateMemberError(ModelError):
    """Raised when two registers (or two fields) map to the same identifier."""

    def __init__(self, owner: str, kind: str, identifier: str):
        message = f"Duplicate {kind} identifier '{identifier}' in {owner}"
        super().__init__(
            message=message,
            details={"owner": owner, "kind": kind, "identifier": identifier},
        )
        self.identifier = identifier


class UnsupportedWidthError(ModelError):
    """Raised when a register width cannot be mapped to an integer type."""

    def __init__(self, owner: str, width: int):
        super().__init__(
            message=f"Unsupported register width {width} bits in {owner}",
            details={"owner": owner, "width": width},
        )
        self.width = width


class RegisterLayoutError(ModelError):
    """Raised when registers cannot be laid out as a packed register block.

    Examples:
    - registers out of address order or overlapping
    - register offset not aligned to its width
    """

    def __init__(self, peripheral: str, register: str, offset: int, reason: str):
        message = (
            f"Register {peripheral}.{register} at offset 0x{offset:X}: {reason}"
        )
        super().__init__(
            message=message,
            details={"peripheral": peripheral, "register": register, "offset": offset},
        )
        self.peripheral = peripheral
        self.register = register


class AddressRangeError(ModelError):
    """Raised when a base address does not fit the configured address size."""

    def __init__(self, peripheral: str, address: int, address_bits: int):
        message = (
            f"Base address 0x{address:X} of {peripheral} does not fit "
            f"in {address_bits} bits"
        )
        super().__init__(
            message=message,
            details={"peripheral": peripheral, "address": f"0x{address:X}"},
        )
        self.address = address


class OutputError(RalgenError):
    """Raised when the output tree cannot be created or written."""

    def __init__(self, path: str, operation: str, reason: str):
        message = f"Cannot {operation} {path}: {reason}"
        super().__init__(message=message, details={"path": path})
        self.path = path
        self.operation = operation


class OwnershipError(RalgenError):
    """Raised by the ownership model where generated code would panic.

    Examples:
    - releasing an instance that was never taken
    - releasing a handle that belongs to another instance
    """

    def __init__(self, instance: str, message: str):
        super().__init__(message=f"{instance}: {message}", details={"instance": instance})
        self.instance = instance
