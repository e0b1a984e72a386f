"""Interface abstractions for the generator.

Defines the contract between description parsers and the model builder:
- ParsedDevice / ParsedPeripheral / ParsedRegister / ParsedField: parsed tree
- DescriptionParser: protocol every description loader satisfies
"""

from ralgen.interfaces.description import (
    DescriptionParser,
    ParsedDevice,
    ParsedField,
    ParsedPeripheral,
    ParsedRegister,
)

__all__ = [
    "DescriptionParser",
    "ParsedDevice",
    "ParsedPeripheral",
    "ParsedRegister",
    "ParsedField",
]
