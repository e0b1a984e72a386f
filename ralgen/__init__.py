"""Register Access Layer generator.

Turns a device description (peripherals, registers, bit fields, base
addresses) into Rust register access modules:
- one type module per distinct peripheral layout (shape)
- one accessor module per physical peripheral (instance), with the
  take/release/steal/conjure single-owner protocol
- metadata tables listing what was emitted

Getting started:
    from ralgen import GeneratorConfig, generate_from_file

    config = GeneratorConfig().with_ignore(["DBGMCU"])
    generate_from_file("stm32f103.svd", "src/", config)
"""

from ralgen.core.convert import build
from ralgen.core.exceptions import RalgenError
from ralgen.core.types import DeviceModel
from ralgen.generator import (
    Artifact,
    GenerationResult,
    generate,
    generate_from_file,
    render,
    write_artifacts,
)
from ralgen.utils.config_loader import AddressSize, GeneratorConfig, load_config

__all__ = [
    # Pipeline
    "build",
    "render",
    "write_artifacts",
    "generate",
    "generate_from_file",
    # Results
    "Artifact",
    "GenerationResult",
    "DeviceModel",
    # Configuration
    "AddressSize",
    "GeneratorConfig",
    "load_config",
    # Errors
    "RalgenError",
]
