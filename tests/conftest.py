"""
Pytest configuration and shared fixtures for the ralgen test suite.
"""

import sys
import tempfile
from pathlib import Path

import pytest
import yaml

# Ensure project root is on PYTHONPATH so 'ralgen' can be imported
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ralgen.interfaces.description import (  # noqa: E402
    ParsedDevice,
    ParsedField,
    ParsedPeripheral,
    ParsedRegister,
)

GPIOA_BASE = 0x40010800
GPIOB_BASE = 0x40010C00


@pytest.fixture
def temp_yaml_file():
    """
    Fixture that provides a temporary YAML file.

    Yields:
        Path: Path to the temporary YAML file
    """
    with tempfile.NamedTemporaryFile(
        mode="w",
        suffix=".yaml",
        delete=False,
    ) as f:
        temp_path = Path(f.name)

    yield temp_path

    # Cleanup
    if temp_path.exists():
        temp_path.unlink()


def odr_register(reset_value=None):
    return ParsedRegister(
        name="ODR",
        address_offset=0x0C,
        size=32,
        access="read-write",
        reset_value=reset_value,
        fields=(ParsedField(name="PIN0", bit_offset=0, bit_width=1),),
        description="Port output data register",
    )


def gpio_peripheral(name, base, reset_value=None):
    return ParsedPeripheral(
        name=name,
        base_address=base,
        registers=(odr_register(reset_value),),
        description="General purpose I/O",
    )


@pytest.fixture
def gpio_device():
    """
    Two physically distinct GPIO ports with the same single-register layout.
    """
    return ParsedDevice(
        name="STM32F103",
        peripherals=(
            gpio_peripheral("GPIOA", GPIOA_BASE, reset_value=0x0000),
            gpio_peripheral("GPIOB", GPIOB_BASE, reset_value=0x00FF),
        ),
    )


@pytest.fixture
def mixed_device():
    """
    A device with two GPIO ports, a timer with a register gap and mixed
    access kinds, and a debug block.
    """
    timer = ParsedPeripheral(
        name="TIM2",
        base_address=0x40000000,
        description="General purpose timer",
        registers=(
            ParsedRegister(
                name="CR1",
                address_offset=0x00,
                size=16,
                reset_value=0x0001,
                fields=(
                    ParsedField(name="CEN", bit_offset=0, bit_width=1),
                    ParsedField(name="CKD", bit_offset=8, bit_width=2),
                ),
            ),
            ParsedRegister(
                name="SR",
                address_offset=0x10,
                size=16,
                access="read-only",
            ),
            ParsedRegister(
                name="EGR",
                address_offset=0x14,
                size=16,
                access="write-only",
                fields=(ParsedField(name="UG", bit_offset=0, bit_width=1),),
            ),
            ParsedRegister(name="CNT", address_offset=0x24, reset_value=0xFFFF),
        ),
    )
    debug = ParsedPeripheral(
        name="DBGMCU",
        base_address=0xE0042000,
        registers=(ParsedRegister(name="IDCODE", address_offset=0, access="read-only"),),
    )
    return ParsedDevice(
        name="STM32F103",
        peripherals=(
            gpio_peripheral("GPIOA", GPIOA_BASE),
            timer,
            gpio_peripheral("GPIOB", GPIOB_BASE),
            debug,
        ),
        default_size=32,
    )


@pytest.fixture
def gpio_description_dict():
    """
    Fixture providing the GPIOA/GPIOB example as a YAML description dict.
    """
    return {
        "name": "STM32F103",
        "size": 32,
        "peripherals": [
            {
                "name": "GPIOA",
                "base_address": GPIOA_BASE,
                "description": "General purpose I/O",
                "registers": [
                    {
                        "name": "ODR",
                        "offset": 0x0C,
                        "access": "read-write",
                        "reset_value": 0,
                        "fields": [{"name": "PIN0", "offset": 0, "width": 1}],
                    }
                ],
            },
            {"name": "GPIOB", "derived_from": "GPIOA", "base_address": GPIOB_BASE},
        ],
    }


@pytest.fixture
def temp_description_yaml_file(temp_yaml_file, gpio_description_dict):
    """
    Fixture that writes the GPIO description to a temporary YAML file.

    Yields:
        Path: Path to the temporary YAML file
    """
    with open(temp_yaml_file, "w", encoding="utf-8") as f:
        yaml.dump(gpio_description_dict, f)

    yield temp_yaml_file


def pytest_configure(config):
    """
    Hook for initial pytest configuration.

    Used to add custom markers and configuration.
    """
    config.addinivalue_line(
        "markers",
        "integration: marks tests that write generated trees to disk",
    )
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
