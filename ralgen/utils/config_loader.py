"""Helpers for loading and validating generator configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml  # type: ignore[import-untyped]

from ralgen.core.exceptions import ConfigurationError

DEFAULT_ARCH_CRATE = "crate::arch"

_RUST_PATH = re.compile(r"^(::)?[A-Za-z_][A-Za-z0-9_]*(::[A-Za-z_][A-Za-z0-9_]*)*$")

_KNOWN_KEYS = frozenset({"address_size", "ignore", "arch_crate", "jobs"})


class AddressSize(Enum):
    """Width of a device address, in bits."""

    U32 = 32
    U64 = 64

    @property
    def bits(self) -> int:
        return self.value

    @property
    def type_name(self) -> str:
        return f"u{self.value}"

    def fits(self, address: int) -> bool:
        return 0 <= address < (1 << self.value)

    @classmethod
    def parse(cls, raw: Union[int, str, "AddressSize"]) -> "AddressSize":
        """Accept 32, 64, "32", "64", "u32" or "u64"."""
        if isinstance(raw, AddressSize):
            return raw
        if isinstance(raw, bool):
            raise ConfigurationError("address_size", f"expected 32 or 64, got {raw!r}")
        text = str(raw).strip().lower()
        if text.startswith("u"):
            text = text[1:]
        for size in cls:
            if text == str(size.value):
                return size
        raise ConfigurationError("address_size", f"expected 32 or 64, got {raw!r}")


@dataclass(frozen=True)
class GeneratorConfig:
    """Settings for one generation run. Read-only once built."""

    address_size: AddressSize = AddressSize.U32
    ignore: frozenset[str] = field(default_factory=frozenset)
    arch_crate: str = DEFAULT_ARCH_CRATE
    jobs: int = 1

    def with_address_size(self, size: Union[int, str, AddressSize]) -> GeneratorConfig:
        return replace(self, address_size=AddressSize.parse(size))

    def with_ignore(self, names: Iterable[str]) -> GeneratorConfig:
        return replace(self, ignore=frozenset(names))

    def with_arch_crate(self, path: str) -> GeneratorConfig:
        _validate_arch_crate(path)
        return replace(self, arch_crate=path)

    def with_jobs(self, jobs: int) -> GeneratorConfig:
        _validate_jobs(jobs)
        return replace(self, jobs=jobs)

    def is_ignored(self, name: str) -> bool:
        return name in self.ignore


def _validate_arch_crate(path: Any) -> None:
    if not isinstance(path, str) or not _RUST_PATH.match(path):
        raise ConfigurationError("arch_crate", f"not a valid module path: {path!r}")


def _validate_jobs(jobs: Any) -> None:
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
        raise ConfigurationError("jobs", f"must be a positive integer, got {jobs!r}")


def _load_yaml_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to parse config: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError("config file must contain a mapping")
    return raw


def _parse_generator_cfg_from_dict(raw: dict[str, Any]) -> GeneratorConfig:
    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")

    cfg = GeneratorConfig()

    if "address_size" in raw:
        cfg = cfg.with_address_size(raw["address_size"])

    if "ignore" in raw:
        ignore = raw["ignore"] or []
        if not isinstance(ignore, list) or not all(isinstance(n, str) for n in ignore):
            raise ConfigurationError("ignore", "must be a list of peripheral names")
        cfg = cfg.with_ignore(ignore)

    if "arch_crate" in raw:
        cfg = cfg.with_arch_crate(raw["arch_crate"])

    if "jobs" in raw:
        cfg = cfg.with_jobs(raw["jobs"])

    return cfg


def load_config(path: Optional[Union[str, Path]] = None) -> GeneratorConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Optional path to a YAML config. If None, defaults are returned.

    Returns:
        GeneratorConfig instance

    Raises:
        ConfigurationError: on parse or validation errors
    """
    if path is None:
        return GeneratorConfig()

    raw = _load_yaml_file(Path(path))
    return _parse_generator_cfg_from_dict(raw)
