"""Generation pipeline: build, render, write.

The run is strictly sequenced:
1. build the canonical model (all input errors surface here)
2. render every artifact in memory (shape/instance units are independent
   and may be rendered by a thread pool)
3. write a staging directory and swap it in for the device directory

Nothing touches the filesystem before step 3, and the previous tree is
only replaced once every file has been written.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, Sequence, TypeVar, Union

from ralgen.core.convert import build
from ralgen.core.exceptions import DescriptionError, OutputError
from ralgen.core.types import DeviceModel
from ralgen.emit import (
    emit_device_module,
    emit_instance,
    emit_metadata,
    emit_module_index,
    emit_peripheral,
)
from ralgen.interfaces.description import ParsedDevice
from ralgen.parsers import get_parser
from ralgen.utils.config_loader import GeneratorConfig
from ralgen.utils.naming import module_name

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Artifact:
    """One generated file, path relative to the device directory."""

    path: PurePosixPath
    text: str


@dataclass(frozen=True)
class GenerationResult:
    device_name: str
    artifacts: tuple[Artifact, ...]
    peripheral_modules: tuple[str, ...]
    instance_modules: tuple[str, ...]
    instance_names: tuple[str, ...]
    device_dir: Optional[Path] = None

    @property
    def device_module(self) -> str:
        return module_name(self.device_name)

    def artifact(self, path: str) -> Artifact:
        """Look up an artifact by its relative path (e.g. 'peripherals/gpioa.rs')."""
        wanted = PurePosixPath(path)
        for artifact in self.artifacts:
            if artifact.path == wanted:
                return artifact
        raise KeyError(path)


def _map(fn: Callable[[T], R], items: Sequence[T], jobs: int) -> list[R]:
    """Apply fn to items, preserving order; threaded when jobs > 1."""
    if jobs <= 1 or len(items) < 2:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(fn, items))


def render(model: DeviceModel, config: GeneratorConfig) -> GenerationResult:
    """Render all artifacts for model without touching the filesystem."""
    shapes = []
    for shape in model.shapes:
        if config.is_ignored(shape.name):
            logger.info("Skipping peripheral %s (ignored)", shape.name)
            continue
        shapes.append(shape)
    emitted = {shape.module_name for shape in shapes}

    instances = []
    for instance in model.instances:
        if config.is_ignored(instance.name):
            logger.info("Skipping instance %s (ignored)", instance.name)
            continue
        if instance.peripheral_module not in emitted:
            logger.warning(
                "Skipping instance %s: its peripheral %s is ignored",
                instance.name,
                instance.shape.name,
            )
            continue
        instances.append(instance)

    shape_texts = _map(lambda s: emit_peripheral(s, config), shapes, config.jobs)
    instance_texts = _map(lambda i: emit_instance(i, config), instances, config.jobs)

    peripheral_modules = tuple(shape.module_name for shape in shapes)
    instance_modules = tuple(instance.module_name for instance in instances)
    instance_names = tuple(instance.name for instance in instances)

    artifacts = [Artifact(PurePosixPath("mod.rs"), emit_device_module(instance_modules))]
    artifacts.append(
        Artifact(PurePosixPath("peripherals/mod.rs"), emit_module_index(peripheral_modules))
    )
    artifacts.extend(
        Artifact(PurePosixPath("peripherals", f"{shape.module_name}.rs"), text)
        for shape, text in zip(shapes, shape_texts)
    )
    artifacts.append(
        Artifact(PurePosixPath("instances/mod.rs"), emit_module_index(instance_modules))
    )
    artifacts.extend(
        Artifact(PurePosixPath("instances", f"{instance.module_name}.rs"), text)
        for instance, text in zip(instances, instance_texts)
    )
    artifacts.append(
        Artifact(
            PurePosixPath("metadata.rs"),
            emit_metadata(peripheral_modules, instance_modules, instance_names),
        )
    )

    return GenerationResult(
        device_name=model.name,
        artifacts=tuple(artifacts),
        peripheral_modules=peripheral_modules,
        instance_modules=instance_modules,
        instance_names=instance_names,
    )


def write_artifacts(result: GenerationResult, output_dir: Union[str, Path]) -> Path:
    """Replace <output_dir>/<device> with the rendered artifacts.

    Raises:
        OutputError: If any directory or file operation fails
    """
    output_dir = Path(output_dir)
    device_dir = output_dir / result.device_module

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{device_dir.name}.", dir=output_dir))
    except OSError as exc:
        raise OutputError(str(output_dir), "create", exc.strerror or str(exc)) from exc

    # The previous tree stays in place until every new file is written.
    try:
        for artifact in result.artifacts:
            target = staging.joinpath(*artifact.path.parts)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                with target.open("w", encoding="utf-8", newline="\n") as fh:
                    fh.write(artifact.text)
            except OSError as exc:
                raise OutputError(str(target), "write", exc.strerror or str(exc)) from exc
        _swap_in(staging, device_dir)
    except OutputError:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    logger.info("Wrote %d files to %s", len(result.artifacts), device_dir)
    return device_dir


def _swap_in(staging: Path, device_dir: Path) -> None:
    """Replace device_dir with staging using renames."""
    retired = None
    if device_dir.is_dir():
        retired = staging.with_name(staging.name + ".old")
        try:
            device_dir.rename(retired)
        except OSError as exc:
            raise OutputError(str(device_dir), "replace", exc.strerror or str(exc)) from exc

    try:
        staging.rename(device_dir)
    except OSError as exc:
        if retired is not None:
            retired.rename(device_dir)
        raise OutputError(str(device_dir), "replace", exc.strerror or str(exc)) from exc

    if retired is not None:
        logger.debug("Removing previous %s", device_dir)
        shutil.rmtree(retired, ignore_errors=True)


def generate(
    device: ParsedDevice,
    output_dir: Union[str, Path],
    config: Optional[GeneratorConfig] = None,
) -> GenerationResult:
    """Build, render and write the register access layer for device."""
    config = config or GeneratorConfig()
    model = build(device, config)
    result = render(model, config)
    device_dir = write_artifacts(result, output_dir)
    return replace(result, device_dir=device_dir)


def generate_from_file(
    path: Union[str, Path],
    output_dir: Union[str, Path],
    config: Optional[GeneratorConfig] = None,
) -> GenerationResult:
    """Parse a description file (parser chosen by suffix) and generate."""
    path = Path(path)
    parser = get_parser(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DescriptionError(str(path), f"cannot read: {exc.strerror or exc}") from exc

    device = parser.parse(text, source=str(path))
    return generate(device, output_dir, config)
