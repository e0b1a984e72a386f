from dataclasses import replace
from pathlib import Path, PurePosixPath

import pytest

from ralgen.core.convert import build
from ralgen.core.exceptions import DescriptionError, InconsistentFieldError, OutputError
from ralgen.generator import (
    Artifact,
    generate,
    generate_from_file,
    render,
    write_artifacts,
)
from ralgen.interfaces.description import (
    ParsedDevice,
    ParsedField,
    ParsedPeripheral,
    ParsedRegister,
)
from ralgen.utils.config_loader import GeneratorConfig


def _tree(root: Path) -> dict[str, str]:
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


class TestRender:
    def test_artifact_layout(self, mixed_device):
        result = render(build(mixed_device), GeneratorConfig())

        assert [str(a.path) for a in result.artifacts] == [
            "mod.rs",
            "peripherals/mod.rs",
            "peripherals/gpioa.rs",
            "peripherals/tim2.rs",
            "peripherals/dbgmcu.rs",
            "instances/mod.rs",
            "instances/gpioa.rs",
            "instances/tim2.rs",
            "instances/gpiob.rs",
            "instances/dbgmcu.rs",
            "metadata.rs",
        ]

    def test_name_lists_follow_emission_order(self, mixed_device):
        result = render(build(mixed_device), GeneratorConfig())

        assert result.peripheral_modules == ("gpioa", "tim2", "dbgmcu")
        assert result.instance_modules == ("gpioa", "tim2", "gpiob", "dbgmcu")
        assert result.instance_names == ("GPIOA", "TIM2", "GPIOB", "DBGMCU")

    def test_indexes(self, mixed_device):
        result = render(build(mixed_device), GeneratorConfig())

        assert result.artifact("peripherals/mod.rs").text == (
            "pub mod gpioa;\npub mod tim2;\npub mod dbgmcu;\n"
        )
        assert "pub use self::instances::gpiob;" in result.artifact("mod.rs").text

    def test_render_is_deterministic(self, mixed_device):
        config = GeneratorConfig()
        assert render(build(mixed_device), config) == render(build(mixed_device), config)

    def test_parallel_render_matches_sequential(self, mixed_device):
        model = build(mixed_device)
        sequential = render(model, GeneratorConfig())
        parallel = render(model, GeneratorConfig().with_jobs(4))

        assert parallel == sequential

    def test_unknown_artifact_lookup(self, gpio_device):
        result = render(build(gpio_device), GeneratorConfig())
        with pytest.raises(KeyError):
            result.artifact("peripherals/nope.rs")


class TestIgnoreList:
    def test_ignored_instance_is_absent_everywhere(self, mixed_device):
        config = GeneratorConfig().with_ignore(["DBGMCU"])
        result = render(build(mixed_device, config), config)

        paths = {str(a.path) for a in result.artifacts}
        assert "peripherals/dbgmcu.rs" not in paths
        assert "instances/dbgmcu.rs" not in paths
        assert "dbgmcu" not in result.peripheral_modules
        assert "dbgmcu" not in result.instance_modules
        assert "DBGMCU" not in result.instance_names
        assert "dbgmcu" not in result.artifact("metadata.rs").text.lower()
        assert "dbgmcu" not in result.artifact("mod.rs").text

    def test_ignoring_one_instance_keeps_shared_shape(self, gpio_device):
        config = GeneratorConfig().with_ignore(["GPIOB"])
        result = render(build(gpio_device), config)

        assert result.peripheral_modules == ("gpioa",)
        assert result.instance_names == ("GPIOA",)

    def test_ignoring_first_instance_keeps_the_others(self, gpio_device):
        config = GeneratorConfig().with_ignore(["GPIOA"])
        result = render(build(gpio_device, config), config)

        assert result.peripheral_modules == ("gpiob",)
        assert result.instance_names == ("GPIOB",)
        assert "pub use super::super::peripherals::gpiob::Instance;" in (
            result.artifact("instances/gpiob.rs").text
        )

    def test_shape_ignored_after_build_drops_its_instances(self, gpio_device):
        # The model was built without the ignore list, so GPIOA still names
        # the shared shape and GPIOB has no module to re-export from.
        config = GeneratorConfig().with_ignore(["GPIOA"])
        result = render(build(gpio_device), config)

        assert result.peripheral_modules == ()
        assert result.instance_names == ()


@pytest.mark.integration
class TestWrite:
    def test_generate_writes_tree(self, gpio_device, tmp_path):
        result = generate(gpio_device, tmp_path)

        assert result.device_dir == tmp_path / "stm32f103"
        assert sorted(_tree(result.device_dir)) == [
            "instances/gpioa.rs",
            "instances/gpiob.rs",
            "instances/mod.rs",
            "metadata.rs",
            "mod.rs",
            "peripherals/gpioa.rs",
            "peripherals/mod.rs",
        ]

    def test_regeneration_is_byte_identical(self, mixed_device, tmp_path):
        first = _tree(generate(mixed_device, tmp_path / "a").device_dir)
        second = _tree(generate(mixed_device, tmp_path / "b").device_dir)

        assert first == second

    def test_existing_device_dir_is_replaced(self, gpio_device, tmp_path):
        stale = tmp_path / "stm32f103" / "peripherals" / "stale.rs"
        stale.parent.mkdir(parents=True)
        stale.write_text("// old", encoding="utf-8")

        generate(gpio_device, tmp_path)

        assert not stale.exists()
        assert (tmp_path / "stm32f103" / "peripherals" / "gpioa.rs").exists()

    def test_input_error_leaves_existing_output_untouched(self, tmp_path):
        previous = tmp_path / "dev" / "mod.rs"
        previous.parent.mkdir()
        previous.write_text("// previous run", encoding="utf-8")

        bad = ParsedDevice(
            name="DEV",
            peripherals=(
                ParsedPeripheral(
                    name="P",
                    base_address=0x1000,
                    registers=(
                        ParsedRegister(
                            name="R",
                            address_offset=0,
                            size=8,
                            fields=(ParsedField(name="F", bit_offset=7, bit_width=2),),
                        ),
                    ),
                ),
            ),
        )
        with pytest.raises(InconsistentFieldError):
            generate(bad, tmp_path)

        assert previous.read_text(encoding="utf-8") == "// previous run"

    def test_failed_write_keeps_previous_tree(self, gpio_device, tmp_path):
        generate(gpio_device, tmp_path)
        before = _tree(tmp_path / "stm32f103")

        result = render(build(gpio_device), GeneratorConfig())
        # "mod.rs" is written as a file, so it cannot also be a directory.
        clash = Artifact(PurePosixPath("mod.rs/extra.rs"), "// unreachable\n")
        broken = replace(result, artifacts=result.artifacts + (clash,))

        with pytest.raises(OutputError) as exc_info:
            write_artifacts(broken, tmp_path)

        assert exc_info.value.operation == "write"
        assert _tree(tmp_path / "stm32f103") == before
        assert [p.name for p in tmp_path.iterdir()] == ["stm32f103"]

    def test_unwritable_output_raises_output_error(self, gpio_device, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("", encoding="utf-8")
        result = render(build(gpio_device), GeneratorConfig())

        with pytest.raises(OutputError) as exc_info:
            write_artifacts(result, blocker)

        assert str(blocker) in exc_info.value.path


class TestEndToEnd:
    def test_gpio_example(self, gpio_device, tmp_path):
        result = generate(gpio_device, tmp_path)
        device_dir = result.device_dir

        shape = (device_dir / "peripherals" / "gpioa.rs").read_text(encoding="utf-8")
        assert "pub ODR: RWRegister<u32>," in shape
        assert "pub const offset: u32 = 0;" in shape
        assert "pub const mask: u32 = 0x1 << offset;" in shape

        for module, address, reset in (
            ("gpioa", "0x40010800", "0x0"),
            ("gpiob", "0x40010c00", "0xff"),
        ):
            text = (device_dir / "instances" / f"{module}.rs").read_text(encoding="utf-8")
            assert f"addr: {address}," in text
            assert f"        ODR: {reset},\n" in text
            for fn in ("take()", "release(inst: Instance)", "steal()", "conjure()"):
                assert fn in text

        metadata = (device_dir / "metadata.rs").read_text(encoding="utf-8")
        assert 'PERIPHERAL_MODULES: &[&str] = &[\n    "gpioa",\n];' in metadata
        assert 'INSTANCE_NAMES: &[&str] = &[\n    "GPIOA",\n    "GPIOB",\n];' in metadata

    def test_generate_from_yaml_file(self, temp_description_yaml_file, tmp_path):
        result = generate_from_file(temp_description_yaml_file, tmp_path)

        assert result.peripheral_modules == ("gpioa",)
        assert result.instance_modules == ("gpioa", "gpiob")
        assert result.artifact("instances/gpiob.rs").path == PurePosixPath(
            "instances/gpiob.rs"
        )

    def test_generate_from_unknown_suffix(self, tmp_path):
        path = tmp_path / "device.json"
        path.write_text("{}", encoding="utf-8")

        with pytest.raises(DescriptionError, match="unknown description format"):
            generate_from_file(path, tmp_path / "out")

    def test_generate_from_missing_file(self, tmp_path):
        with pytest.raises(DescriptionError, match="cannot read"):
            generate_from_file(tmp_path / "missing.yaml", tmp_path / "out")
