from ralgen.emit.metadata import emit_device_module, emit_metadata, emit_module_index


def test_metadata_tables_keep_order():
    text = emit_metadata(["gpioa", "tim2"], ["gpioa", "tim2", "gpiob"], ["GPIOA", "TIM2", "GPIOB"])

    assert text == (
        "pub const PERIPHERAL_MODULES: &[&str] = &[\n"
        '    "gpioa",\n'
        '    "tim2",\n'
        "];\n"
        "\n"
        "pub const INSTANCE_MODULES: &[&str] = &[\n"
        '    "gpioa",\n'
        '    "tim2",\n'
        '    "gpiob",\n'
        "];\n"
        "\n"
        "pub const INSTANCE_NAMES: &[&str] = &[\n"
        '    "GPIOA",\n'
        '    "TIM2",\n'
        '    "GPIOB",\n'
        "];\n"
    )


def test_empty_tables():
    text = emit_metadata([], [], [])

    assert "pub const PERIPHERAL_MODULES: &[&str] = &[\n];" in text
    assert "pub const INSTANCE_NAMES: &[&str] = &[\n];" in text


def test_instance_names_are_escaped():
    text = emit_metadata([], [], ['ODD"NAME\\'])

    assert '    "ODD\\"NAME\\\\",\n' in text


def test_module_index():
    assert emit_module_index(["gpioa", "tim2"]) == "pub mod gpioa;\npub mod tim2;\n"


def test_device_module_reexports_instances():
    text = emit_device_module(["gpioa", "gpiob"])

    assert "pub mod peripherals;" in text
    assert "pub(crate) mod instances;" in text
    assert "pub mod metadata;" in text
    assert text.endswith(
        "pub use self::instances::gpioa;\npub use self::instances::gpiob;\n"
    )
