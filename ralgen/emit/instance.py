"""Instance emitter.

One artifact per PeripheralInstance. The shape's types are re-exported,
not duplicated; the artifact adds the instance address, its reset table
and the single-owner protocol:

- take():    inside the critical section, hand out the Instance once
- release(): inside the critical section, give it back; panics on a
             handle that was not taken or belongs to another instance
- steal():   mark as taken and hand out unconditionally (unsafe)
- conjure(): hand out without touching the flag (unsafe)

The flag check-and-set must stay inside `<arch_crate>::interrupt::free`:
an interrupt handler preempting take() between the check and the set
could otherwise obtain a second live Instance.
"""

from __future__ import annotations

from ralgen.core.types import PeripheralInstance
from ralgen.emit.text import FILE_HEADER, doc_comment
from ralgen.utils.config_loader import GeneratorConfig
from ralgen.utils.naming import identifier

_ACCESS_TEMPLATE = """
/// Access functions for the {name} peripheral instance
pub mod {name} {{
    use super::ResetValues;
    use super::Instance;

    const INSTANCE: Instance = Instance {{
        addr: {address:#x},
        _marker: ::core::marker::PhantomData,
    }};

    /// Reset values for each field in {name}
    pub const reset: ResetValues = ResetValues {{
{reset_values}    }};

    #[allow(renamed_and_removed_lints)]
    #[allow(private_no_mangle_statics)]
    #[no_mangle]
    static mut {name}_TAKEN: bool = false;

    /// Safe access to {name}
    ///
    /// This function returns `Some(Instance)` if this instance is not
    /// currently taken, and `None` if it is. This ensures that if you
    /// do get `Some(Instance)`, you are ensured unique access to
    /// the peripheral and there cannot be data races (unless other
    /// code uses `unsafe`, of course). You can then pass the
    /// `Instance` around to other functions as required. When you're
    /// done with it, you can call `release(instance)` to return it.
    ///
    /// `Instance` itself dereferences to a `RegisterBlock`, which
    /// provides access to the peripheral's registers.
    #[inline]
    pub fn take() -> Option<Instance> {{
        {arch_crate}::interrupt::free(|_| unsafe {{
            if {name}_TAKEN {{
                None
            }} else {{
                {name}_TAKEN = true;
                Some(INSTANCE)
            }}
        }})
    }}

    /// Release exclusive access to {name}
    ///
    /// This function allows you to return an `Instance` so that it
    /// is available to `take()` again. This function will panic if
    /// you return a different `Instance` or if this instance is not
    /// already taken.
    #[inline]
    pub fn release(inst: Instance) {{
        {arch_crate}::interrupt::free(|_| unsafe {{
            if {name}_TAKEN && inst.addr == INSTANCE.addr {{
                {name}_TAKEN = false;
            }} else {{
                panic!("Released a peripheral which was not taken");
            }}
        }});
    }}

    /// Unsafely steal {name}
    ///
    /// This function is similar to take() but forcibly takes the
    /// Instance, marking it as taken regardless of its previous
    /// state.
    #[allow(clippy::missing_safety_doc)]
    #[inline]
    pub unsafe fn steal() -> Instance {{
        {name}_TAKEN = true;
        INSTANCE
    }}

    /// Unsafely obtains an instance of {name}
    ///
    /// This will not check if `take()` or `steal()` have already been called
    /// before. It is the caller's responsibility to use the returned instance
    /// in a safe way that does not conflict with other instances.
    #[allow(clippy::missing_safety_doc)]
    #[inline]
    pub unsafe fn conjure() -> Instance {{
        INSTANCE
    }}
}}

/// Raw pointer to {name}
///
/// Dereferencing this is unsafe because you are not ensured unique
/// access to the peripheral, so you may encounter data races with
/// other users of this peripheral. It is up to you to ensure you
/// will not cause data races.
///
/// This constant is provided for ease of use in unsafe code: you can
/// simply call for example `write_reg!({module}, {name}, REG, 1);`.
pub const {name}: *const RegisterBlock = {address:#x} as *const _;
"""


def emit_instance(instance: PeripheralInstance, config: GeneratorConfig) -> str:
    """Render the address-bound accessor module for one instance."""
    shape_path = f"super::super::peripherals::{instance.peripheral_module}"
    out = [
        FILE_HEADER,
        doc_comment("//!", instance.description),
        "\n",
        f"pub use {shape_path}::Instance;\n",
        f"pub use {shape_path}::{{RegisterBlock, ResetValues}};\n",
    ]

    # Reset entries follow shape order so the table matches RegisterBlock.
    registers = [value.register_name for value in instance.reset_values]
    if registers:
        out.append(f"pub use {shape_path}::{{{', '.join(registers)}}};\n")

    reset_values = "".join(
        f"        {value.register_name}: {value.value:#x},\n"
        for value in instance.reset_values
    )
    out.append(
        _ACCESS_TEMPLATE.format(
            name=identifier(instance.name),
            module=instance.peripheral_module,
            address=instance.base_address,
            reset_values=reset_values,
            arch_crate=config.arch_crate,
        )
    )
    return "".join(out)
