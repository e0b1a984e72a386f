"""Executable model of the emitted single-owner protocol.

Mirrors, operation for operation, what the instance emitter generates for
each peripheral instance, so the ownership rules can be exercised from
Python:

- take():    check-and-set inside the critical section
- release(): clear inside the critical section; a handle that was not
             taken, or a handle of another instance, is fatal
- steal():   set unconditionally, return the handle
- conjure(): return the handle, flag untouched

The generated code guards the check-and-set with the target's
interrupt-free critical section; here a re-entrant lock plays that part.

THREAD SAFETY: take() and release() are thread-safe. steal() and
conjure() are deliberately unguarded, like their generated counterparts.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from ralgen.core.exceptions import OwnershipError
from ralgen.core.types import PeripheralInstance


@dataclass(frozen=True)
class Handle:
    """Stand-in for the generated Instance: just the bound address."""

    addr: int


class InstanceGuard:
    """Ownership flag for one peripheral instance."""

    def __init__(self, name: str, base_address: int):
        self.name = name
        self._instance = Handle(addr=base_address)
        self._taken = False
        self._critical_section = threading.RLock()

    @classmethod
    def for_instance(cls, instance: PeripheralInstance) -> InstanceGuard:
        return cls(instance.name, instance.base_address)

    @property
    def taken(self) -> bool:
        return self._taken

    def take(self) -> Optional[Handle]:
        with self._critical_section:
            if self._taken:
                return None
            self._taken = True
            return self._instance

    def release(self, handle: Handle) -> None:
        with self._critical_section:
            if self._taken and handle.addr == self._instance.addr:
                self._taken = False
            else:
                raise OwnershipError(self.name, "Released a peripheral which was not taken")

    def steal(self) -> Handle:
        self._taken = True
        return self._instance

    def conjure(self) -> Handle:
        return self._instance
