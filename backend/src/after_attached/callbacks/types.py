"""Core types for the attachment callback system.

Defines the data structures shared by the registry, invoker and dispatcher:
- Phase: the four attachment lifecycle points
- NamedMethod / Closure: the two forms a registered callback can take
- RegistryTable: immutable per-class table of registered callbacks
- DispatchState: per-attachment record of which phases already fired
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Union


class AfterAttachedError(Exception):
    """Base class for errors raised by after_attached."""


class ConfigurationError(AfterAttachedError, ValueError):
    """Raised when a callback registration is malformed.

    Raised synchronously at class-definition time. Not recoverable at
    runtime; the registering code has to be fixed.
    """


class Phase(Enum):
    """Attachment lifecycle point a callback is bound to.

    BEFORE_ATTACHED: before the attachment row is persisted
    AFTER_ATTACHED: after the creating transaction commits
    BEFORE_DETACHED: before the attachment row is removed
    AFTER_DETACHED: after the removing transaction commits
    """

    BEFORE_ATTACHED = "before_attached"
    AFTER_ATTACHED = "after_attached"
    BEFORE_DETACHED = "before_detached"
    AFTER_DETACHED = "after_detached"


@dataclass(frozen=True)
class NamedMethod:
    """Callback referring to a method on the record by name.

    The method is looked up on the record when the callback runs, so a
    subclass overriding it gets its own implementation called.
    """

    name: str


@dataclass(frozen=True)
class Closure:
    """Callback captured as a callable at registration time.

    Called as ``fn(record, attachment)``.
    """

    fn: Callable[[Any, Any], Any]


CallbackSpec = Union[NamedMethod, Closure]

_EMPTY: tuple[CallbackSpec, ...] = ()


def _freeze(by_name: Mapping[str, tuple[CallbackSpec, ...]]) -> Mapping[str, tuple[CallbackSpec, ...]]:
    return MappingProxyType(dict(by_name))


@dataclass(frozen=True)
class RegistryTable:
    """Immutable mapping of Phase -> attachment name -> ordered callbacks.

    Writes never touch an existing table; ``with_callback`` builds a new
    one that shares the untouched tuples with its source.
    """

    entries: Mapping[Phase, Mapping[str, tuple[CallbackSpec, ...]]] = field(
        default_factory=lambda: MappingProxyType(
            {phase: _freeze({}) for phase in Phase}
        )
    )

    def callbacks_for(self, phase: Phase, name: str) -> tuple[CallbackSpec, ...]:
        """Return the callbacks for (phase, name), empty if none."""
        return self.entries[phase].get(name, _EMPTY)

    def with_callback(
        self, phase: Phase, name: str, spec: CallbackSpec
    ) -> RegistryTable:
        """Return a new table with ``spec`` appended at (phase, name)."""
        by_name = dict(self.entries[phase])
        by_name[name] = by_name.get(name, _EMPTY) + (spec,)

        entries = dict(self.entries)
        entries[phase] = _freeze(by_name)
        return RegistryTable(entries=MappingProxyType(entries))


@dataclass
class DispatchState:
    """Phases already dispatched for a single attachment instance.

    The host framework may call the same lifecycle hook more than once for
    one logical event; only the first call per phase is allowed through.
    """

    fired: set[Phase] = field(default_factory=set)

    def claim(self, phase: Phase) -> bool:
        """Mark ``phase`` as fired. Returns False if it already was."""
        if phase in self.fired:
            return False
        self.fired.add(phase)
        return True
