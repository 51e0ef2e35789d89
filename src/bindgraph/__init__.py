"""Asynchronous dependency-injection modules.

This package builds validated, immutable modules out of service factories and
resolves services asynchronously, constructing each singleton at most once.

Exports:
- `Key` / `SelectorKey`: identity tokens naming services; a selector key groups
  several keys of one type and resolves to a `Selector` handle.
- `Factory`: provided key, dependency keys, initializer and optional disposer;
  built with `Factory.transient` or `Factory.singleton`.
- `Module`: created with `Module.from_entries`, which rejects dependency cycles
  and missing dependencies up front.
- `Scope`: tag used to dispose a group of factories.
"""

from ._cells import CellState
from ._errors import CircularDependencyError, FactoryNotFoundError, MissingDependencyError, ModuleInitError
from ._factory import Factory, Lifetime, Scope
from ._keys import Key, KeyKind, SelectorKey
from ._module import Module, Selector


__all__ = [
    "CellState",
    "CircularDependencyError",
    "Factory",
    "FactoryNotFoundError",
    "Key",
    "KeyKind",
    "Lifetime",
    "MissingDependencyError",
    "Module",
    "ModuleInitError",
    "Scope",
    "Selector",
    "SelectorKey",
]
