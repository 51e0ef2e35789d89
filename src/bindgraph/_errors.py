from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._keys import Key


class ModuleInitError(RuntimeError):
    """Raised by ``Module.from_entries`` when the factory graph is invalid."""


class CircularDependencyError(ModuleInitError):
    def __init__(self, cycle: tuple[Key[Any], ...]) -> None:
        self.cycle = cycle
        super().__init__(f"Circular dependency detected: {' -> '.join(k.label for k in cycle)}")


class MissingDependencyError(ModuleInitError):
    def __init__(self, missing: Mapping[Key[Any], tuple[Key[Any], ...]]) -> None:
        self.missing = dict(missing)
        blocks = [
            f"{provided.label} will fail because it depends on:\n"
            + "\n".join(f" -> {key.label}" for key in keys)
            for provided, keys in self.missing.items()
        ]
        super().__init__("\n".join(blocks))


class FactoryNotFoundError(LookupError):
    def __init__(self, key: Key[Any]) -> None:
        self.key = key
        super().__init__(f"Could not find a suitable factory for {key.label}")
