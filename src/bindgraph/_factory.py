from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from ._keys import Key, KeyKind


T = TypeVar("T")

Initializer = Callable[..., Union[T, Awaitable[T]]]
Disposer = Callable[[], Union[None, Awaitable[None]]]


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class Scope:
    """Opaque tag grouping factories for ``Module.dispose``. Compared by identity."""

    __slots__ = ("name",)

    def __init__(self, name: str = "") -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<Scope {self.name!r} at {id(self):#x}>"


@dataclass(frozen=True, eq=False)
class Factory(Generic[T]):
    """Binds a provided key to its dependencies and an (async) initializer.

    ``initialize`` receives the resolved dependencies positionally, in
    ``depends_on`` order; selector keys resolve to a ``Selector``.
    """

    provides: Key[T]
    depends_on: tuple[Key[Any], ...]
    initialize: Initializer[T]
    lifetime: Lifetime = Lifetime.TRANSIENT
    scope: Scope | None = None
    dispose: Disposer | None = None

    def __post_init__(self) -> None:
        if self.provides.kind is not KeyKind.PLAIN:
            msg = f"A factory cannot provide selector key {self.provides.label}; selectors are dependency-only."
            raise ValueError(msg)

        if not callable(self.initialize):
            msg = f"`initialize` for {self.provides.label} must be callable."
            raise TypeError(msg)

        if self.dispose is not None and not callable(self.dispose):
            msg = f"`dispose` for {self.provides.label} must be callable."
            raise TypeError(msg)

        # accept lists/generators, store an immutable sequence
        object.__setattr__(self, "depends_on", tuple(self.depends_on))

    @classmethod
    def transient(
        cls,
        *,
        provides: Key[T],
        initialize: Initializer[T],
        depends_on: Iterable[Key[Any]] = (),
        scope: Scope | None = None,
        dispose: Disposer | None = None,
    ) -> Factory[T]:
        """Factory whose initializer runs on every ``get``."""
        return cls(
            provides=provides,
            depends_on=tuple(depends_on),
            initialize=initialize,
            lifetime=Lifetime.TRANSIENT,
            scope=scope,
            dispose=dispose,
        )

    @classmethod
    def singleton(
        cls,
        *,
        provides: Key[T],
        initialize: Initializer[T],
        depends_on: Iterable[Key[Any]] = (),
        scope: Scope | None = None,
        dispose: Disposer | None = None,
    ) -> Factory[T]:
        """Factory whose initializer runs at most once per module.

        Example:
          Factory.singleton(provides=DB, depends_on=[Config], initialize=connect, dispose=close_pool)

        """
        return cls(
            provides=provides,
            depends_on=tuple(depends_on),
            initialize=initialize,
            lifetime=Lifetime.SINGLETON,
            scope=scope,
            dispose=dispose,
        )

    @property
    def is_singleton(self) -> bool:
        return self.lifetime is Lifetime.SINGLETON
