from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar


if TYPE_CHECKING:
    from collections.abc import Iterable

T = TypeVar("T")


class KeyKind(Enum):
    PLAIN = "plain"
    SELECTOR = "selector"


class Key(Generic[T]):
    """Identity token addressing a service that produces a ``T``.

    Two keys are equal only when they are the same object; ``label`` is for
    diagnostics and never takes part in lookups.
    """

    __slots__ = ("label",)

    kind = KeyKind.PLAIN

    def __init__(self, label: str) -> None:
        self.label = label

    def members(self) -> tuple[Key[T], ...]:
        """Keys this key stands for in the dependency graph."""
        return (self,)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.label!r} at {id(self):#x}>"

    def __str__(self) -> str:
        return self.label


class SelectorKey(Key[T]):
    """Dependency-only key over an ordered set of keys producing the same type.

    A factory depending on a selector key receives a ``Selector`` and fetches
    members on demand.
    """

    __slots__ = ("_members",)

    kind = KeyKind.SELECTOR

    def __init__(self, members: Iterable[Key[T]], label: str | None = None) -> None:
        members = tuple(members)
        if not members:
            msg = "A selector key needs at least one member key."
            raise ValueError(msg)

        for member in members:
            if member.kind is not KeyKind.PLAIN:
                msg = f"Selector members must be plain keys, got {member!r}"
                raise ValueError(msg)

        super().__init__(label or f"Selector[{', '.join(m.label for m in members)}]")
        self._members = members

    def members(self) -> tuple[Key[T], ...]:
        return self._members
