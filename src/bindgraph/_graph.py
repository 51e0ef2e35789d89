"""Construction-time validation of a module's dependency graph.

Edges run from a factory's provided key to each of its dependencies; a
selector dependency contributes one edge per member key.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from ._errors import CircularDependencyError, MissingDependencyError


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence

    from ._factory import Factory
    from ._keys import Key

    FactoryIndex = Mapping[Key[Any], Factory[Any]]


class Colour(Enum):
    WHITE = 0  # unvisited
    GREY = 1  # on the current path
    BLACK = 2  # fully explored


def dependency_edges(factory: Factory[Any]) -> Iterator[Key[Any]]:
    """Yield the plain keys ``factory`` depends on, selectors expanded."""
    for dependency in factory.depends_on:
        yield from dependency.members()


def build_index(factories: Iterable[Factory[Any]]) -> dict[Key[Any], Factory[Any]]:
    return {factory.provides: factory for factory in factories}


def check_cycles(index: FactoryIndex) -> None:
    colours: dict[Key[Any], Colour] = {}
    for key in index:
        if colours.get(key, Colour.WHITE) is Colour.WHITE:
            walk(key, index, colours, [])


def walk(key: Key[Any], index: FactoryIndex, colours: dict[Key[Any], Colour], path: list[Key[Any]]) -> None:
    """Depth-first visit of ``key``.

    ``colours`` and ``path`` are the traversal context; ``path`` holds the
    keys currently on the stack, in discovery order.
    """
    colour = colours.get(key, Colour.WHITE)
    if colour is Colour.GREY:
        raise CircularDependencyError((*path[path.index(key) :], key))
    if colour is Colour.BLACK:
        return

    colours[key] = Colour.GREY
    path.append(key)

    for dependency in dependency_edges(index[key]):
        # unprovided keys are reported by check_missing
        if dependency in index:
            walk(dependency, index, colours, path)

    path.pop()
    colours[key] = Colour.BLACK


def find_missing(factory: Factory[Any], index: FactoryIndex) -> tuple[Key[Any], ...]:
    missing: dict[Key[Any], None] = {}
    for dependency in dependency_edges(factory):
        if dependency not in index:
            missing[dependency] = None
    return tuple(missing)


def check_missing(factories: Sequence[Factory[Any]], index: FactoryIndex) -> None:
    missing = {}
    for factory in factories:
        keys = find_missing(factory, index)
        if keys:
            missing[factory.provides] = keys

    if missing:
        raise MissingDependencyError(missing)


def validate(factories: Sequence[Factory[Any]]) -> None:
    index = build_index(factories)
    check_cycles(index)
    check_missing(factories, index)
