from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, TypeVar, Union, cast

from ._cells import CellState, SingletonCell
from ._errors import FactoryNotFoundError
from ._factory import Factory
from ._graph import build_index, validate
from ._keys import Key, KeyKind


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from ._factory import Scope
    from ._keys import SelectorKey

    T = TypeVar("T")

    Entry = Union["Module", Factory[Any]]


class Module:
    """Validated, immutable set of factories.

    - build with ``Module.from_entries`` (modules and factories, last one wins)
    - resolve with ``await module.get(key)``
    - singletons are constructed once per module, transients on every call
    - ``dispose`` runs disposer hooks, optionally filtered by scope.
    """

    def __init__(self, factories: Iterable[Factory[Any]], *, _from_entries: bool = False) -> None:
        if not _from_entries:
            msg = "Module instances must be created via Module.from_entries()"
            raise RuntimeError(msg)

        self._factories = tuple(factories)
        validate(self._factories)

        self._index = build_index(self._factories)
        self._cells: dict[Factory[Any], SingletonCell] = {}

    @classmethod
    def from_entries(cls, entries: Iterable[Entry]) -> Module:
        """Flatten modules and factories into a new validated module.

        When several factories provide the same key the last one survives,
        which is how defaults get overridden (e.g. by test doubles).
        Raises ``ModuleInitError`` on cycles or missing dependencies.
        """
        by_key: dict[Key[Any], Factory[Any]] = {}
        for entry in entries:
            factories = entry.factories if isinstance(entry, Module) else (entry,)
            for factory in factories:
                if factory.provides in by_key:
                    logger.debug("Factory for %s overridden", factory.provides.label)
                by_key[factory.provides] = factory

        module = cls(by_key.values(), _from_entries=True)
        logger.debug("Module built with %d factories", len(module))
        return module

    @property
    def factories(self) -> tuple[Factory[Any], ...]:
        return self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __repr__(self) -> str:
        return f"<Module factories={len(self)}>"

    async def get(self, key: Key[T]) -> T:
        """Resolve ``key`` to an instance.

        Dependencies are resolved concurrently, then the factory initializer
        is called with them in declaration order.
        Raises ``FactoryNotFoundError`` if no factory provides ``key``.
        """
        factory = self._index.get(key)
        if factory is None:
            raise FactoryNotFoundError(key)

        if not factory.is_singleton:
            return await self._construct(factory)

        return await self._get_singleton(factory)

    async def get_or_none(self, key: Key[T]) -> T | None:
        """Like ``get`` but returns None when no factory provides ``key``.

        Only the lookup of ``key`` itself is downgraded; errors raised while
        constructing it, ``FactoryNotFoundError`` included, propagate.
        """
        if key not in self._index:
            return None
        return await self.get(key)

    def cell_state(self, key: Key[Any]) -> CellState | None:
        """State of the singleton cache for ``key``; None for transient or unknown keys."""
        factory = self._index.get(key)
        if factory is None or not factory.is_singleton:
            return None
        cell = self._cells.get(factory)
        return cell.state if cell else CellState.UNINITIALIZED

    async def _get_singleton(self, factory: Factory[T]) -> T:
        cell = self._cells.get(factory)
        if cell is None:
            cell = self._cells[factory] = SingletonCell(factory.provides.label)

        if cell.state is CellState.READY:
            return cell.value

        if cell.state is not CellState.IN_FLIGHT:
            logger.debug("Constructing singleton %s", factory.provides.label)
            # the cell holds the pending task before the first await, so
            # concurrent callers join it instead of starting another one
            cell.begin(asyncio.ensure_future(self._construct(factory)))

        return await asyncio.shield(cast("asyncio.Future[T]", cell.task))

    async def _construct(self, factory: Factory[T]) -> T:
        dependencies = await asyncio.gather(*(self._resolve_dependency(key) for key in factory.depends_on))

        instance = factory.initialize(*dependencies)
        if inspect.isawaitable(instance):
            instance = await instance
        return instance

    async def _resolve_dependency(self, key: Key[Any]) -> Any:
        if key.kind is KeyKind.SELECTOR:
            return Selector(self, key)  # type: ignore[arg-type]
        return await self.get(key)

    def _select(self, scope: Scope | None) -> list[Factory[Any]]:
        if scope is None:
            return list(self._factories)
        return [f for f in self._factories if f.scope is scope]

    def _forget(self, factory: Factory[Any]) -> None:
        cell = self._cells.get(factory)
        if cell is not None:
            cell.reset()

    def dispose(self, scope: Scope | None = None) -> None:
        """Run disposer hooks for factories in ``scope`` (all factories if None).

        Singleton caches of the selected factories are cleared, so a later
        ``get`` constructs a new instance. Asynchronous disposers need
        ``dispose_async``.
        """
        factories = self._select(scope)
        for factory in factories:
            if factory.dispose is not None and inspect.iscoroutinefunction(factory.dispose):
                msg = f"Disposer for {factory.provides.label} is asynchronous; use `await module.dispose_async()`."
                raise TypeError(msg)

        for factory in factories:
            if factory.dispose is not None:
                result = factory.dispose()
                if inspect.isawaitable(result):
                    # cell is kept: the instance was not cleaned up
                    if inspect.iscoroutine(result):
                        result.close()
                    msg = f"Disposer for {factory.provides.label} returned an awaitable; use `await module.dispose_async()`."
                    raise TypeError(msg)
            self._forget(factory)

        logger.debug("Disposed %s", "all factories" if scope is None else scope)

    async def dispose_async(self, scope: Scope | None = None) -> None:
        """Like ``dispose`` but awaits disposers that return awaitables, one at a time."""
        for factory in self._select(scope):
            if factory.dispose is not None:
                result = factory.dispose()
                if inspect.isawaitable(result):
                    await result
            self._forget(factory)

        logger.debug("Disposed %s", "all factories" if scope is None else scope)


class Selector:
    """Handle over the members of a ``SelectorKey``.

    Nothing is resolved until ``get`` is called; each member resolves exactly
    as ``module.get(member)`` would.
    """

    __slots__ = ("_key", "_module")

    def __init__(self, module: Module, key: SelectorKey[T]) -> None:
        self._module = module
        self._key = key

    @property
    def key(self) -> SelectorKey[Any]:
        return self._key

    @property
    def keys(self) -> tuple[Key[Any], ...]:
        return self._key.members()

    def __iter__(self) -> Iterator[Key[Any]]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __repr__(self) -> str:
        return f"<Selector {self._key.label}>"

    def _check_member(self, key: Key[Any]) -> None:
        if key not in self.keys:
            msg = f"{key.label} is not a member of {self._key.label}"
            raise ValueError(msg)

    async def get(self, key: Key[T]) -> T:
        self._check_member(key)
        return await self._module.get(key)

    async def get_or_none(self, key: Key[T]) -> T | None:
        self._check_member(key)
        return await self._module.get_or_none(key)
