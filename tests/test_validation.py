import unittest

import pytest

from bindgraph import (
    CircularDependencyError,
    Factory,
    Key,
    MissingDependencyError,
    Module,
    ModuleInitError,
    SelectorKey,
)


def _factory(provides, *depends_on):
    return Factory.transient(provides=provides, depends_on=depends_on, initialize=lambda *_: provides.label)


class TestCircularDependencies(unittest.TestCase):
    def setUp(self):
        self.k1 = Key("Key1")
        self.k2 = Key("Key2")
        self.k3 = Key("Key3")

    def test_self_dependency_is_a_cycle(self):
        with pytest.raises(CircularDependencyError, match="^Circular dependency detected: Key1 -> Key1$"):
            Module.from_entries([_factory(self.k1, self.k1)])

    def test_two_level_cycle(self):
        with pytest.raises(ModuleInitError) as exc:
            Module.from_entries([_factory(self.k1, self.k2), _factory(self.k2, self.k1)])

        assert str(exc.value) == "Circular dependency detected: Key1 -> Key2 -> Key1"
        assert exc.value.cycle == (self.k1, self.k2, self.k1)

    def test_three_level_cycle(self):
        factories = [_factory(self.k1, self.k2), _factory(self.k2, self.k3), _factory(self.k3, self.k1)]

        with pytest.raises(CircularDependencyError) as exc:
            Module.from_entries(factories)

        assert str(exc.value) == "Circular dependency detected: Key1 -> Key2 -> Key3 -> Key1"

    def test_cycle_through_selector_member(self):
        selector = SelectorKey([self.k2])

        with pytest.raises(CircularDependencyError) as exc:
            Module.from_entries([_factory(self.k1, selector), _factory(self.k2, self.k1)])

        assert str(exc.value) == "Circular dependency detected: Key1 -> Key2 -> Key1"

    def test_cycle_path_starts_at_repeated_key(self):
        # Key1 only leads into the Key2 <-> Key3 loop
        factories = [_factory(self.k1, self.k2), _factory(self.k2, self.k3), _factory(self.k3, self.k2)]

        with pytest.raises(CircularDependencyError) as exc:
            Module.from_entries(factories)

        assert exc.value.cycle == (self.k2, self.k3, self.k2)

    def test_shared_dependency_is_not_a_cycle(self):
        # diamond: Key1 -> (Key2, Key3) -> Key4
        k4 = Key("Key4")
        module = Module.from_entries(
            [_factory(self.k1, self.k2, self.k3), _factory(self.k2, k4), _factory(self.k3, k4), _factory(k4)]
        )

        assert len(module) == 4


class TestMissingDependencies(unittest.TestCase):
    def setUp(self):
        self.k1 = Key("Key1")
        self.k2 = Key("Key2")
        self.k3 = Key("Key3")

    def test_missing_plain_dependency(self):
        with pytest.raises(MissingDependencyError) as exc:
            Module.from_entries([_factory(self.k1, self.k2)])

        assert "Key1 will fail because it depends on:\n -> Key2" in str(exc.value)
        assert exc.value.missing == {self.k1: (self.k2,)}

    def test_missing_selector_member(self):
        selector = SelectorKey([self.k2])

        with pytest.raises(ModuleInitError, match="Key1 will fail because it depends on:\n -> Key2"):
            Module.from_entries([_factory(self.k1, selector)])

    def test_every_missing_key_is_listed_once(self):
        selector = SelectorKey([self.k2, self.k3])

        with pytest.raises(MissingDependencyError) as exc:
            Module.from_entries([_factory(self.k1, self.k2, selector)])

        assert str(exc.value) == "Key1 will fail because it depends on:\n -> Key2\n -> Key3"
        assert exc.value.missing[self.k1] == (self.k2, self.k3)

    def test_all_offending_factories_are_reported(self):
        k4 = Key("Key4")

        with pytest.raises(MissingDependencyError) as exc:
            Module.from_entries([_factory(self.k1, self.k3), _factory(self.k2, k4)])

        assert exc.value.missing == {self.k1: (self.k3,), self.k2: (k4,)}
        assert str(exc.value) == (
            "Key1 will fail because it depends on:\n -> Key3\nKey2 will fail because it depends on:\n -> Key4"
        )

    def test_only_unregistered_keys_are_reported(self):
        with pytest.raises(MissingDependencyError) as exc:
            Module.from_entries([_factory(self.k1, self.k2, self.k3), _factory(self.k2)])

        assert exc.value.missing == {self.k1: (self.k3,)}


def test_module_cannot_be_constructed_directly():
    with pytest.raises(RuntimeError, match="from_entries"):
        Module([])
