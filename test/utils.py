# python
"""
Utilities behavioral tests.

Scope
- Unset sentinel: falsiness, singleton, sealing, union support.
- coalesce(), rename() (both forms), mirror() and pluralize().

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import Unset, UnsetType, coalesce, rename, mirror, pluralize


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testFalsy(self):
        self.assertFalse(Unset)

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testSubclassRejected(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("x", str | Unset)
        self.assertNotIsInstance(1, str | Unset)


class TestCoalesce(TestCase):
    """Behavioral tests for coalesce()."""

    def testUnsetBecomesDefault(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testUnsetBecomesNoneByDefault(self):
        self.assertIsNone(coalesce(Unset))

    def testFalsyValuesKept(self):
        for value in (None, 0, "", []):
            self.assertEqual(coalesce(value, "fallback"), value)


class TestRename(TestCase):
    """Behavioral tests for rename()."""

    def testDirectForm(self):
        def function():
            pass

        renamed = rename(function, "resolver")
        self.assertIs(renamed, function)
        self.assertEqual(function.__name__, "resolver")
        self.assertEqual(function.__qualname__, "resolver")

    def testDecoratorForm(self):
        @rename("--lines")
        def function():
            pass

        self.assertEqual(function.__name__, "--lines")

    def testBuiltinRejected(self):
        with self.assertRaises(TypeError):
            rename(len, "size")

    def testWrongArity(self):
        with self.assertRaises(TypeError):
            rename()

    def testNonStringName(self):
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)


class TestMirror(TestCase):
    """Behavioral tests for mirror()."""

    def testContainersAreCopied(self):
        class Holder:
            cmd = mirror("cmd")

            def __init__(self):
                self._cmd = ("link", "ln")

        holder = Holder()
        published = holder.cmd
        self.assertEqual(published, ["link", "ln"])
        published.append("mutated")
        self.assertEqual(holder.cmd, ["link", "ln"])

    def testReadOnly(self):
        class Holder:
            name = mirror("name")
            _name = "x"

        with self.assertRaises(AttributeError):
            Holder().name = "y"


class TestPluralize(TestCase):
    """Behavioral tests for pluralize()."""

    def testSingular(self):
        self.assertEqual(pluralize("argument", 1), "argument")

    def testZeroIsPlural(self):
        self.assertEqual(pluralize("argument", 0), "arguments")

    def testSibilant(self):
        self.assertEqual(pluralize("match"), "matches")

    def testConsonantY(self):
        self.assertEqual(pluralize("entry"), "entries")

    def testVowelY(self):
        self.assertEqual(pluralize("key"), "keys")

    def testCasingKept(self):
        self.assertEqual(pluralize("Entry"), "Entries")
        self.assertEqual(pluralize("FILE"), "FILES")


if __name__ == "__main__":
    unittest.main()
