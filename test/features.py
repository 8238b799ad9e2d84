# python
"""
Features module behavioral tests.

Scope
- Feature declaration: alias normalization, docstring descriptions, callback
  introspection and the ordering/uniqueness rules of its arguments.
- Feature invocation: sync and async bodies, positional-only parameters,
  context re-targeting and result checking.
- FeatureGroup / helptext construction, Context and FeatureResult.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import IsolatedAsyncioTestCase, TestCase

from helmsman import (
    CatchAll,
    Context,
    Feature,
    FeatureGroup,
    FeatureResult,
    Option,
    Positional,
    Visibility,
    catchall,
    feature,
    flag,
    helptext,
    option,
    optional,
    positional,
)


def noop(context):
    """Do nothing at all."""


class TestFeatureDeclaration(TestCase):
    """Declaration-time validation of features."""

    def testSingleAliasString(self):
        self.assertEqual(Feature(noop, "noop").cmd, ["noop"])

    def testAliasesNormalized(self):
        f = Feature(noop, ("link   list", " ln "))
        self.assertEqual(f.cmd, ["link list", "ln"])
        self.assertEqual(f.name, "link list")

    def testEmptyAliasListRejected(self):
        with self.assertRaises(ValueError):
            Feature(noop, ())

    def testBlankAliasRejected(self):
        with self.assertRaises(ValueError):
            Feature(noop, ("ok", "   "))

    def testDuplicateAliasIgnoringCaseRejected(self):
        with self.assertRaises(ValueError):
            Feature(noop, ("ls", "LS"))

    def testNonStringAliasRejected(self):
        with self.assertRaises(TypeError):
            Feature(noop, ("ls", 1))

    def testDescrDefaultsToDocstring(self):
        self.assertEqual(Feature(noop, "noop").descr, "Do nothing at all.")

    def testExplicitDescrWins(self):
        self.assertEqual(Feature(noop, "noop", "Something else.").descr, "Something else.")

    def testMissingDescrIsNone(self):
        self.assertIsNone(Feature(lambda context: None, "x").descr)

    def testExtraMetadata(self):
        self.assertEqual(Feature(noop, "noop", builtin=True).extra, {"builtin": True})

    def testArgumentsInDeclarationOrder(self):
        def body(context, path=positional("path"), lines=option("--lines"), rest=catchall("rest")):
            pass

        arguments = Feature(body, "x").arguments
        self.assertEqual([spec.name for spec in arguments], ["path", "--lines", "rest"])
        self.assertIsInstance(arguments[0], Positional)
        self.assertIsInstance(arguments[1], Option)
        self.assertIsInstance(arguments[2], CatchAll)

    def testDecorator(self):
        @feature("greet", "hi", descr="Say hello.")
        async def greet(context, name=positional("name")):
            pass

        self.assertIsInstance(greet, Feature)
        self.assertEqual(greet.cmd, ["greet", "hi"])
        self.assertEqual(greet.descr, "Say hello.")


class TestFeatureRules(TestCase):
    """Ordering and uniqueness rules of declared arguments."""

    def testContextRequired(self):
        with self.assertRaises(TypeError):
            Feature(lambda: None, "x")

    def testContextWithDefaultRejected(self):
        with self.assertRaises(TypeError):
            Feature(lambda context=None: None, "x")

    def testPlainDefaultRejected(self):
        with self.assertRaises(TypeError):
            Feature(lambda context, path="x": None, "x")

    def testVariadicRejected(self):
        with self.assertRaises(TypeError):
            Feature(lambda context, *args: None, "x")

    def testTwoCatchAllsRejected(self):
        with self.assertRaises(ValueError):
            Feature(lambda context, a=catchall("a"), b=catchall("b"): None, "x")

    def testPositionalAfterCatchAllRejected(self):
        with self.assertRaises(ValueError):
            Feature(lambda context, a=catchall("a"), b=positional("b"): None, "x")

    def testRequiredAfterOptionalRejected(self):
        with self.assertRaises(ValueError):
            Feature(lambda context, a=optional("a"), b=positional("b"): None, "x")

    def testOptionAfterCatchAllAllowed(self):
        f = Feature(lambda context, a=catchall("a"), b=flag("--all"): None, "x")
        self.assertEqual(len(f.arguments), 2)

    def testDuplicatePositionalRejected(self):
        with self.assertRaises(ValueError):
            Feature(lambda context, a=positional("path"), b=positional("path"): None, "x")

    def testDuplicateOptionAliasRejected(self):
        with self.assertRaises(ValueError):
            Feature(lambda context, a=flag("--all", "-a"), b=flag("--any", "-a"): None, "x")


class TestFeatureInvoke(IsolatedAsyncioTestCase):
    """Invocation of feature bodies."""

    async def testAsyncBody(self):
        seen = []

        async def body(context, name=positional("name")):
            seen.append(name)

        self.assertIsNone(await Feature(body, "greet").invoke(Context(argv=["bob"])))
        self.assertEqual(seen, ["bob"])

    async def testSyncBodyWithResult(self):
        result = await Feature(lambda context: FeatureResult(cwd="/tmp"), "cd").invoke(Context())
        self.assertEqual(result.patch, {"cwd": "/tmp"})
        self.assertFalse(result.exit)

    async def testPositionalOnlyParameters(self):
        seen = []

        def body(context, name=positional("name"), /, loud=flag("--loud")):
            seen.append((name, loud))

        await Feature(body, "greet").invoke(Context(argv=["--loud", "bob"]))
        self.assertEqual(seen, [("bob", True)])

    async def testContextRetargeted(self):
        seen = []

        async def body(context):
            seen.append(context.feature)

        f = Feature(body, "x")
        await f.invoke(Context(cmd="x"))
        self.assertIs(seen[0], f)

    async def testInvalidResultRejected(self):
        with self.assertRaises(TypeError):
            await Feature(lambda context: "oops", "x").invoke(Context())

    async def testNonContextRejected(self):
        with self.assertRaises(TypeError):
            await Feature(noop, "x").invoke(None)


class TestFeatureGroup(TestCase):
    """Construction of groups and help text."""

    def testDefaults(self):
        group = FeatureGroup(Feature(noop, "noop"))
        self.assertIsNone(group.title)
        self.assertIsNone(group.name)
        self.assertIs(group.visibility, Visibility.SHOW)
        self.assertEqual(len(group.children), 1)

    def testVisibilityFromString(self):
        self.assertIs(FeatureGroup(visibility="collapse").visibility, Visibility.COLLAPSE)

    def testInvalidVisibility(self):
        with self.assertRaises(ValueError):
            FeatureGroup(visibility="folded")

    def testInvalidChild(self):
        with self.assertRaises(TypeError):
            FeatureGroup(noop)

    def testEmptyTitleRejected(self):
        with self.assertRaises(ValueError):
            FeatureGroup(title=" ")

    def testHelptext(self):
        group = helptext("Paths may be quoted.", title="Paths", name="paths")
        self.assertEqual(group.descr, "Paths may be quoted.")
        self.assertEqual(group.children, [])
        self.assertEqual(group.name, "paths")


class TestContext(TestCase):
    """Context immutability and extras."""

    def testExtraReadableAsAttribute(self):
        self.assertEqual(Context(cwd="/home").cwd, "/home")

    def testMissingAttribute(self):
        with self.assertRaises(AttributeError):
            Context().cwd

    def testReplaceRoutesUnknownNamesIntoExtra(self):
        context = Context(argv=["a"], cwd="/home")
        changed = copy.replace(context, cwd="/tmp", verbose=True)
        self.assertEqual(changed.cwd, "/tmp")
        self.assertTrue(changed.verbose)
        self.assertEqual(changed.argv, ["a"])
        self.assertEqual(context.cwd, "/home")
        self.assertFalse(context.verbose)

    def testArgvFromGenerator(self):
        context = Context(argv=(token for token in ("cd", "docs")))
        self.assertEqual(context.argv, ["cd", "docs"])

    def testArgvMustBeStrings(self):
        with self.assertRaises(TypeError):
            Context(argv="cd a")
        with self.assertRaises(TypeError):
            Context(argv=[1])

    def testFeatureResultSealed(self):
        with self.assertRaises(TypeError):
            type("Derived", (FeatureResult,), {})


if __name__ == "__main__":
    unittest.main()
