# python
"""
Help renderer behavioral tests.

Scope
- signature(): labels of every kind of argument.
- render(): topic selection, group visibility, argument tables, the
  application header and unknown topics.

Conventions
- Test method names follow CamelCase per project convention.
- Pages are printed on a plain in-memory console and checked as text.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from helmsman import (
    Feature,
    FeatureGroup,
    Registry,
    UnknownTopicError,
    Visibility,
    catchall,
    default,
    flag,
    helptext,
    option,
    optional,
    positional,
    required,
)
from helmsman.helper import render, signature


def text(renderable):
    console = Console(file=io.StringIO(), width=120, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


def copy_body(context, source=positional("source", "what to copy"), target=optional("target"),
              force=flag("--force", "-f", "overwrite existing files")):
    """Copy a file."""


def upload_body(context, files=catchall("files"), token=required(option("--token", descr="api token"))):
    """Upload files."""


class TestSignature(TestCase):
    """One-line usage strings."""

    def testPositionalsAndFlag(self):
        self.assertEqual(signature(Feature(copy_body, ("copy", "cp"))), "copy <source> [target] [--force]")

    def testCatchAllAndRequiredOption(self):
        self.assertEqual(signature(Feature(upload_body, "upload")), "upload <files...> <--token>")

    def testNoArguments(self):
        self.assertEqual(signature(Feature(lambda context: None, "pwd")), "pwd")


class TestRender(TestCase):
    """Help pages."""

    def setUp(self):
        self.copy = Feature(copy_body, ("copy", "cp"))
        self.upload = Feature(upload_body, "upload", long_descr="Files are uploaded in parallel.")
        self.lines = Feature(
            lambda context, lines=default(10, option("--lines", "-n")): None,
            "head",
            "Print the first lines."
        )
        self.registry = Registry(FeatureGroup(
            FeatureGroup(self.copy, self.lines, title="Files"),
            FeatureGroup(self.upload, title="Transfers", name="transfers", visibility=Visibility.COLLAPSE),
            FeatureGroup(Feature(lambda context: None, "debug"), name="internal", visibility=Visibility.HIDE),
            helptext("Paths may be quoted.", title="Paths"),
        ))

    def testWholeTree(self):
        page = text(render(self.registry, name="demo", version="1.2.3"))
        self.assertIn("demo 1.2.3", page)
        self.assertIn("Files", page)
        self.assertIn("> copy <source> [target] [--force]", page)
        self.assertIn("Copy a file.", page)
        self.assertIn("what to copy", page)
        self.assertIn("overwrite existing files", page)
        self.assertIn("(default: 10)", page)
        self.assertIn("Paths may be quoted.", page)

    def testCollapsedGroupReference(self):
        page = text(render(self.registry, name="demo"))
        self.assertIn("Transfers (expand via `demo help transfers`)", page)
        self.assertNotIn("> upload", page)

    def testHiddenGroupOmitted(self):
        self.assertNotIn("debug", text(render(self.registry)))

    def testSelectedGroupExpanded(self):
        page = text(render(self.registry, "transfers"))
        self.assertIn("> upload <files...> <--token>", page)
        self.assertIn("Files are uploaded in parallel.", page)
        self.assertNotIn("> copy", page)

    def testSelectedHiddenGroupShown(self):
        self.assertIn("> debug", text(render(self.registry, "internal")))

    def testSelectedFeatureByAlias(self):
        page = text(render(self.registry, "CP"))
        self.assertIn("> copy <source> [target] [--force]", page)
        self.assertNotIn("Files", page)

    def testInteractiveOmitsHeader(self):
        self.assertNotIn("demo 1.2.3", text(render(self.registry, name="demo", version="1.2.3", interactive=True)))

    def testUnknownTopic(self):
        with self.assertRaises(UnknownTopicError) as caught:
            render(self.registry, "nope", name="demo")
        self.assertEqual(str(caught.exception), "Unknown command or help topic: nope")


if __name__ == "__main__":
    unittest.main()
