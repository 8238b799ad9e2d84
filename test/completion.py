# python
"""
prompt_toolkit completer behavioral tests.

Scope
- FeatureCompleter.complete(): caching with least-recently-used eviction,
  cache invalidation on a new context and the timeout of a completion round.
- get_completions_async() / get_completions(): Completion objects replacing
  the active segment.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import asyncio
import unittest
from unittest import IsolatedAsyncioTestCase

from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from helmsman import Context, Feature, FeatureCompleter, Registry, positional


class TestFeatureCompleter(IsolatedAsyncioTestCase):
    """Behavioral tests for FeatureCompleter."""

    def setUp(self):
        self.calls = []

        def suggest(context, text):
            self.calls.append(text)
            return [f"{context.cwd}/{text}_complete"]

        async def slow(context, text):
            await asyncio.sleep(1)
            return ["late"]

        self.registry = Registry([
            Feature(lambda context, path=positional("path", autocomplete=suggest): None, "cd"),
            Feature(lambda context, path=positional("path", autocomplete=slow): None, "wait"),
            Feature(lambda context: None, ("help", "h")),
        ])
        self.completer = FeatureCompleter(self.registry, Context(cwd="/home"), timeout=0.05)

    async def testComplete(self):
        self.assertEqual(await self.completer.complete("cd as"), (["/home/as_complete"], "as"))

    async def testCached(self):
        await self.completer.complete("cd as")
        await self.completer.complete("cd as")
        self.assertEqual(self.calls, ["as"])

    async def testNewContextClearsCache(self):
        await self.completer.complete("cd as")
        self.completer.context = Context(cwd="/tmp")
        self.assertEqual(await self.completer.complete("cd as"), (["/tmp/as_complete"], "as"))
        self.assertEqual(self.calls, ["as", "as"])

    async def testTimeout(self):
        with self.assertLogs("helmsman.completion", "WARNING"):
            self.assertEqual(await self.completer.complete("wait x"), ([], "x"))

    async def testTimeoutNotCached(self):
        with self.assertLogs("helmsman.completion", "WARNING"):
            await self.completer.complete("wait x")
        self.assertEqual(list(self.completer.get_completions(Document("wait x"), CompleteEvent())), [])

    async def testAsyncCompletions(self):
        completions = [
            completion async for completion in
            self.completer.get_completions_async(Document("cd as"), CompleteEvent())
        ]
        self.assertEqual(len(completions), 1)
        self.assertEqual(completions[0].text, "/home/as_complete")
        self.assertEqual(completions[0].start_position, -2)

    async def testDisplayStripsTrailingSpace(self):
        completions = [
            completion async for completion in
            self.completer.get_completions_async(Document(""), CompleteEvent())
        ]
        self.assertEqual([completion.text for completion in completions], ["cd ", "wait ", "help", "h"])
        self.assertEqual(completions[0].display_text, "cd")

    async def testSyncCompletionsFromCache(self):
        document = Document("cd as")
        self.assertEqual(list(self.completer.get_completions(document, CompleteEvent())), [])
        await self.completer.complete("cd as")
        completions = list(self.completer.get_completions(document, CompleteEvent()))
        self.assertEqual([completion.text for completion in completions], ["/home/as_complete"])

    async def testLeastRecentlyUsedEvicted(self):
        completer = FeatureCompleter(self.registry, Context(cwd="/home"), cache_size=2)
        for text in ("cd a", "cd b", "cd a", "cd c", "cd a", "cd b"):
            await completer.complete(text)
        self.assertEqual(self.calls, ["a", "b", "c", "b"])

    async def testInvalidCacheSize(self):
        with self.assertRaises(ValueError):
            FeatureCompleter(self.registry, Context(), cache_size=0)

    async def testInvalidTimeout(self):
        with self.assertRaises(ValueError):
            FeatureCompleter(self.registry, Context(), timeout=0)


if __name__ == "__main__":
    unittest.main()
