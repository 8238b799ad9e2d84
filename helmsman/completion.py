"""
prompt_toolkit bridge for registry autocompletion.

FeatureCompleter is owned by the application that creates it; each
interactive session has its own cache and no state is shared between
sessions. prompt_toolkit drives it:

- get_completions_async(): awaited on every keystroke; prompt_toolkit cancels
  the round of the previous keystroke, so stale results are never displayed.
- get_completions(): the synchronous path, answered from the cache only.

Each completion replaces the segment being typed (start_position is minus the
length of the active segment). A round exceeding `timeout` seconds yields no
completions and is not cached. The cache keeps the `cache_size` most recently
used texts.
"""
import asyncio
from collections import OrderedDict

from prompt_toolkit.completion import Completer, Completion

from ._logger import get_logger
from .tokens import partition

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 2.0
DEFAULT_CACHE_SIZE = 256


class FeatureCompleter(Completer):
    """
    Autocompletion for a registry, cached per input text.

    Parameters
    - registry: the Registry to complete against.
    - context: the Context handed to autocomplete callbacks; assigning a new
      one (after a feature patched it) clears the cache.
    - timeout: seconds granted to one completion round.
    - cache_size: number of input texts kept, least recently used evicted.
    """

    def __init__(self, registry, context, *, timeout=DEFAULT_TIMEOUT, cache_size=DEFAULT_CACHE_SIZE):
        if not isinstance(timeout, int | float) or timeout <= 0:
            raise ValueError("FeatureCompleter 'timeout' must be a positive number")
        if not isinstance(cache_size, int) or cache_size < 1:
            raise ValueError("FeatureCompleter 'cache_size' must be a positive integer")
        self._registry = registry
        self._context = context
        self._timeout = timeout
        self._cache_size = cache_size
        self._cache = OrderedDict()

    @property
    def context(self):
        return self._context

    @context.setter
    def context(self, context):
        self._context = context
        self._cache.clear()

    async def complete(self, text, /):
        """
        Return (completions, active) for `text`, using the cache when possible.
        """
        if (cached := self._cache.get(text)) is not None:
            self._cache.move_to_end(text)
            return cached
        try:
            result = await asyncio.wait_for(self._registry.autocomplete(self._context, text), self._timeout)
        except TimeoutError:
            logger.warning("autocomplete for %r timed out after %ss", text, self._timeout)
            return [], partition(text)[1]
        self._cache[text] = result
        if len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
        return result

    @staticmethod
    def _render(completions, active, /):
        for completion in completions:
            yield Completion(completion, start_position=-len(active), display=completion.strip())

    def get_completions(self, document, complete_event):
        completions, active = self._cache.get(document.text_before_cursor, ((), ""))
        yield from self._render(completions, active)

    async def get_completions_async(self, document, complete_event):
        completions, active = await self.complete(document.text_before_cursor)
        for completion in self._render(completions, active):
            yield completion


__all__ = (
    "FeatureCompleter",
    "DEFAULT_TIMEOUT",
    "DEFAULT_CACHE_SIZE",
)
