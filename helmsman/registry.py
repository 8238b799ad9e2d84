"""
Helmsman registry: resolution and autocompletion over a feature tree.

Scope
- Flatten a FeatureGroup tree (pre-order, declaration order) into the list of
  features, and precompute per-alias signatures and completion plans. The
  registry is immutable after construction.
- resolve(): pick exactly one feature for a command text.
- autocomplete(): compute completions for a partially typed command.

Resolution (first match wins)
1. Tokenize the input and drop empty tokens.
2. For every (feature, alias) pair, ordered by alias length (longest first),
   then by the feature's positional-argument count (most first), then by
   declaration order: the alias words must equal the leading tokens (ignoring
   case, never as partial words) and the remaining tokens, parsed with the
   feature's own options, must supply every required positional.
3. Otherwise, fall back to the longest alias whose words prefix the input, so
   the feature itself can report what is missing.
4. Otherwise, no resolution (None).

Autocompletion
- Every (feature, alias) pair is expanded into a plan: one constant segment per
  alias word, one word segment per positional argument and a trailing
  catch-all segment (which stays current indefinitely). Options are not part
  of plans. Empty completed segments (doubled spaces) are skipped.
- A plan is compatible when every completed input segment equals its constant
  counterpart (word and catch-all segments accept anything) and the active
  segment is a prefix of its constant counterpart.
- Constant segments complete to themselves, plus a trailing space when the
  plan continues; word and catch-all segments ask their spec's autocomplete
  callback (sync or async); a bare string result is a single candidate.
  Plans are evaluated concurrently; a failing callback is logged and
  contributes nothing.
- Results keep first-appearance order across plans (declaration order);
  exact duplicates are dropped and "x " is dropped whenever "x" is offered.
"""
import asyncio
import inspect
import logging
from collections import namedtuple
from enum import StrEnum

from ._logger import get_logger
from .arguments import CatchAll, Positional, parseargs
from .features import Feature, FeatureGroup
from .internals import SpecType
from .tokens import partition, tokenize

logger = get_logger(__name__)

Resolution = namedtuple("Resolution", ("cmd", "feature", "argv"))
Resolution.__doc__ = """
A successful resolution: the matched alias, its feature and the tokens after
the alias words (raw, quotes kept).
"""


class SegmentKind(StrEnum):
    CONSTANT = "constant"
    WORD = "word"
    CATCH_ALL = "catch-all"


Segment = namedtuple("Segment", ("kind", "text", "autocomplete"))

_Signature = namedtuple("_Signature", ("cmd", "words", "feature", "positionals", "required"))


def _flatten(node, /):
    """
    Yield the features of a tree in pre-order, declaration order.
    """
    match node:
        case Feature():
            yield node
        case FeatureGroup():
            for child in node.children:
                yield from _flatten(child)
        case _:
            raise TypeError(f"expected a feature or a feature-group, got {type(node).__name__!r}")


def _plan(feature, alias, /):
    segments = [Segment(SegmentKind.CONSTANT, word, None) for word in alias.split(" ")]
    for spec in feature.arguments:
        match spec:
            case Positional():
                segments.append(Segment(SegmentKind.WORD, spec.name, spec.autocomplete))
            case CatchAll():
                segments.append(Segment(SegmentKind.CATCH_ALL, spec.name, spec.autocomplete))
    return tuple(segments)


def _segment(plan, index, /):
    """
    The plan segment at `index`; a trailing catch-all covers every index past
    the end, anything else past the end is None.
    """
    if index < len(plan):
        return plan[index]
    if plan and plan[-1].kind is SegmentKind.CATCH_ALL:
        return plan[-1]
    return None


def _deduplicate(candidates, /):
    """
    Drop exact duplicates and every "x " whose bare form "x" is also present,
    keeping first-appearance order.
    """
    unique = list(dict.fromkeys(candidates))
    bare = set(unique)
    return [candidate for candidate in unique if not (candidate.endswith(" ") and candidate.rstrip(" ") in bare)]


class Registry(metaclass=SpecType):
    """
    The flattened, immutable view of a feature tree.

    Parameters
    - root: a FeatureGroup, or an iterable of features and groups (wrapped
      into an anonymous root group).

    Attributes
    - root: the root group.
    - features: every feature, pre-order.
    """
    __introspectable__ = ("root", "features")
    __displayable__ = ("features",)

    def __init__(self, root, /):
        if not isinstance(root, FeatureGroup):
            if isinstance(root, Feature):
                raise TypeError("Registry() argument must be a feature-group or an iterable of nodes")
            root = FeatureGroup(*root)
        self._root = root
        self._features = tuple(_flatten(root))

        signatures = []
        plans = []
        for feature in self._features:
            positionals = sum(isinstance(spec, Positional | CatchAll) for spec in feature.arguments)
            required = sum(isinstance(spec, Positional) and not spec.optional for spec in feature.arguments)
            for alias in feature.cmd:
                signatures.append(_Signature(alias, alias.lower().split(" "), feature, positionals, required))
                plans.append(_plan(feature, alias))

        # sorted() is stable: ties keep declaration order
        self._signatures = tuple(sorted(signatures, key=lambda signature: (-len(signature.cmd), -signature.positionals)))
        self._plans = tuple(plans)

    def group(self, name, /):
        """
        Find a group by its name (pre-order, first match), or None.
        """
        def search(node):
            if isinstance(node, FeatureGroup):
                if node.name == name:
                    return node
                for child in node.children:
                    if (found := search(child)) is not None:
                        return found
            return None

        return search(self._root)

    def resolve(self, input, /):
        """
        Resolve command text (or an already tokenized sequence) to a
        Resolution(cmd, feature, argv), or None when no alias matches.
        """
        tokens = [token for token in (tokenize(input) if isinstance(input, str) else input) if token]
        if not tokens:
            return None
        lowered = [token.lower() for token in tokens]

        fallback = None
        for signature in self._signatures:
            if lowered[:len(signature.words)] != signature.words:
                continue
            argv = tokens[len(signature.words):]
            if fallback is None:
                fallback = Resolution(signature.cmd, signature.feature, argv)
            supplied = len(parseargs(signature.feature.arguments, argv, strict=False).positionals)
            if supplied >= signature.required:
                logger.debug("resolved %r to %r", tokens, signature.cmd)
                return Resolution(signature.cmd, signature.feature, argv)

        # signatures are sorted longest first, so the first prefix hit is the longest alias
        if fallback is not None:
            logger.debug("resolved %r to %r (missing positionals)", tokens, fallback.cmd)
        else:
            logger.debug("no feature matches %r", tokens)
        return fallback

    async def autocomplete(self, context, input, /):
        """
        Complete partially typed command text.

        Returns
        - (completions, active): the candidate replacements for the segment
          being typed, and that segment's current text.
        """
        completed, active = partition(input)
        # doubled spaces leave empty segments, skipped as resolve() skips them
        completed = [text for text in completed if text]
        index = len(completed)

        calls = []
        for plan in self._plans:
            if (segment := self._match(plan, completed, active)) is not None:
                calls.append(self._candidates(context, plan, segment, index, active))

        results = await asyncio.gather(*calls)
        return _deduplicate(candidate for candidates in results for candidate in candidates), active

    @staticmethod
    def _match(plan, completed, active, /):
        """
        The plan segment under the cursor when the plan is compatible with the
        input, None otherwise.
        """
        for position, text in enumerate(completed):
            if (segment := _segment(plan, position)) is None:
                return None
            if segment.kind is SegmentKind.CONSTANT and segment.text != text:
                return None
        if (segment := _segment(plan, len(completed))) is None:
            return None
        if segment.kind is SegmentKind.CONSTANT and not segment.text.startswith(active):
            return None
        return segment

    @staticmethod
    async def _candidates(context, plan, segment, index, active, /):
        if segment.kind is SegmentKind.CONSTANT:
            return [segment.text + " " if index < len(plan) - 1 else segment.text]
        if segment.autocomplete is None:
            return []
        try:
            candidates = segment.autocomplete(context, active)
            if inspect.isawaitable(candidates):
                candidates = await candidates
            if isinstance(candidates, str):
                candidates = [candidates]
            return [str(candidate) for candidate in candidates or ()]
        except Exception:
            logger.warning("autocomplete for %r failed", segment.text, exc_info=logger.isEnabledFor(logging.DEBUG))
            return []


__all__ = (
    "Registry",
    "Resolution",
    "Segment",
    "SegmentKind",
)
