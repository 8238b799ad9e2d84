r"""
Helmsman argument specifications, builders and the permissive option parser.

Overview
- Specs (immutable descriptions, used by resolution, completion and help)
  • Positional: a single positional value, required or optional.
  • CatchAll: every remaining positional value (at most one per feature, last).
  • Option: a named "--name" value or flag, with an optional "-x" alias.

- Argument
  • The built pair (spec, resolver). Resolvers are lazy: they run when the
    feature is invoked, never when text is resolved or completed, and compute
    the value from `context.argv` with the invoked feature's own specs.

- Builders (each returns an Argument, wrappers return a new one)
  • positional / optional / catchall / option / flag: the primitives.
  • default / required / number / transform: composable wrappers. A wrapper
    keeps the inner argument's name (resolvers locate their value by name),
    may amend the spec (description, type label, required marker) and post-
    processes the inner value.

- parseargs(specs, argv)
  • The parser every resolver goes through. Known options are lifted out of
    the token stream, everything else stays positional, including option-like
    tokens nobody declared (so global flags can travel next to feature
    arguments).

Metadata (sanitized on construction)
- name: non-empty string; options must match r"--[^\W\d_](-?[^\W_]+)*".
- alias: Unset | "-x" (options only).
- descr: Unset | str | Text (short help), non-empty when provided.
- type: non-empty label shown in help ("string", "int", "path"...).
- autocomplete: Unset | callable (context, text) returning an iterable of
  strings or an awaitable of one (positionals and catch-alls only; option
  values are not completed).

Quick example:
    >>> @feature("head", descr="Print the first lines of a file.")
    ... async def head(context, file=positional("file"),
    ...                lines=default(10, number(option("--lines", "-n")))):
    ...     ...
"""
import builtins
import copy
import inspect
import re
from collections import deque, namedtuple

from rich.text import Text

from .faults import *
from .internals import SpecType
from .tokens import unquote
from .utils import *

Parsed = namedtuple("Parsed", ("positionals", "options"))
Parsed.__doc__ = """
Result of parseargs(): the positional values (in order) and a mapping from the
canonical "--name" of every option that was present to its value (True for
flags).
"""


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize the metadata shared by every spec.

    Responsibilities
    - name: must be a non-empty string after trimming.
    - descr: Unset | str | Text; strings are trimmed and must stay non-empty.
      Unset becomes None.
    - type: non-empty string label.

    Side effects
    - Mutates the provided metadata dict in place.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(label := metadata["type"], str):
        raise TypeError(f"{cls.__typename__} 'type' must be a string")
    elif not (label := label.strip()):
        raise ValueError(f"{cls.__typename__} 'type' cannot be empty")
    metadata["type"] = label


def _sanitize_completion(cls, metadata, /):
    """Internal: autocomplete must be Unset or callable; Unset becomes None."""
    if (autocomplete := metadata["autocomplete"]) is not Unset and not callable(autocomplete):
        raise TypeError(f"{cls.__typename__} 'autocomplete' must be callable")
    metadata["autocomplete"] = coalesce(autocomplete)


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate option names.

    - name must look like "--name" or "--long-name" (unicode letters allowed,
      no underscores, no leading digit).
    - alias, when given, must be a single letter such as "-n".
    - metavar: Unset | non-empty string, Unset becomes None.
    """
    if not re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", metadata["name"]):
        raise ValueError(f"{cls.__typename__} 'name' must be a valid long option name such as '--name'")

    if not isinstance(alias := metadata["alias"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'alias' must be a string")
    elif isinstance(alias, str) and not re.fullmatch(r"-[^\W\d_]", alias := alias.strip()):
        raise ValueError(f"{cls.__typename__} 'alias' must be a valid short option name such as '-n'")
    metadata["alias"] = coalesce(alias)

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)


class ArgumentSpec(metaclass=SpecType):
    """
    Common base of Positional, CatchAll and Option.

    Specs are immutable; copy.replace(spec, **changes) builds an amended copy
    through the regular (validating) constructor.
    """
    __introspectable__ = ()

    def __new__(cls, *args, **kwargs):
        if cls is ArgumentSpec:
            raise TypeError("type 'ArgumentSpec' cannot be instantiated directly")
        return super().__new__(cls)

    def __replace__(self, /, **changes):
        # None is how unset metadata is stored, Unset is how it is passed
        fields = {
            name: Unset if (object := getattr(self, "_" + name)) is None else object
            for name in type(self).__introspectable__
        } | changes
        return type(self)(fields.pop("name"), **fields)


class Positional(ArgumentSpec):
    """
    A single positional value.

    Required positionals must all be declared before optional ones; a feature
    is only matched by text that supplies every required positional.
    """
    __introspectable__ = ("name", "descr", "type", "optional", "autocomplete")
    __displayable__ = ("name", "descr", "type", "optional")

    def __new__(cls, name, /, descr=Unset, *, type="string", optional=False, autocomplete=Unset):
        metadata = {
            "name": name,
            "descr": descr,
            "type": type,
            "optional": bool(optional),
            "autocomplete": autocomplete,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_completion(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class CatchAll(ArgumentSpec):
    """
    Every positional value from its position on (possibly none).
    """
    __introspectable__ = ("name", "descr", "type", "autocomplete")
    __displayable__ = ("name", "descr", "type")

    def __new__(cls, name, /, descr=Unset, *, type="string", autocomplete=Unset):
        metadata = {
            "name": name,
            "descr": descr,
            "type": type,
            "autocomplete": autocomplete,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_completion(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class Option(ArgumentSpec):
    """
    A named option ("--name value", "--name=value") or, with flag=True, a
    presence-only switch. Options never take part in the positional count.
    """
    __introspectable__ = ("name", "alias", "descr", "type", "metavar", "flag", "required")
    __displayable__ = ("name", "alias", "descr", "flag", "required")

    def __new__(
            cls,
            name,
            /,
            alias=Unset,
            descr=Unset,
            *,
            type=Unset,
            metavar=Unset,
            flag=False,
            required=False
    ):
        metadata = {
            "name": name,
            "alias": alias,
            "descr": descr,
            "type": coalesce(type, "boolean" if flag else "string"),
            "metavar": metavar,
            "flag": bool(flag),
            "required": bool(required),
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class Argument(metaclass=SpecType, final=True):
    """
    A built argument: its spec plus a lazy value resolver.

    The resolver receives the invocation context and returns the value (or an
    awaitable of it); `await argument.resolve(context)` hides the difference.
    Arguments are what feature callbacks declare as parameter defaults.
    """
    __introspectable__ = ("spec",)

    def __new__(cls, spec, resolver, /):
        if not isinstance(spec, ArgumentSpec):
            raise TypeError(f"{cls.__typename__} 'spec' must be an argument spec")
        if not callable(resolver):
            raise TypeError(f"{cls.__typename__} 'resolver' must be callable")
        self = super().__new__(cls)
        self._spec = spec
        self._resolver = resolver
        return self

    @property
    def name(self):
        return self._spec.name

    async def resolve(self, context, /):
        value = self._resolver(context)
        if inspect.isawaitable(value):
            value = await value
        return value


def parseargs(specs, argv, /, *, strict=True, raw=False):
    """
    Permissive option parser.

    Behavior
    - Options declared in `specs` (Option instances, others are ignored) are
      recognized by name or alias and removed from the positional stream:
      • flags store True; "--flag=value" is a FlagAssignmentError.
      • valued options take their inline value ("--name=value") or the next
        token; a missing value is an OptionValueRequiredError.
      • later occurrences win.
    - Anything else, including undeclared option-like tokens, is positional.
    - "--" ends option parsing.
    - Empty tokens (double spaces) are dropped; values are unquoted.

    Parameters
    - strict: when False, malformed options are tolerated instead of raised
      (used to count positionals while resolving).
    - raw: keep tokens verbatim (no unquoting, "--" retained), used to strip a
      set of options from a token stream that is parsed again later.

    Returns
    - Parsed(positionals, options), options keyed by the canonical "--name".
    """
    lookup = {}
    for spec in specs:
        if isinstance(spec, Option):
            lookup[spec.name] = spec
            if spec.alias:
                lookup[spec.alias] = spec

    clean = (lambda token: token) if raw else unquote

    positionals = []
    options = {}
    tokens = deque(token for token in argv if token)
    while tokens:
        token = tokens.popleft()

        if token == "--":
            if raw:
                positionals.append(token)
            positionals.extend(map(clean, tokens))
            break

        name, separator, inline = token.partition("=") if token.startswith("--") else (token, "", "")
        if (spec := lookup.get(name)) is None:
            positionals.append(clean(token))
            continue

        if spec.flag:
            if separator and strict:
                raise FlagAssignmentError(
                    f'Flag "{spec.name}" does not take a value, but got "{inline}".',
                    hint=f"pass {spec.name} on its own"
                )
            options[spec.name] = True
        elif separator:
            options[spec.name] = clean(inline)
        elif tokens:
            options[spec.name] = clean(tokens.popleft())
        elif strict:
            raise OptionValueRequiredError(
                f'Option "{spec.name}" requires a value.',
                hint=f"pass it as {spec.name}=<{spec.metavar or 'value'}> or {spec.name} <{spec.metavar or 'value'}>"
            )

    return Parsed(positionals, options)


def _positionals(context, /):
    return parseargs(context.feature.arguments, context.argv).positionals


def _index(context, name, /):
    """
    Position of the named argument among the invoked feature's non-option
    arguments, which is also the index of its value among the positionals.
    """
    if context.feature is None:
        raise RuntimeError(f"argument {name!r} resolved outside of a feature invocation")
    ordinals = [spec.name for spec in context.feature.arguments if not isinstance(spec, Option)]
    try:
        return ordinals.index(name)
    except ValueError:
        raise RuntimeError(f"argument {name!r} is not declared by {context.feature.cmd[0]!r}") from None


def _check(argument, caller, /):
    if not isinstance(argument, Argument):
        raise TypeError(f"{caller}() argument must be a built argument")


def positional(name, /, descr=Unset, *, type="string", autocomplete=Unset):
    """
    Required positional argument; resolves to its string value.

    Raises (at invocation)
    - MissingArgumentError when fewer positionals than needed were typed.
    """
    spec = Positional(name, descr, type=type, autocomplete=autocomplete)

    @rename(spec.name)
    def resolver(context):
        positionals = _positionals(context)
        if (index := _index(context, spec.name)) < len(positionals):
            return positionals[index]
        expected = sum(isinstance(other, Positional) and not other.optional for other in context.feature.arguments)
        raise MissingArgumentError(
            f'Positional argument "{spec.name}" not found. Expected at least {expected} positional '
            f'{pluralize("argument", expected)}, but got {len(positionals)}.',
            hint=f"provide the {spec.name} after the command"
        )

    return Argument(spec, resolver)


def optional(name, /, descr=Unset, *, type="string", autocomplete=Unset):
    """
    Optional positional argument; resolves to its string value or None.
    """
    spec = Positional(name, descr, type=type, optional=True, autocomplete=autocomplete)

    @rename(spec.name)
    def resolver(context):
        positionals = _positionals(context)
        index = _index(context, spec.name)
        return positionals[index] if index < len(positionals) else None

    return Argument(spec, resolver)


def catchall(name, /, descr=Unset, *, type="string", autocomplete=Unset):
    """
    Catch-all argument; resolves to the list of every positional from its
    position on (an empty list when there is none).
    """
    spec = CatchAll(name, descr, type=type, autocomplete=autocomplete)

    @rename(spec.name)
    def resolver(context):
        return _positionals(context)[_index(context, spec.name):]

    return Argument(spec, resolver)


def option(name, /, alias=Unset, descr=Unset, *, type="string", metavar=Unset):
    """
    Valued option; resolves to its string value, or None when absent.
    """
    spec = Option(name, alias, descr, type=type, metavar=metavar)

    @rename(spec.name)
    def resolver(context):
        return parseargs(context.feature.arguments, context.argv).options.get(spec.name)

    return Argument(spec, resolver)


def flag(name, /, alias=Unset, descr=Unset):
    """
    Presence-only switch; resolves to True when given, False otherwise.
    """
    spec = Option(name, alias, descr, flag=True)

    @rename(spec.name)
    def resolver(context):
        return bool(parseargs(context.feature.arguments, context.argv).options.get(spec.name, False))

    return Argument(spec, resolver)


def transform(argument, function, /, **overrides):
    """
    Generic argument composition.

    Returns a new Argument whose value is `function(inner value)` (awaited
    when the function returns an awaitable) and whose spec is the inner spec
    with `overrides` applied through copy.replace (e.g. type="path"). Every
    other wrapper in this module is a transform.

    Example
    - upper = transform(positional("name"), str.upper)
    """
    _check(argument, "transform")
    if not callable(function):
        raise TypeError("transform() second argument must be callable")

    async def resolver(context):
        value = function(await argument.resolve(context))
        if inspect.isawaitable(value):
            value = await value
        return value

    spec = copy.replace(argument.spec, **overrides) if overrides else argument.spec
    return Argument(spec, rename(resolver, spec.name))


def default(value, argument, /):
    """
    Substitute `value` when the inner argument resolves to None.

    The description gains a "(default: value)" suffix; "." is rendered as
    "current directory".
    """
    _check(argument, "default")
    rendered = "current directory" if value == "." else value
    suffix = f"(default: {rendered})"
    descr = f"{argument.spec.descr} {suffix}" if argument.spec.descr else suffix
    return transform(argument, lambda inner: value if inner is None else inner, descr=descr)


def required(argument, /):
    """
    Turn a None value into a MissingArgumentError; options are marked as
    required in their spec (shown as <--name> in help).
    """
    _check(argument, "required")
    name = argument.spec.name

    def check(inner):
        if inner is None:
            raise MissingArgumentError(
                f"Required argument {name} is missing.",
                hint=f"provide {name}"
            )
        return inner

    if isinstance(argument.spec, Option):
        return transform(argument, check, required=True)
    return transform(argument, check)


def number(argument, /, kind="int"):
    """
    Parse the inner value as an int (kind="int") or a float (kind="float").

    None passes through; a list (from a catch-all) is parsed element-wise.

    Raises (at invocation)
    - InvalidNumberError naming the argument and the offending text.
    """
    _check(argument, "number")
    if kind not in ("int", "float"):
        raise ValueError("number() kind must be 'int' or 'float'")
    name = argument.spec.name
    converter = builtins.int if kind == "int" else builtins.float

    def convert(text):
        try:
            return converter(text)
        except ValueError:
            raise InvalidNumberError(
                f'Expected a number for {kind} argument "{name}", but got "{text}".',
                hint=f"{name} must be {'an integer' if kind == 'int' else 'a number'}"
            ) from None

    def parse(inner):
        if inner is None:
            return None
        if isinstance(inner, list):
            return [convert(text) for text in inner]
        return convert(inner)

    return transform(argument, parse, type=kind)


__all__ = (
    # Specs
    "ArgumentSpec",
    "Positional",
    "CatchAll",
    "Option",

    # Built arguments and parsing
    "Argument",
    "Parsed",
    "parseargs",

    # Builders
    "positional",
    "optional",
    "catchall",
    "option",
    "flag",
    "transform",
    "default",
    "required",
    "number",
)
