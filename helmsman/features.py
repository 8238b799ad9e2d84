"""
Helmsman features: the declarative command tree.

Overview
- Feature: one command. Declared from an (async) callback whose first
  parameter receives the invocation Context and whose other parameters
  default to built arguments:

      @feature("link", "ln", descr="Create a public link.")
      async def link(context, path=positional("path"), expire=option("--expire")):
          ...

  The argument specs (in parameter order) are published as
  `feature.arguments`; values are resolved lazily by invoke().
- FeatureGroup: a titled, optionally named and collapsible set of features
  and nested groups. Groups only matter for help and for `help <name>`;
  resolution and completion work on the flattened feature list.
- helptext(): a child-less group carrying prose only.
- Context: the immutable per-invocation context (copy.replace to amend).
- FeatureResult: what a feature body may return (exit request, context patch).

Tree nodes are a tagged union discriminated by class: code walking the tree
matches on Feature() / FeatureGroup() and rejects anything else.

Declaration rules (TypeError/ValueError when violated)
- at least one alias; aliases are non-empty, whitespace-normalized and unique
  (case-insensitively) within the feature.
- required positionals precede optional ones, at most one catch-all and it is
  the last positional, positional names are unique, option names and aliases
  are unique.
"""
import copy
import inspect
from enum import StrEnum

from rich.text import Text

from ._logger import get_logger
from .arguments import Argument, CatchAll, Option, Positional
from .internals import SpecType
from .utils import *

logger = get_logger(__name__)


class Visibility(StrEnum):
    """
    How a group is shown by help.

    - SHOW: title, description and children.
    - COLLAPSE: a one-line reference telling how to expand it.
    - HIDE: omitted unless explicitly selected by name.
    """
    SHOW = "show"
    COLLAPSE = "collapse"
    HIDE = "hide"


def _process_strings(cls, metadata):
    """
    Validate the descriptive strings (descr, long_descr): Unset or a
    non-empty str/Text. Unset becomes None.
    """
    for field in ("descr", "long_descr"):
        if not isinstance(value := metadata[field], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
        metadata[field] = coalesce(value)


def _process_aliases(cls, metadata):
    """
    Normalize the alias list.

    - a single string is accepted as a one-alias list.
    - every alias is whitespace-normalized ("link   list" -> "link list").
    - empty lists, empty aliases and duplicates (ignoring case) are rejected.
    """
    if isinstance(aliases := metadata["cmd"], str):
        aliases = (aliases,)

    cmd = []
    seen = set()
    for alias in aliases:
        if not isinstance(alias, str):
            raise TypeError(f"{cls.__typename__} aliases must be strings")
        elif not (alias := " ".join(alias.split())):
            raise ValueError(f"{cls.__typename__} aliases cannot be empty")
        elif alias.lower() in seen:
            raise ValueError(f"{cls.__typename__} aliases cannot contain duplicates ({alias!r})")
        seen.add(alias.lower())
        cmd.append(alias)

    if not cmd:
        raise ValueError(f"{cls.__typename__} 'cmd' must contain at least one alias")
    metadata["cmd"] = tuple(cmd)


def _process_source(cls, metadata):
    """
    Introspect the callback and collect its arguments.

    Responsibilities
    - The first parameter receives the context; it must be positional and must
      not have a default.
    - Every other parameter must default to a built Argument (variadic
      parameters are not allowed); they are bound in declaration order.
    - Enforce the ordering and uniqueness rules of the resulting specs.

    Builds metadata["parameters"] (inspect.Parameter list without the context),
    metadata["bindings"] (parameter name -> Argument) and
    metadata["arguments"] (specs in declaration order).
    """
    if not callable(callback := metadata["callback"]):
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")
    try:
        parameters = list(inspect.signature(callback).parameters.values())
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'callback' must be an inspectable callable") from None

    if (
        not parameters or
        parameters[0].kind not in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD) or
        parameters[0].default is not inspect.Parameter.empty
    ):
        raise TypeError(f"{cls.__typename__} 'callback' must accept the context as its first positional parameter")

    bindings = {}
    for parameter in parameters[1:]:
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise TypeError(f"{cls.__typename__} 'callback' cannot declare variadic parameters ({parameter.name!r})")
        if not isinstance(parameter.default, Argument):
            raise TypeError(f"{cls.__typename__} 'callback' parameter {parameter.name!r} default must be a built argument")
        bindings[parameter.name] = parameter.default

    names = set()
    switches = set()
    optional = catchall = False
    for spec in (arguments := tuple(argument.spec for argument in bindings.values())):
        match spec:
            case Option():
                for switch in filter(None, (spec.name, spec.alias)):
                    if switch in switches:
                        raise ValueError(f"{cls.__typename__} option {switch!r} is declared twice")
                    switches.add(switch)
                continue
            case CatchAll():
                if catchall:
                    raise ValueError(f"{cls.__typename__} cannot declare more than one catch-all argument")
                catchall = True
            case Positional():
                if catchall:
                    raise ValueError(f"{cls.__typename__} catch-all argument must be the last positional argument")
                if not spec.optional and optional:
                    raise ValueError(f"{cls.__typename__} required positional {spec.name!r} cannot follow an optional one")
                optional |= spec.optional
        if spec.name in names:
            raise ValueError(f"{cls.__typename__} positional {spec.name!r} is declared twice")
        names.add(spec.name)

    metadata["parameters"] = parameters[1:]
    metadata["bindings"] = bindings
    metadata["arguments"] = arguments


class Feature(metaclass=SpecType):
    """
    A command of the application.

    Attributes (read-only)
    - cmd: aliases, the first one is the canonical name.
    - descr / long_descr: help texts (descr defaults to the callback docstring).
    - arguments: argument specs in declaration order.
    - extra: application-specific metadata (e.g. builtin=True).
    """
    __introspectable__ = ("cmd", "descr", "long_descr", "arguments", "extra")
    __displayable__ = ("cmd", "descr", "arguments")

    def __new__(cls, callback, /, cmd, descr=Unset, long_descr=Unset, **extra):
        metadata = {
            "callback": callback,
            "cmd": cmd,
            "descr": coalesce(descr, inspect.getdoc(callback) or Unset),
            "long_descr": long_descr,
            "extra": extra,
        }
        _process_aliases(cls, metadata)
        _process_strings(cls, metadata)
        _process_source(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def name(self):
        return self._cmd[0]

    @property
    def callback(self):
        return self._callback

    async def invoke(self, context, /):
        """
        Resolve every argument and run the body.

        Behavior
        - The context is re-targeted at this feature when needed (resolvers read
          `context.feature.arguments`).
        - Argument values are resolved sequentially, in declaration order; the
          first failing resolver aborts the invocation with its fault.
        - The body may be sync or async; it must return a FeatureResult or None.

        Returns
        - FeatureResult | None
        """
        if not isinstance(context, Context):
            raise TypeError("invoke() argument must be a context")
        if context.feature is not self:
            context = copy.replace(context, feature=self)

        logger.debug("invoking %r with argv %r", self.name, context.argv)

        args = [context]
        kwargs = {}
        for parameter in self._parameters:
            value = await self._bindings[parameter.name].resolve(context)
            if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value

        result = self._callback(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        if result is not None and not isinstance(result, FeatureResult):
            raise TypeError(f"feature {self.name!r} returned {type(result).__name__!r}, expected a feature-result")
        return result


def feature(*cmd, descr=Unset, long_descr=Unset, **extra):
    """
    Decorator form of Feature: `@feature("ls", "list", descr=...)`.
    """

    def wrapper(callback):
        return Feature(callback, cmd, descr, long_descr, **extra)

    return rename(wrapper, "feature")


class FeatureGroup(metaclass=SpecType):
    """
    A titled set of features and nested groups.

    Parameters
    - *children: Feature | FeatureGroup, in display order.
    - title: heading shown by help.
    - name: stable identifier for `help <name>` lookups.
    - descr / long_descr: prose shown under the title.
    - visibility: Visibility (or its string value), SHOW by default.
    """
    __introspectable__ = ("title", "name", "descr", "long_descr", "visibility", "children")
    __displayable__ = ("title", "name", "visibility", "children")

    def __new__(cls, *children, title=Unset, name=Unset, descr=Unset, long_descr=Unset, visibility=Visibility.SHOW):
        for child in children:
            if not isinstance(child, Feature | FeatureGroup):
                raise TypeError(f"{cls.__typename__} children must be features or feature-groups")

        metadata = {
            "title": title,
            "name": name,
            "descr": descr,
            "long_descr": long_descr,
        }
        for field in ("title", "name"):
            if not isinstance(value := metadata[field], str | Unset):
                raise TypeError(f"{cls.__typename__} {field!r} must be a string")
            elif isinstance(value, str) and not (value := value.strip()):
                raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
            metadata[field] = coalesce(value)
        _process_strings(cls, metadata)

        try:
            metadata["visibility"] = Visibility(visibility)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'visibility' must be one of 'show', 'collapse' or 'hide'") from None
        metadata["children"] = children

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


def helptext(text, /, *, title=Unset, name=Unset, visibility=Visibility.SHOW):
    """
    A group without features, carrying help prose only.
    """
    return FeatureGroup(title=title, name=name, descr=text, visibility=visibility)


class Context(metaclass=SpecType):
    """
    The context of one invocation.

    Attributes
    - app: the owning application (or None in tests and embedded use).
    - cmd: the alias that was matched, feature: the matched Feature.
    - argv: tokens after the alias.
    - verbose / quiet / json / interactive: ambient flags.
    - extra: application-defined values (e.g. cwd), also readable as
      attributes: `context.cwd`.

    Contexts are immutable; copy.replace(context, **changes) returns an
    amended copy and routes unknown names into `extra`.
    """
    __introspectable__ = ("app", "cmd", "feature", "argv", "verbose", "quiet", "json", "interactive", "extra")
    __displayable__ = ("cmd", "argv", "interactive", "extra")

    def __new__(
            cls,
            app=None,
            /,
            cmd=None,
            feature=None,
            argv=(),
            *,
            verbose=False,
            quiet=False,
            json=False,
            interactive=False,
            **extra
    ):
        if not isinstance(cmd, str | None):
            raise TypeError(f"{cls.__typename__} 'cmd' must be a string")
        if not isinstance(feature, Feature | None):
            raise TypeError(f"{cls.__typename__} 'feature' must be a feature")
        if isinstance(argv, str):
            raise TypeError(f"{cls.__typename__} 'argv' must be an iterable of strings")
        argv = tuple(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError(f"{cls.__typename__} 'argv' must be an iterable of strings")

        self = super().__new__(cls)
        self._app = app
        self._cmd = cmd
        self._feature = feature
        self._argv = argv
        self._verbose = bool(verbose)
        self._quiet = bool(quiet)
        self._json = bool(json)
        self._interactive = bool(interactive)
        self._extra = extra
        return self

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._extra[name]
        except KeyError:
            raise AttributeError(f"{type(self).__typename__} has no attribute {name!r}") from None

    def __replace__(self, /, **changes):
        fields = {name: getattr(self, "_" + name) for name in type(self).__introspectable__ if name != "extra"}
        extra = dict(self._extra)
        for name, value in changes.items():
            (fields if name in fields else extra)[name] = value
        return type(self)(fields.pop("app"), **fields, **extra)


class FeatureResult(metaclass=SpecType, final=True):
    """
    Optional return value of a feature body.

    - exit: end the interactive loop after this invocation.
    - **patch: values merged into the ambient context for later invocations
      (e.g. FeatureResult(cwd="/tmp")).
    """
    __introspectable__ = ("exit", "patch")

    def __new__(cls, *, exit=False, **patch):
        self = super().__new__(cls)
        self._exit = bool(exit)
        self._patch = patch
        return self


__all__ = (
    "Visibility",
    "Feature",
    "feature",
    "FeatureGroup",
    "helptext",
    "Context",
    "FeatureResult",
)
