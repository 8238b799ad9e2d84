"""
Helmsman application: global options, builtins, output and the main loop.

An App owns a Registry built from the application's feature tree plus a
hidden group of builtins (help, version, exit), parses the global options
from argv and then runs either once (argv names a feature) or interactively
(prompt, resolve, invoke, repeat).

Global options
    --dev               development mode (separate data directory)
    --help, -h          same as the `help` builtin
    --version           same as the `version` builtin
    --verbose, -v       enable out_verbose() output
    --quiet, -q         silence out_unless_quiet() output
    --log-file <file>   append a debug log of the session to <file>
    --data-dir <dir>    override the data directory
    --json              ask features for JSON output (context.json)
    --no-autocomplete   disable live completion in interactive mode

Global options are recognized anywhere on the command line; in interactive
mode they may also be typed in front of or after a command and then apply to
that command only.

Interrupts
    While a feature runs, Ctrl-C (SIGINT) is delivered to the listeners the
    feature registered with add_interrupt_listener() or abort_event(); with no
    listener the feature is cancelled and reported as interrupted, and an
    interactive session returns to the prompt.
"""
import asyncio
import contextlib
import copy
import signal
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console
from rich.padding import Padding
from rich.text import Text

from . import helper
from ._logger import add_file_handler, get_logger, remove_handler
from .arguments import Option, catchall, parseargs
from .completion import FeatureCompleter
from .config import determine_data_dir
from .faults import *
from .features import Context, Feature, FeatureGroup, FeatureResult, Visibility
from .internals import SpecType
from .registry import Registry
from .tokens import tokenize
from .utils import pluralize

logger = get_logger(__name__)

GLOBAL_OPTIONS = (
    Option("--dev", flag=True, descr="run in development mode"),
    Option("--help", "-h", flag=True, descr="display usage information"),
    Option("--version", flag=True, descr="display the version"),
    Option("--verbose", "-v", flag=True, descr="print more output"),
    Option("--quiet", "-q", flag=True, descr="print less output"),
    Option("--log-file", metavar="file", descr="append a log of this session to a file"),
    Option("--data-dir", metavar="dir", descr="override the data directory"),
    Option("--json", flag=True, descr="format output as JSON"),
    Option("--no-autocomplete", flag=True, descr="disable autocompletion in interactive mode"),
)


async def _help(context, section=catchall("section or command", "the section or command to display help for")):
    """Display usage information."""
    app = context.app
    app.out(helper.render(
        app.registry,
        " ".join(section),
        name=app.name,
        version=app.version,
        interactive=context.interactive,
    ))


async def _version(context):
    app = context.app
    app.out(f"{app.name} {app.version}")


async def _exit(context):
    """Leave interactive mode."""
    return FeatureResult(exit=True)


class App(metaclass=SpecType):
    """
    A command-line application.

    Parameters
    - name, version: shown by `version` and `help`, name also names the data
      directory and prefixes faults.
    - nodes: the application's features and feature groups.
    - main: optional Feature run before every session (setup, authentication);
      its options are stripped from argv and its result patches the context.
    - prompt: optional callable(context) -> str shown before "> ".
    - argv: command-line arguments (sys.argv[1:] when omitted).
    - console: rich Console for output and faults (defaults to stdout/stderr).
    - **extra: initial context extras (context.extra).
    """
    __introspectable__ = ("name", "version", "registry", "development", "context")
    __displayable__ = ("name", "version", "development")

    def __init__(self, name, version, nodes=(), /, *, main=None, prompt=None, argv=None, console=None, **extra):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("App 'name' must be a non-empty string")
        if not isinstance(version, str):
            raise TypeError("App 'version' must be a string")
        if not isinstance(main, Feature | None):
            raise TypeError("App 'main' must be a feature")
        if prompt is not None and not callable(prompt):
            raise TypeError("App 'prompt' must be callable")

        self._name = name.strip()
        self._version = version
        self._main = main
        self._prompt = prompt
        self._stdout = console if console is not None else Console()
        self._stderr = console if console is not None else Console(stderr=True)

        builtins = FeatureGroup(
            Feature(_help, ("help", "h", "?"), builtin=True),
            Feature(_version, ("version", "v"), f"Display the version of {self._name}.", builtin=True),
            Feature(_exit, ("exit", "quit"), builtin=True),
            visibility=Visibility.HIDE,
        )
        self._registry = Registry(FeatureGroup(builtins, *nodes))

        argv = list(sys.argv[1:] if argv is None else argv)
        parsed = parseargs(GLOBAL_OPTIONS, argv, strict=False, raw=True)
        options = parsed.options

        self._development = options.get("--dev", False)
        self._data_flag = options.get("--data-dir")
        self._data_dir = None
        self._autocomplete = not options.get("--no-autocomplete", False)
        self._log_file = options.get("--log-file")
        self._argv = argv
        self._invocation = None
        self._running = None
        self._listeners = []

        positionals = parsed.positionals
        if options.get("--help"):
            positionals = ["help", *positionals]
        elif options.get("--version"):
            positionals = ["version", *positionals]

        self._context = Context(
            self,
            argv=positionals,
            verbose=options.get("--verbose", False),
            quiet=options.get("--quiet", False),
            json=options.get("--json", False),
            **extra
        )

    @property
    def data_dir(self):
        """
        The data directory, resolved (and created) on first access.
        """
        if self._data_dir is None:
            self._data_dir = determine_data_dir(self._name, self._data_flag, development=self._development)
        return self._data_dir

    # output

    def out(self, message, /, *, indentation=0):
        """
        Print a message to the output console. Strings are printed verbatim
        (no markup), other rich renderables as they are.
        """
        if isinstance(message, str):
            message = Text(message)
        self._stdout.print(Padding(message, (0, 0, 0, 4 * indentation)) if indentation else message)
        logger.debug("[out] %s", message)

    def out_unless_quiet(self, message, /, **options):
        if not (self._invocation or self._context).quiet:
            self.out(message, **options)

    def out_verbose(self, message, /, **options):
        if (self._invocation or self._context).verbose:
            self.out(message, **options)
        else:
            logger.debug("[out] %s", message)

    def out_json(self, data, /):
        self._stdout.print_json(data=data)
        logger.debug("[out] %r", data)

    def report(self, fault, /):
        """
        Print a fault to the error console, labelled with the application name.
        """
        overrides = {"prog": self._name}
        if (code := fault.options.get("code")) is not None and (docs := getdoc(code)) is not None:
            overrides["docs"] = docs
        self._stderr.print(copy.replace(fault, **overrides))
        logger.error("%s: %s", type(fault).__name__, fault)

    def fail(self, message, cause=None, /, *, note=None):
        """
        Raise a user-facing error.

        - fail("No such file") -> "No such file"
        - fail("upload", error) -> "Error trying to upload: <error>"
        - note is appended in parentheses.

        Faults passed as `cause` are re-raised unchanged.
        """
        if isinstance(cause, FeatureException):
            raise cause
        text = message if cause is None else f"Error trying to {message}: {cause}"
        if note is not None:
            text += f". ({note})"
        raise FeatureError(text) from cause

    def exit(self):
        """
        Leave the application without an error.
        """
        raise FeatureExit()

    # input

    async def prompt(self, message, /, *, obfuscate=False):
        """
        Ask the user for a line of input.
        """
        line = await PromptSession().prompt_async(message, is_password=obfuscate)
        logger.info("[in] %s%s", message, "***" if obfuscate else line)
        return line

    async def confirm(self, action=None, /):
        """
        Ask "Are you sure you want to <action>?", defaulting to no.
        """
        return await self.yes_no(f"Are you sure you want to {action}?" if action else "Are you sure?")

    async def yes_no(self, question, /, *, default=False):
        while True:
            answer = (await self.prompt(f"{question} {'[Y/n]' if default else '[y/N]'} ")).strip().lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            if not answer:
                return default
            self.report(FeatureError("Invalid input, please enter 'y' or 'n'!"))

    # interrupts

    def add_interrupt_listener(self, listener, /):
        """
        Call `listener()` on the next interrupt (Ctrl-C) while a feature runs.

        Listeners fire once and are forgotten when the feature returns. A
        feature that registers one is expected to wind down by itself; without
        listeners an interrupt cancels the feature instead.
        """
        if not callable(listener):
            raise TypeError("add_interrupt_listener() argument must be callable")
        self._listeners.append(listener)

    def abort_event(self):
        """
        An asyncio.Event set by the next interrupt (see add_interrupt_listener).
        """
        event = asyncio.Event()
        self.add_interrupt_listener(event.set)
        return event

    def interrupt(self):
        """
        Deliver an interrupt: fire the pending listeners or, when there are
        none, cancel the running feature. Does nothing between features.
        """
        listeners, self._listeners = self._listeners, []
        logger.info("interrupt (%d %s)", len(listeners), pluralize("listener", len(listeners)))
        for listener in listeners:
            listener()
        if not listeners and self._running is not None:
            self._running.cancel()

    @contextlib.contextmanager
    def _trap_interrupts(self):
        loop = asyncio.get_running_loop()
        previous = signal.getsignal(signal.SIGINT)
        try:
            loop.add_signal_handler(signal.SIGINT, self.interrupt)
            trapped = True
        except (NotImplementedError, RuntimeError, ValueError) as error:
            # no loop signal support here (Windows, worker thread): Ctrl-C keeps its default behavior
            logger.debug("interrupts not trapped: %s", error)
            trapped = False
        try:
            yield
        finally:
            if trapped:
                loop.remove_signal_handler(signal.SIGINT)
                if previous is not None:
                    signal.signal(signal.SIGINT, previous)

    # main

    async def _invoke(self, context, /):
        # out_verbose() and out_unless_quiet() follow the running invocation
        self._invocation = context
        self._running = task = asyncio.ensure_future(context.feature.invoke(context))
        try:
            with self._trap_interrupts():
                return await task
        except (FeatureException, FeatureExit):
            raise
        except asyncio.CancelledError:
            # the session itself is being cancelled, not just the feature
            if asyncio.current_task().cancelling():
                raise
            logger.debug("feature %r interrupted", context.cmd)
            raise InterruptedFeatureError(f"Interrupted: {context.cmd}") from None
        except Exception as error:
            logger.debug("feature %r failed", context.cmd, exc_info=True)
            raise DelegatedFeatureError(
                f"Error trying to run {context.cmd}: {error}",
                hint="run again with --log-file <file> for the full traceback"
            ) from error
        finally:
            self._invocation = self._running = None
            self._listeners.clear()

    async def main(self):
        """
        Run the application.

        Returns
        - True on success, False when the invocation ended with a fault.
        """
        status = True
        # attached per run, so an App that never runs holds no open file
        log_handler = add_file_handler(self._log_file) if self._log_file else None
        logger.info("> %s", " ".join(self._argv))
        try:
            context = self._context

            if context.argv:
                if (resolution := self._registry.resolve(context.argv)) is None:
                    raise UnknownCommandError(
                        f"Unknown command: {' '.join(context.argv)}",
                        hint=f"run `{self._name} help` for a list of commands"
                    )
                context = copy.replace(context, cmd=resolution.cmd, feature=resolution.feature, argv=resolution.argv)

            if self._main is not None:
                result = await self._invoke(copy.replace(self._context, cmd=self._main.name, feature=self._main))
                if result is not None:
                    if result.exit:
                        return status
                    context = copy.replace(context, **result.patch)
                context = copy.replace(context, argv=parseargs(self._main.arguments, context.argv, strict=False, raw=True).positionals)

            if context.feature is not None:
                await self._invoke(context)
            else:
                await self._interactive(context)
        except FeatureExit:
            pass
        except FeatureException as fault:
            self.report(fault)
            status = False
        finally:
            if log_handler is not None:
                remove_handler(log_handler)
        return status

    async def _interactive(self, context, /):
        completer = FeatureCompleter(self._registry, context) if self._autocomplete else None
        session = PromptSession(history=InMemoryHistory(), completer=completer, complete_while_typing=completer is not None)

        while True:
            message = f"{self._prompt(context)} > " if self._prompt is not None else "> "
            try:
                line = await session.prompt_async(message)
            except KeyboardInterrupt:
                continue
            except EOFError:
                break
            logger.info("[in] %s%s", message, line)

            # global options typed with the command apply to this command only
            parsed = parseargs(GLOBAL_OPTIONS, [*context.argv, *tokenize(line)], strict=False, raw=True)
            if not parsed.positionals:
                continue
            if (resolution := self._registry.resolve(parsed.positionals)) is None:
                self.report(UnknownCommandError(
                    f"Unknown command: {parsed.positionals[0].lower()}",
                    hint="type `help` for a list of commands"
                ))
                continue

            invocation = copy.replace(
                context,
                cmd=resolution.cmd,
                feature=resolution.feature,
                argv=resolution.argv,
                interactive=True,
                verbose=context.verbose or parsed.options.get("--verbose", False),
                quiet=context.quiet or parsed.options.get("--quiet", False),
                json=context.json or parsed.options.get("--json", False),
            )
            try:
                result = await self._invoke(invocation)
            except FeatureException as fault:
                self.report(fault)
                continue

            if result is None:
                continue
            if result.exit:
                break
            context = copy.replace(context, **result.patch)
            self._context = context
            if completer is not None:
                completer.context = context


__all__ = (
    "App",
    "GLOBAL_OPTIONS",
)
