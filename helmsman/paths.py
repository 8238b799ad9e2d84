"""
Local filesystem arguments.

- local_path(argument, restrict=..., check_exists=...) turns a string
  argument into an absolute local path, optionally checked to exist and to be
  a file or a directory, and attaches a filesystem autocompleter to its spec
  (positional and catch-all arguments).
- filesystem_completer(readdir) builds such an autocompleter on top of any
  directory listing coroutine, so remote or virtual filesystems can reuse the
  same candidate logic; local_readdir() is the local implementation.

Filesystem calls go through anyio.Path, which runs them in a worker thread so
a slow disk never blocks the prompt.
"""
import os

import anyio

from ._logger import get_logger
from .arguments import Argument, Option, transform
from .faults import NoSuchPathError, PathTypeError
from .utils import *

logger = get_logger(__name__)


async def local_readdir(context, directory, /):
    """
    List `directory` on the local filesystem as (name, is_directory) pairs.
    """
    entries = []
    async for entry in anyio.Path(directory).iterdir():
        entries.append((entry.name, await entry.is_dir()))
    return entries


def filesystem_completer(readdir, /, *, directories_only=False):
    """
    Build an autocomplete callback listing filesystem entries.

    Behavior
    - The typed text is split at its last "/": the head is the directory to
      list (the current one when there is no "/"), the tail is the prefix the
      entries must start with. Double quotes around the text (or an opening
      one only, while the segment is being typed) are ignored.
    - Directories are suffixed with "/", so accepting one continues into it.
    - With directories_only, files are left out.
    - Candidates containing spaces are wrapped in double quotes, which keeps
      them a single segment for the tokenizer.
    - Listing failures (missing directory, permissions) yield no candidates.
    """
    if not callable(readdir):
        raise TypeError("filesystem_completer() argument must be callable")

    async def completer(context, text):
        text = text.strip('"')
        head, separator, tail = text.rpartition("/")
        directory = (head or "/") if separator else "."
        try:
            entries = await readdir(context, directory)
        except OSError as error:
            logger.debug("cannot list %r for completion: %s", directory, error)
            return []

        candidates = []
        for name, is_directory in sorted(entries):
            if not name.startswith(tail) or (directories_only and not is_directory):
                continue
            candidate = f"{head}{separator}{name}{'/' if is_directory else ''}"
            candidates.append(f'"{candidate}"' if " " in candidate else candidate)
        return candidates

    return rename(completer, "completer")


def local_path(argument, /, *, restrict=Unset, check_exists=True):
    """
    Resolve a string argument to an absolute local path.

    Parameters
    - restrict: Unset | "file" | "directory"; when set, the path must be of
      that kind (only checked together with check_exists) and completion is
      limited to directories for "directory".
    - check_exists: when True, a missing path is a NoSuchPathError and a path
      of the wrong kind a PathTypeError.

    None (an absent optional value) passes through unchanged.
    """
    if not isinstance(argument, Argument):
        raise TypeError("local_path() argument must be a built argument")
    if restrict not in (Unset, "file", "directory"):
        raise ValueError("local_path() 'restrict' must be 'file' or 'directory'")

    kind = coalesce(restrict, "path")

    async def check(value):
        if value is None:
            return None
        path = os.path.abspath(value)
        if not check_exists:
            return path
        try:
            target = anyio.Path(path)
            is_directory = await target.is_dir()
            exists = is_directory or await target.exists()
        except OSError as error:
            raise NoSuchPathError(f"Cannot access local {kind}: {path} ({error.strerror})") from error
        if not exists:
            raise NoSuchPathError(f"No such local {kind}: {path}", hint="check the spelling or use an absolute path")
        if restrict == "directory" and not is_directory:
            raise PathTypeError(f"Not a directory: {path}")
        if restrict == "file" and is_directory:
            raise PathTypeError(f"Not a file: {path}")
        return path

    overrides = {"type": kind}
    # option values are not completed
    if not isinstance(argument.spec, Option):
        overrides["autocomplete"] = filesystem_completer(local_readdir, directories_only=restrict == "directory")
    return transform(argument, check, **overrides)


__all__ = (
    "local_path",
    "local_readdir",
    "filesystem_completer",
)
