"""
Application configuration: where an application keeps its data.

determine_data_dir() picks, in order
1. the --data-dir flag,
2. the <NAME>_DATA_DIR environment variable (name upper-cased, hyphens
   replaced by underscores),
3. the platform configuration directory: %APPDATA% (Windows),
   ~/Library/Application Support (macOS), $XDG_CONFIG_HOME or ~/.config
   (everything else), or ~/.<name> when that directory exists.

For the platform default, <name> is appended unless the path already
mentions it and "dev" is appended in development mode (--dev). The directory
is created when missing.
"""
import os
import sys

from ._logger import get_logger

logger = get_logger(__name__)


def environ_key(name, suffix, /):
    """
    Environment variable name for an application setting:
    environ_key("my-cli", "data dir") -> "MY_CLI_DATA_DIR".
    """
    return "_".join((name + " " + suffix).upper().replace("-", " ").split())


def _platform_dir():
    match sys.platform:
        case "win32":
            if not (appdata := os.environ.get("APPDATA")):
                raise RuntimeError("cannot determine the configuration directory: %APPDATA% is not set")
            return os.path.abspath(appdata)
        case "darwin":
            return os.path.join(os.path.expanduser("~"), "Library", "Application Support")
        case _:
            if xdg := os.environ.get("XDG_CONFIG_HOME"):
                return os.path.abspath(xdg)
            return os.path.join(os.path.expanduser("~"), ".config")


def determine_data_dir(name, flag=None, /, *, development=False):
    """
    Resolve (and create) the data directory of application `name`.

    Returns
    - the absolute path of the directory.
    """
    if flag:
        directory = os.path.abspath(flag)
    elif override := os.environ.get(environ_key(name, "data dir")):
        directory = os.path.abspath(override)
    else:
        directory = _platform_dir()
        if os.path.isdir(legacy := os.path.join(os.path.expanduser("~"), "." + name)):
            directory = legacy
        if name not in directory:
            directory = os.path.join(directory, name)
        if development:
            directory = os.path.join(directory, "dev")

    if not os.path.isdir(directory):
        logger.info("creating data directory %s", directory)
        os.makedirs(directory, exist_ok=True)
    return directory


__all__ = (
    "determine_data_dir",
    "environ_key",
)
