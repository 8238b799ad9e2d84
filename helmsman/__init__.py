__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'helmsman'
__author__ = 'Eiko Reishin (影皇嶺臣)'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.1.0"

from .utils import *
from .tokens import *
from .faults import *
from .arguments import *
from .paths import *
from .features import *
from .registry import *
from .completion import *
from .config import *
from .app import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 1, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the utilities
__all__ += utils.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokenizer
__all__ += tokens.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the arguments
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the path arguments
__all__ += paths.__all__  # type: ignore[attr-defined]
# Load the exposed API of the features
__all__ += features.__all__  # type: ignore[attr-defined]
# Load the exposed API of the registry
__all__ += registry.__all__  # type: ignore[attr-defined]
# Load the exposed API of the completion bridge
__all__ += completion.__all__  # type: ignore[attr-defined]
# Load the exposed API of the configuration
__all__ += config.__all__  # type: ignore[attr-defined]
# Load the exposed API of the application
__all__ += app.__all__  # type: ignore[attr-defined]
