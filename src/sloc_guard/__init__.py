"""sloc-guard - SLOC and directory structure limits for source trees."""

__version__ = "0.1.0"

from .exceptions import SlocGuardError

__all__ = ["__version__", "SlocGuardError"]
