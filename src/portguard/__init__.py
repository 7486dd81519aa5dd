"""Portguard: single-active client process supervisor."""

__version__ = "0.1.0"

from .errors import PortguardError

__all__ = ["PortguardError", "__version__"]
