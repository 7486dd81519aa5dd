"""Base error type shared across Portguard components."""

from __future__ import annotations


class PortguardError(RuntimeError):
    """Base class for errors whose message is suitable for direct display."""


__all__ = ["PortguardError"]
