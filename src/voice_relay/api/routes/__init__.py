"""API route modules."""

from . import assistant, voices

__all__ = ["assistant", "voices"]
