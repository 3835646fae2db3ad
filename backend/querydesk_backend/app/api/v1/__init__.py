"""API v1 package."""

from . import data, sessions

__all__ = ["data", "sessions"]
