"""Core domain entities."""

from .memory import Actor, Comment, Memory

__all__ = ["Actor", "Comment", "Memory"]
