"""Pure domain logic, free of persistence concerns."""

from .memory_rules import AccessControl, MemoryValidator, NewComment, NewMemory, new_memory_id, toggle_like

__all__ = ["AccessControl", "MemoryValidator", "NewComment", "NewMemory", "new_memory_id", "toggle_like"]
