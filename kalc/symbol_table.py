"""
kalc - Symbol Table
Maps names to their most recent declaration. Functions are keyed as
``name()`` so a variable and a function may share a name.
"""

from typing import Dict, Optional

from .ast_nodes import Stmt
from .prelude import is_prelude_func


def function_key(name: str) -> str:
    return f"{name}()"


class SymbolTable:
    def __init__(self):
        self._entries: Dict[str, Stmt] = {}

    def insert(self, key: str, stmt: Stmt) -> None:
        """Create or overwrite the entry for ``key``."""
        self._entries[key] = stmt

    def get(self, key: str) -> Optional[Stmt]:
        return self._entries.get(key)

    def get_func(self, name: str) -> Optional[Stmt]:
        return self._entries.get(function_key(name))

    def contains_var(self, name: str) -> bool:
        return name in self._entries

    def contains_func(self, name: str) -> bool:
        """True for built-in functions and functions declared so far."""
        return is_prelude_func(name) or function_key(name) in self._entries

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
