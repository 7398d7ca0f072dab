"""Lexical scopes for flattened code.

Flattening moves callback bodies into the enclosing block, so names
declared in sibling callbacks can collide. A ``Scope`` hands out unique
names and records renames; a *frame* scope shares its parent's name
table (the callback body lands in the same block) but keeps its own
renames.
"""

from typing import Dict, Optional, Set, Tuple


class Scope:
    def __init__(self, parent: Optional["Scope"] = None, shares_names: bool = False):
        self.parent = parent
        self.shares_names = shares_names and parent is not None
        self._names: Set[str] = set()
        self._renames: Dict[str, str] = {}
        self._responses: Dict[str, Tuple[str, Optional[str]]] = {}

    def _name_table(self) -> Set[str]:
        scope = self
        while scope.shares_names:
            scope = scope.parent
        return scope._names

    def is_declared(self, name: str) -> bool:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._names:
                return True
            scope = scope.parent
        return False

    def declare(self, name: str) -> str:
        """Reserve ``name`` (or ``name2``, ``name3``…) and return it."""
        candidate = name
        counter = 2
        while self.is_declared(candidate):
            candidate = f"{name}{counter}"
            counter += 1
        self._name_table().add(candidate)
        return candidate

    def reserve(self, name: str) -> None:
        """Mark a name as taken without renaming anything."""
        self._name_table().add(name)

    def bind(self, original: str, name: str) -> None:
        self._renames[original] = name

    def bind_response(self, original: str, var: str, body_var: Optional[str] = None) -> None:
        """Bind a callback parameter that holds an intercepted or API response."""
        self._renames[original] = var
        self._responses[original] = (var, body_var)

    def response(self, name: str) -> Optional[Tuple[str, Optional[str]]]:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._responses:
                return scope._responses[name]
            if name in scope._renames:
                return None
            scope = scope.parent
        return None

    def resolve(self, name: str) -> str:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._renames:
                return scope._renames[name]
            scope = scope.parent
        return name

    def block(self) -> "Scope":
        """Child scope for a nested ``{ }`` block."""
        return Scope(self)

    def frame(self) -> "Scope":
        """Child scope for a callback body flattened into this block."""
        return Scope(self, shares_names=True)
