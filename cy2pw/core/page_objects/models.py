"""Data models for Cypress page-object classes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ..then_patterns.models import Complexity


class ExportKind(str, Enum):
    DEFAULT = "default"
    NAMED = "named"
    NONE = "none"


class MethodRole(str, Enum):
    """What a page-object method mostly does."""

    VISIT = "visit"
    INPUT = "input"
    CLICK = "click"
    COMPOSITE = "composite"  # body only calls other methods of the class
    OTHER = "other"


@dataclass
class PageObjectProperty:
    name: str
    type: Optional[str] = None


@dataclass
class PageObjectMethod:
    """One method (or getter) of a page-object class."""

    name: str
    parameters: List[str] = field(default_factory=list)
    body: str = ""
    role: MethodRole = MethodRole.OTHER
    cypress_commands_used: List[str] = field(default_factory=list)
    complexity: Complexity = Complexity.LOW
    calls_other_methods: bool = False
    called_method_names: List[str] = field(default_factory=list)
    is_getter: bool = False
    is_async: bool = False
    is_static: bool = False
    returns_locator: bool = False
    node: Any = None

    @property
    def stays_sync(self) -> bool:
        """Getters and locator factories keep returning locators synchronously."""
        return self.is_getter or self.returns_locator


@dataclass
class PageObjectModel:
    """A class found in a page-object file."""

    class_name: str
    export_kind: ExportKind = ExportKind.NONE
    has_constructor: bool = False
    constructor_parameters: List[str] = field(default_factory=list)
    properties: List[PageObjectProperty] = field(default_factory=list)
    methods: List[PageObjectMethod] = field(default_factory=list)
    extends: Optional[str] = None
    complexity: Complexity = Complexity.LOW
    file_path: str = ""
    # member access text ("this.emailInput", "this.row()") → locator-returning
    locator_members: Set[str] = field(default_factory=set)
    node: Any = None

    def method(self, name: str) -> Optional[PageObjectMethod]:
        return next((m for m in self.methods if m.name == name), None)

    @property
    def async_methods(self) -> Set[str]:
        return {m.name for m in self.methods if not m.stays_sync and m.name != "constructor"}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_name": self.class_name,
            "export_kind": self.export_kind.value,
            "extends": self.extends,
            "has_constructor": self.has_constructor,
            "constructor_parameters": list(self.constructor_parameters),
            "properties": [{"name": p.name, "type": p.type} for p in self.properties],
            "methods": [
                {
                    "name": m.name,
                    "role": m.role.value,
                    "complexity": m.complexity.value,
                    "cypress_commands_used": list(m.cypress_commands_used),
                    "called_method_names": list(m.called_method_names),
                    "is_getter": m.is_getter,
                }
                for m in self.methods
            ],
            "complexity": self.complexity.value,
        }


@dataclass
class PageObjectTransformResult:
    """Outcome of transforming one page-object file."""

    converted_code: str
    models: List[PageObjectModel] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    review_reasons: List[str] = field(default_factory=list)
    success: bool = True

    @property
    def class_async_methods(self) -> Dict[str, Set[str]]:
        return {m.class_name: m.async_methods for m in self.models}
