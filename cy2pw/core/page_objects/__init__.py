"""cy2pw page objects: Cypress page-object classes → Playwright.

Public API:
    is_page_object(source) → bool
    analyze(source, path) → [PageObjectModel]
    transform(source, path, ctx) → PageObjectTransformResult
"""

from .analyzer import PageObjectAnalyzer, analyze, is_page_object
from .models import (
    ExportKind,
    MethodRole,
    PageObjectMethod,
    PageObjectModel,
    PageObjectProperty,
    PageObjectTransformResult,
)
from .transformer import PAGE_IMPORT_JS, PAGE_IMPORT_TS, PageObjectTransformer, transform

__all__ = [
    "PageObjectAnalyzer",
    "PageObjectTransformer",
    "analyze",
    "is_page_object",
    "transform",
    "ExportKind",
    "MethodRole",
    "PageObjectMethod",
    "PageObjectModel",
    "PageObjectProperty",
    "PageObjectTransformResult",
    "PAGE_IMPORT_JS",
    "PAGE_IMPORT_TS",
]
