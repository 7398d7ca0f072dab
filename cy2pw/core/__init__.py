# Lazy imports to avoid parsing-stack imports on light entry points.
# This allows targeted imports like `from cy2pw.core.config import load_settings`
# without loading tree-sitter grammars.

__all__ = [
    # Orchestration
    "SelectiveConverter",
    "SelectiveConversionResult",
    # Components
    "ProjectTypeAnalyzer",
    "CommandMapper",
    "ComplexPatternConverter",
    "PageObjectTransformer",
    "convert_snippet",
    # Quality
    "score",
    "validate_output",
    # Settings
    "ConverterSettings",
    "load_settings",
]

_IMPORT_MAP = {
    "SelectiveConverter": ".selective",
    "SelectiveConversionResult": ".selective",
    "ProjectTypeAnalyzer": ".classifier",
    "CommandMapper": ".mapping",
    "ComplexPatternConverter": ".complex_patterns",
    "PageObjectTransformer": ".page_objects",
    "convert_snippet": ".then_patterns",
    "score": ".quality",
    "validate_output": ".quality",
    "ConverterSettings": ".config",
    "load_settings": ".config",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'cy2pw.core' has no attribute {name}")
