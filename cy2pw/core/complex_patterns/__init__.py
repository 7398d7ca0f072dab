"""cy2pw whole-file conversion: test structure, custom commands, intercepts.

Public API:
    ComplexPatternConverter(rules, registry, page_objects).convert_file(source, path, ctx) → FileConversionResult
    CustomCommandRegistry.from_source(source) / .scan_support_files(root)
    convert_intercept(call, ctx) → ConvertedStatement
"""

from .converter import PLAYWRIGHT_MODULE, ComplexPatternConverter, convert_file, playwright_import
from .custom_commands import DEFAULT_SUPPORT_DIRS, CustomCommandHandler, CustomCommandRegistry
from .intercepts import REQUEST_PROPERTIES, RouteHandlerConverter, convert_intercept
from .models import ConversionSummary, CustomCommand, FileConversionResult
from .structure import HOOK_FUNCTIONS, SUITE_FUNCTIONS, TEST_FUNCTIONS, StructureConverter

__all__ = [
    "ComplexPatternConverter",
    "convert_file",
    "playwright_import",
    "PLAYWRIGHT_MODULE",
    "CustomCommandHandler",
    "CustomCommandRegistry",
    "DEFAULT_SUPPORT_DIRS",
    "RouteHandlerConverter",
    "convert_intercept",
    "REQUEST_PROPERTIES",
    "StructureConverter",
    "SUITE_FUNCTIONS",
    "TEST_FUNCTIONS",
    "HOOK_FUNCTIONS",
    "ConversionSummary",
    "CustomCommand",
    "FileConversionResult",
]
