"""cy2pw selective conversion: whole-project orchestration.

Public API:
    SelectiveConverter(settings).convert_project(source_root, output_root) → SelectiveConversionResult
    SelectiveConverter.determine_output_path(path, source_root, output_root) → str
"""

from .converter import SelectiveConverter, relink_imports
from .models import ConversionOutcome, PerformanceMetrics, SelectiveConversionResult

__all__ = [
    "SelectiveConverter",
    "relink_imports",
    "ConversionOutcome",
    "PerformanceMetrics",
    "SelectiveConversionResult",
]
