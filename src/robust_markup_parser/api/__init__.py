"""Public parsing API for robust markup parsing.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Configured parser - MarkupParser class
- Adapters: ElementTreeAdapter, LxmlAdapter
"""

from .adapters import (
    AdapterMetadata,
    ConversionResult,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
)
from .parser import MarkupParser, parse, parse_file, parse_string

__all__ = [
    "AdapterMetadata",
    "ConversionResult",
    "ElementTreeAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "MarkupParser",
    "parse",
    "parse_file",
    "parse_string",
]
