"""Integration adapters for XML element libraries.

This module converts finished document trees into ``xml.etree.ElementTree``
and ``lxml.etree`` elements and back, following the never-fail philosophy:
a conversion that cannot be performed returns an unsuccessful
ConversionResult instead of raising.

Text nodes are mapped onto the ``text``/``tail`` slots of the element API.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from robust_markup_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from robust_markup_parser.tree import ROOT_TAG, Element, ParseResult, TextNode


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    Subclasses provide the element factory of their target library; the
    tree walk in both directions is shared.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def _etree_module(self) -> Any:
        """Import and return the target ``etree`` module."""

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Convert the document tree of a ParseResult to a target element.

        Args:
            parse_result: Result whose tree is converted

        Returns:
            ConversionResult whose ``converted_data`` is the root element
        """
        start_time = time.time()

        if not self.is_available():
            return self._create_error_result(
                f"{self.metadata.target_library} is not installed",
                parse_result,
                (time.time() - start_time) * 1000
            )
        if not parse_result.success:
            return self._create_error_result(
                "ParseResult is not successful",
                parse_result,
                (time.time() - start_time) * 1000
            )

        etree = self._etree_module()
        try:
            target_root = self._convert_element(parse_result.tree, etree)
        except ValueError as e:
            # lxml rejects tag names and text that are not valid XML
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                parse_result,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._logger.debug(
            "Converted tree",
            extra={"adapter": self.metadata.name, "processing_time_ms": processing_time}
        )
        return ConversionResult(
            success=True,
            converted_data=target_root,
            original_data=parse_result,
            conversion_time_ms=processing_time,
            metadata={"element_count": sum(1 for _ in parse_result.tree.iter_elements())},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a target element into a document tree.

        Args:
            target_data: Element of the target library

        Returns:
            ConversionResult whose ``converted_data`` is an Element
        """
        start_time = time.time()

        if not isinstance(getattr(target_data, "tag", None), str):
            return self._create_error_result(
                "Target data is not a valid element",
                target_data,
                (time.time() - start_time) * 1000
            )

        try:
            root = self._element_from_target(target_data)
        except ValueError as e:
            # Elements with an empty tag name have no document tree form
            return self._create_error_result(
                f"Failed to convert from {self.metadata.target_library}: {e}",
                target_data,
                (time.time() - start_time) * 1000
            )
        if root.tag != ROOT_TAG:
            root = Element(ROOT_TAG, [root])

        processing_time = (time.time() - start_time) * 1000
        return ConversionResult(
            success=True,
            converted_data=root,
            original_data=target_data,
            conversion_time_ms=processing_time,
            metadata={"original_tag": target_data.tag},
        )

    def _convert_element(self, element: Element, etree: Any) -> Any:
        target_root = etree.Element(element.tag)
        # (source, target) pairs whose children are still to be converted
        pending = [(element, target_root)]
        while pending:
            source, target = pending.pop()
            last_child = None
            for child in source.children:
                if isinstance(child, TextNode):
                    if last_child is None:
                        target.text = (target.text or "") + child.content
                    else:
                        last_child.tail = (last_child.tail or "") + child.content
                else:
                    last_child = etree.SubElement(target, child.tag)
                    pending.append((child, last_child))
        return target_root

    def _element_from_target(self, target: Any) -> Element:
        root = Element(target.tag)
        pending = [(target, root)]
        while pending:
            source, element = pending.pop()
            if source.text:
                element.append_child(TextNode(source.text))
            for child in source:
                # Comments and processing instructions have a non-string tag
                if isinstance(child.tag, str):
                    child_element = Element(child.tag)
                    element.append_child(child_element)
                    pending.append((child, child_element))
                if child.tail:
                    element.append_child(TextNode(child.tail))
        return root

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(error_message, extra={"adapter": self.metadata.name})
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class ElementTreeAdapter(IntegrationAdapter):
    """Adapter for conversion with xml.etree.ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            target_library="xml.etree.ElementTree",
            description="Conversion between document trees and ElementTree",
        )

    def is_available(self) -> bool:
        return True

    def _etree_module(self) -> Any:
        import xml.etree.ElementTree as ET
        return ET


class LxmlAdapter(IntegrationAdapter):
    """Adapter for conversion with lxml.etree.

    lxml validates names, so trees holding tag names such as ``a href=x``
    cannot be converted and produce an unsuccessful result.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            target_library="lxml",
            description="Conversion between document trees and lxml.etree",
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def _etree_module(self) -> Any:
        import lxml.etree
        return lxml.etree
