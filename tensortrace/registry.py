"""Registry of element formatters.

This module provides the pieces that turn raw buffer bytes into text:
- TraceFormat: The output grammars a sink can emit
- ElementFormatter: Abstract base for a grammar, with the measure-then-render
  entry point shared by all grammars
- FormatterRegistry: Maps each TraceFormat to a formatter instance

Custom grammars can be plugged in by registering a formatter for a format.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence

from .dtypes import ElementType
from .errors import FormatterError, InsufficientSpaceError

# Sentinel for max_element_count / max_depth meaning "no cap".
UNBOUNDED = -1


class TraceFormat(Enum):
    """Output grammar used by a stream sink."""

    GENERIC = 'generic'
    SCRIPT_LITERAL = 'script'


class ElementFormatter(ABC):
    """Abstract base class for element formatters.

    Subclasses implement render(), which returns the full text for a buffer.
    Callers go through format_elements(), which follows the two-pass protocol:
    a call without a destination (or with one that is too short) raises
    InsufficientSpaceError carrying the required length, and a call with a
    large enough destination writes the text and returns its length.

    Examples:
        >>> formatter = GenericFormatter()
        >>> try:
        ...     formatter.format_elements(data, (2,), ElementType.FLOAT_32)
        ... except InsufficientSpaceError as e:
        ...     scratch = bytearray(e.required_length)
        >>> length = formatter.format_elements(data, (2,), ElementType.FLOAT_32,
        ...                                    destination=scratch)
    """

    @abstractmethod
    def render(self, contents, shape: Sequence[int], element_type: ElementType,
               max_element_count: int, max_depth: int) -> str:
        """Render buffer contents as text.

        Args:
            contents: Bytes-like object with the little-endian element data
            shape: Dimension sizes
            element_type: ElementType of the data
            max_element_count: Elements to print before eliding, or UNBOUNDED
            max_depth: Dimensions to expand before eliding, or UNBOUNDED

        Returns:
            str: ASCII text for the buffer
        """
        pass

    def format_elements(self, contents, shape: Sequence[int], element_type: ElementType,
                        max_element_count: int = UNBOUNDED, max_depth: int = UNBOUNDED,
                        destination: bytearray | None = None) -> int:
        """Measure or render buffer contents into a caller-owned destination.

        Args:
            contents: Bytes-like object with the element data
            shape: Dimension sizes
            element_type: ElementType of the data
            max_element_count: Elements to print before eliding (default: UNBOUNDED)
            max_depth: Dimensions to expand before eliding (default: UNBOUNDED)
            destination: Scratch block to write into, or None to measure

        Returns:
            int: Number of bytes written to the start of `destination`

        Raises:
            InsufficientSpaceError: If `destination` is None or too short
            FormatterError: If the contents cannot be rendered
        """
        try:
            text = self.render(contents, shape, element_type, max_element_count, max_depth)
            encoded = text.encode('ascii')
        except FormatterError:
            raise
        except (ValueError, TypeError) as e:
            raise FormatterError(f"Cannot format {element_type.abbreviation} buffer: {e}") from e

        if destination is None or len(destination) < len(encoded):
            raise InsufficientSpaceError(len(encoded))
        destination[:len(encoded)] = encoded
        return len(encoded)

    def format_buffer_view(self, buffer_view, max_element_count: int = UNBOUNDED,
                           max_depth: int = UNBOUNDED,
                           destination: bytearray | None = None) -> int:
        """Map a whole buffer view and run format_elements() over it.

        Raises:
            MappingError: If the buffer cannot be mapped
            InsufficientSpaceError: If `destination` is None or too short
            FormatterError: If the contents cannot be rendered
        """
        with buffer_view.map_range() as mapping:
            return self.format_elements(
                mapping.contents, buffer_view.shape, buffer_view.element_type,
                max_element_count, max_depth, destination
            )


class FormatterRegistry:
    """Central registry mapping trace formats to formatters.

    Built-in formatters:
    - TraceFormat.GENERIC -> GenericFormatter
    - TraceFormat.SCRIPT_LITERAL -> ScriptLiteralFormatter

    Attributes:
        _formatters: Dict mapping TraceFormat to ElementFormatter instances
    """

    def __init__(self):
        """Initialize registry and register the built-in formatters."""
        self._formatters: dict[TraceFormat, ElementFormatter] = {}
        self._register_defaults()

    def _register_defaults(self):
        from .formatters import GenericFormatter, ScriptLiteralFormatter

        self.register_formatter(TraceFormat.GENERIC, GenericFormatter())
        self.register_formatter(TraceFormat.SCRIPT_LITERAL, ScriptLiteralFormatter())

    def register_formatter(self, trace_format: TraceFormat, formatter: ElementFormatter):
        """Register (or replace) the formatter for a trace format.

        Args:
            trace_format: TraceFormat the formatter renders
            formatter: ElementFormatter instance

        Examples:
            >>> registry = FormatterRegistry()
            >>> registry.register_formatter(TraceFormat.GENERIC, MyFormatter())
        """
        self._formatters[trace_format] = formatter

    def get_formatter(self, trace_format: TraceFormat) -> ElementFormatter:
        """Get the formatter for a trace format.

        Raises:
            ValueError: If no formatter is registered for the format
        """
        if trace_format not in self._formatters:
            raise ValueError(
                f"No formatter registered for {trace_format}. "
                f"Registered: {', '.join(f.value for f in self._formatters)}"
            )
        return self._formatters[trace_format]
