"""Element formatters for the supported trace formats.

This module provides concrete implementations of the ElementFormatter
interface:
- GenericFormatter: Compact dump, e.g. "2x2xf32=[1 2][3 4]"
- ScriptLiteralFormatter: Python list literal, e.g. "[[1.0, 2.0], [3.0, 4.0]]"

Both decode the raw little-endian bytes with numpy and share the same walk
over the shape, so element and depth caps behave identically: once the element
budget runs out the remaining entries become a single "...", and dimensions
nested deeper than max_depth collapse to "...".
"""

import math

from .dtypes import ElementType, NUMPY_STORAGE_DTYPES
from .errors import FormatterError
from .registry import ElementFormatter

ELLIPSIS = '...'


def decode_elements(contents, element_type: ElementType, element_count: int) -> list:
    """Decode raw buffer bytes into a flat list of Python numbers.

    Args:
        contents: Bytes-like object holding at least `element_count` elements
        element_type: ElementType of the data
        element_count: Number of elements to decode

    Returns:
        list: Python floats or ints in row-major order

    Raises:
        FormatterError: If the buffer is too short for the shape
    """
    import numpy as np

    needed = element_count * element_type.byte_size
    if len(contents) < needed:
        raise FormatterError(
            f"Buffer holds {len(contents)} bytes, {needed} needed for "
            f"{element_count} {element_type.abbreviation} elements"
        )
    if element_count == 0:
        return []

    values = np.frombuffer(contents, dtype=NUMPY_STORAGE_DTYPES[element_type],
                           count=element_count)
    if element_type == ElementType.BFLOAT_16:
        # bf16 is the high half of an f32 bit pattern.
        values = (values.astype(np.uint32) << 16).view(np.float32)
    return values.tolist()


class _ElementBudget:
    def __init__(self, max_element_count: int):
        self.remaining = None if max_element_count < 0 else max_element_count

    def take(self) -> bool:
        if self.remaining is None:
            return True
        if self.remaining == 0:
            return False
        self.remaining -= 1
        return True

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0


class _NestedFormatter(ElementFormatter):
    """Shared shape walk; subclasses pick separators and value spelling."""

    item_separator = ' '
    row_separator = ''
    bracket_outermost = False

    def format_value(self, value, element_type: ElementType) -> str:
        raise NotImplementedError

    def format_prefix(self, shape, element_type: ElementType) -> str:
        return ''

    def render(self, contents, shape, element_type, max_element_count, max_depth):
        shape = tuple(shape)
        flat = decode_elements(contents, element_type, math.prod(shape))
        budget = _ElementBudget(max_element_count)

        if not shape:
            body = self.format_value(flat[0], element_type) if budget.take() else ELLIPSIS
        else:
            body = self._render_level(flat, shape, 0, 0, max_depth, budget, element_type)
            if self.bracket_outermost:
                body = f"[{body}]"
        return self.format_prefix(shape, element_type) + body

    def _render_level(self, flat, shape, offset, depth, max_depth, budget, element_type):
        if 0 <= max_depth <= depth:
            return ELLIPSIS

        if len(shape) == 1:
            items = []
            for i in range(shape[0]):
                if not budget.take():
                    items.append(ELLIPSIS)
                    break
                items.append(self.format_value(flat[offset + i], element_type))
            return self.item_separator.join(items)

        stride = math.prod(shape[1:])
        rows = []
        for i in range(shape[0]):
            if budget.exhausted:
                rows.append(ELLIPSIS)
                break
            child = self._render_level(flat, shape[1:], offset + i * stride,
                                       depth + 1, max_depth, budget, element_type)
            rows.append(f"[{child}]")
        return self.row_separator.join(rows)


class GenericFormatter(_NestedFormatter):
    """Compact textual dump of a buffer.

    The text starts with the shape and type ("2x3xf32=", or "f32=" for a
    scalar). The innermost dimension is space separated and each outer
    dimension is bracketed, so a 2x2 float buffer reads "2x2xf32=[1 2][3 4]".
    Floats use printf %G spelling.

    Examples:
        >>> GenericFormatter().render(data, (4,), ElementType.SINT_32, -1, -1)
        '4xsi32=1 2 3 4'
    """

    def format_prefix(self, shape, element_type):
        dims = ''.join(f"{dim}x" for dim in shape)
        return f"{dims}{element_type.abbreviation}="

    def format_value(self, value, element_type):
        if element_type.is_float:
            return '%G' % value
        return str(int(value))


class ScriptLiteralFormatter(_NestedFormatter):
    """Python list literal suitable for torch.tensor().

    Floats are written with repr() so they round-trip exactly; non-finite
    values are spelled float('nan'), float('inf') and -float('inf'). Scalars
    are emitted bare.

    Examples:
        >>> ScriptLiteralFormatter().render(data, (2,), ElementType.FLOAT_32, -1, -1)
        '[1.0, 2.0]'
    """

    item_separator = ', '
    row_separator = ', '
    bracket_outermost = True

    def format_value(self, value, element_type):
        if not element_type.is_float:
            return str(int(value))
        value = float(value)
        if math.isnan(value):
            return "float('nan')"
        if math.isinf(value):
            return "float('inf')" if value > 0 else "-float('inf')"
        return repr(value)
