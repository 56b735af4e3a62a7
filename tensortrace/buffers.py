"""Host-side buffer views, scoped mappings and the scratch allocator.

A BufferView is what the runtime hands to a sink: raw bytes plus a shape and
an element type. Sinks never touch the bytes directly; they map a range,
read it and unmap it, mirroring how device buffers are accessed.
"""

import math
from typing import Sequence

from .dtypes import ElementType
from .errors import AllocationError, MappingError


class BufferMapping:
    """Read-only mapping over a range of a buffer view.

    Use as a context manager or call unmap() when done. After unmapping,
    `contents` is released and must not be used.

    Attributes:
        contents: Read-only memoryview of the mapped bytes
    """

    def __init__(self, contents: memoryview):
        self.contents = contents
        self._mapped = True

    @property
    def is_mapped(self) -> bool:
        return self._mapped

    def unmap(self):
        """Release the mapping. Calling it twice is harmless."""
        if self._mapped:
            self.contents.release()
            self._mapped = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unmap()
        return False


class BufferView:
    """Typed, shaped view over tensor bytes.

    Data is stored little-endian in row-major order.

    Attributes:
        shape: Tuple of dimension sizes (empty tuple for scalars)
        element_type: ElementType of every element

    Examples:
        >>> view = BufferView.from_array(np.array([1.0, 2.0], dtype=np.float32))
        >>> view.shape, view.element_type
        ((2,), <ElementType.FLOAT_32: 'f32'>)
    """

    def __init__(self, data, shape: Sequence[int], element_type: ElementType):
        self._data = bytes(data)
        self.shape = tuple(int(dim) for dim in shape)
        self.element_type = element_type

        if any(dim < 0 for dim in self.shape):
            raise ValueError(f"Negative dimension in shape {self.shape}")
        expected = self.element_count * element_type.byte_size
        if len(self._data) != expected:
            raise ValueError(
                f"Buffer holds {len(self._data)} bytes but shape {self.shape} "
                f"of {element_type.abbreviation} needs {expected}"
            )

    @classmethod
    def from_array(cls, array) -> "BufferView":
        """Build a view over a copy of a numpy array's contents.

        Args:
            array: numpy.ndarray (or anything numpy.asarray accepts)

        Returns:
            BufferView: View with the array's shape and element type

        Raises:
            ValueError: If the array's dtype has no ElementType equivalent
        """
        import numpy as np

        array = np.asarray(array)
        element_type = ElementType.from_numpy(array.dtype)
        little_endian = np.ascontiguousarray(array, dtype=array.dtype.newbyteorder('<'))
        return cls(little_endian.tobytes(), array.shape, element_type)

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def element_count(self) -> int:
        return math.prod(self.shape)

    @property
    def byte_length(self) -> int:
        return len(self._data)

    def map_range(self, offset: int = 0, length: int | None = None) -> BufferMapping:
        """Map a byte range of the buffer for reading.

        Args:
            offset: First byte to map (default: 0)
            length: Number of bytes to map; None maps through the end

        Returns:
            BufferMapping: Scoped read-only mapping

        Raises:
            MappingError: If the range lies outside the buffer
        """
        if length is None:
            length = len(self._data) - offset
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise MappingError(
                f"Range [{offset}, {offset + length}) outside buffer of {len(self._data)} bytes"
            )
        return BufferMapping(memoryview(self._data)[offset:offset + length])

    def __repr__(self):
        dims = 'x'.join(str(dim) for dim in self.shape)
        prefix = f"{dims}x" if dims else ""
        return f"BufferView({prefix}{self.element_type.abbreviation})"


class HostAllocator:
    """Allocator for scratch blocks used while rendering.

    Keeps count of outstanding blocks so callers can verify that every
    allocation was freed.

    Attributes:
        limit: Maximum bytes outstanding at once, or None for no limit
        live_allocations: Number of blocks allocated and not yet freed
        bytes_in_use: Total size of those blocks
    """

    def __init__(self, limit: int | None = None):
        self.limit = limit
        self.live_allocations = 0
        self.bytes_in_use = 0

    def allocate(self, size: int) -> bytearray:
        """Allocate a zeroed scratch block of exactly `size` bytes.

        Raises:
            AllocationError: If the block would exceed the allocator's limit
        """
        if size < 0:
            raise ValueError(f"Invalid allocation size: {size}")
        if self.limit is not None and self.bytes_in_use + size > self.limit:
            raise AllocationError(
                f"Cannot allocate {size} bytes ({self.bytes_in_use} of {self.limit} in use)"
            )
        self.live_allocations += 1
        self.bytes_in_use += size
        return bytearray(size)

    def free(self, block: bytearray | None):
        if block is None:
            return
        self.live_allocations -= 1
        self.bytes_in_use -= len(block)


def system_allocator() -> HostAllocator:
    """Return a new allocator without a size limit."""
    return HostAllocator()
