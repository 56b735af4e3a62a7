"""Element types of traced buffers and their names in each output format.

ElementType enumerates what a buffer view can hold. Two mappings hang off it:
- script_dtype_name(): the PyTorch dtype name used in generated scripts
- ElementType.abbreviation: the short type tag used by the generic format
"""

from enum import Enum


class ElementType(Enum):
    """Element type of a buffer view.

    BOOL_8 and OPAQUE_8 have no dedicated script dtype and fall back to uint8.
    """

    FLOAT_16 = 'f16'
    FLOAT_32 = 'f32'
    FLOAT_64 = 'f64'
    BFLOAT_16 = 'bf16'
    SINT_8 = 'si8'
    SINT_16 = 'si16'
    SINT_32 = 'si32'
    SINT_64 = 'si64'
    UINT_8 = 'ui8'
    UINT_16 = 'ui16'
    UINT_32 = 'ui32'
    UINT_64 = 'ui64'
    BOOL_8 = 'i1'
    OPAQUE_8 = 'x8'

    @property
    def abbreviation(self) -> str:
        """Short type tag, e.g. "f32" in "4xf32=1 2 3 4"."""
        return self.value

    @property
    def byte_size(self) -> int:
        return _BYTE_SIZES[self]

    @property
    def is_float(self) -> bool:
        return self in (ElementType.FLOAT_16, ElementType.FLOAT_32,
                        ElementType.FLOAT_64, ElementType.BFLOAT_16)

    @classmethod
    def from_numpy(cls, dtype) -> "ElementType":
        """Map a numpy dtype to an element type.

        Args:
            dtype: numpy dtype or anything numpy.dtype() accepts

        Returns:
            ElementType: Matching element type

        Raises:
            ValueError: If the dtype has no element type equivalent
        """
        import numpy as np

        dtype = np.dtype(dtype)
        if dtype.name not in _NUMPY_TO_ELEMENT_TYPE:
            raise ValueError(f"Unsupported numpy dtype for tracing: {dtype}")
        return _NUMPY_TO_ELEMENT_TYPE[dtype.name]


_BYTE_SIZES = {
    ElementType.FLOAT_16: 2,
    ElementType.FLOAT_32: 4,
    ElementType.FLOAT_64: 8,
    ElementType.BFLOAT_16: 2,
    ElementType.SINT_8: 1,
    ElementType.SINT_16: 2,
    ElementType.SINT_32: 4,
    ElementType.SINT_64: 8,
    ElementType.UINT_8: 1,
    ElementType.UINT_16: 2,
    ElementType.UINT_32: 4,
    ElementType.UINT_64: 8,
    ElementType.BOOL_8: 1,
    ElementType.OPAQUE_8: 1,
}

_NUMPY_TO_ELEMENT_TYPE = {
    'float16': ElementType.FLOAT_16,
    'float32': ElementType.FLOAT_32,
    'float64': ElementType.FLOAT_64,
    'int8': ElementType.SINT_8,
    'int16': ElementType.SINT_16,
    'int32': ElementType.SINT_32,
    'int64': ElementType.SINT_64,
    'uint8': ElementType.UINT_8,
    'uint16': ElementType.UINT_16,
    'uint32': ElementType.UINT_32,
    'uint64': ElementType.UINT_64,
    'bool': ElementType.BOOL_8,
}

# Little-endian storage dtypes used to decode raw bytes. bfloat16 is stored as
# its 16-bit pattern and widened to float32 on decode.
NUMPY_STORAGE_DTYPES = {
    ElementType.FLOAT_16: '<f2',
    ElementType.FLOAT_32: '<f4',
    ElementType.FLOAT_64: '<f8',
    ElementType.BFLOAT_16: '<u2',
    ElementType.SINT_8: 'i1',
    ElementType.SINT_16: '<i2',
    ElementType.SINT_32: '<i4',
    ElementType.SINT_64: '<i8',
    ElementType.UINT_8: 'u1',
    ElementType.UINT_16: '<u2',
    ElementType.UINT_32: '<u4',
    ElementType.UINT_64: '<u8',
    ElementType.BOOL_8: 'u1',
    ElementType.OPAQUE_8: 'u1',
}

_SCRIPT_DTYPE_NAMES = {
    ElementType.FLOAT_32: 'float32',
    ElementType.FLOAT_64: 'float64',
    ElementType.FLOAT_16: 'float16',
    ElementType.BFLOAT_16: 'bfloat16',
    ElementType.SINT_8: 'int8',
    ElementType.SINT_16: 'int16',
    ElementType.SINT_32: 'int32',
    ElementType.SINT_64: 'int64',
    ElementType.UINT_8: 'uint8',
    ElementType.UINT_16: 'uint16',
    ElementType.UINT_32: 'uint32',
    ElementType.UINT_64: 'uint64',
}


def script_dtype_name(element_type) -> str:
    """Get the PyTorch dtype name for an element type.

    Types without a dedicated name (bool, opaque bytes, or anything unknown)
    map to "uint8".

    Args:
        element_type: ElementType of the traced buffer

    Returns:
        str: dtype attribute name under `torch.` (e.g. "float32")
    """
    return _SCRIPT_DTYPE_NAMES.get(element_type, 'uint8')
