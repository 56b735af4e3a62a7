"""Deterministic content fingerprints for traced buffers.

The hash is only used to check that two runs produced byte-identical tensors.
It is not a cryptographic hash.
"""

FNV1A_64_OFFSET_BASIS = 0xcbf29ce484222325
FNV1A_64_PRIME = 0x100000001b3
_MASK_64 = 0xffffffffffffffff


def fnv1a_64(data) -> int:
    """Compute the 64-bit FNV-1a hash of a bytes-like object.

    Args:
        data: bytes, bytearray or memoryview with the raw buffer contents

    Returns:
        int: Unsigned 64-bit hash value

    Examples:
        >>> hex(fnv1a_64(b""))
        '0xcbf29ce484222325'
    """
    value = FNV1A_64_OFFSET_BASIS
    for byte in memoryview(data).cast('B'):
        value ^= byte
        value = (value * FNV1A_64_PRIME) & _MASK_64
    return value
