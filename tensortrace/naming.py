"""Identifier derivation for generated trace scripts."""

MAX_IDENTIFIER_LENGTH = 63


def _is_ascii_alnum(byte: int) -> bool:
    return (0x30 <= byte <= 0x39) or (0x41 <= byte <= 0x5a) or (0x61 <= byte <= 0x7a)


def sanitize_identifier(name: str, max_length: int = MAX_IDENTIFIER_LENGTH) -> str:
    """Turn an arbitrary event name into a valid script identifier.

    Works on the UTF-8 bytes of the name: ASCII letters and digits are kept,
    every other byte becomes an underscore. An empty result becomes "_" and a
    leading digit gets an underscore prefix. The result is cut to `max_length`
    characters after prefixing, so different long names may collide.

    Args:
        name: Event name as passed to the sink
        max_length: Upper bound on the identifier length (default: 63)

    Returns:
        str: Identifier made of [A-Za-z0-9_] that does not start with a digit

    Examples:
        >>> sanitize_identifier("3abc")
        '_3abc'
        >>> sanitize_identifier("a-b c")
        'a_b_c'
        >>> sanitize_identifier("")
        '_'
    """
    chars = []
    for byte in name.encode('utf-8'):
        if len(chars) >= max_length:
            break
        chars.append(chr(byte) if _is_ascii_alnum(byte) else '_')

    if not chars:
        chars.append('_')
    if chars[0].isdigit():
        chars.insert(0, '_')

    return ''.join(chars[:max_length])
