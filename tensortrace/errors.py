"""Exception types raised while tracing buffer views.

Every failure that aborts a trace call derives from TraceError, so hosts that
only want to know "did tracing fail" can catch a single type.
"""


class TraceError(RuntimeError):
    """Base class for errors raised by a debug sink."""


class AllocationError(TraceError, MemoryError):
    """Host allocator could not provide a scratch block."""


class MappingError(TraceError):
    """A buffer view could not be mapped for reading."""


class FormatterError(TraceError):
    """An element formatter failed to render a buffer."""


class InsufficientSpaceError(FormatterError):
    """Destination is missing or too small for the rendered text.

    This is the expected answer to a measuring call (one made without a
    destination): the caller reads `required_length`, allocates exactly that
    many bytes and calls the formatter again.

    Attributes:
        required_length: Number of bytes the rendered text occupies
    """

    def __init__(self, required_length: int):
        super().__init__(f"Destination too small: {required_length} bytes required")
        self.required_length = required_length
