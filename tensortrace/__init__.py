"""TensorTrace - pluggable debug sinks for tensor execution runtimes.

A runtime hands each traced dispatch to a debug sink as an event name plus the
buffer views it produced. TensorTrace provides the sinks: a null sink that
ignores everything, and a stream sink that writes either compact element
dumps or a PyTorch script that rebuilds every captured tensor, with a content
hash per tensor for checking that two runs produced identical bytes.

Main Features:
- Generic dumps ("2x2xf32=[1 2][3 4]") or torch scripts
  ("matmul_00000000 = torch.tensor([1.0, 2.0], dtype=torch.float32)")
- Dispatch allow-lists and deterministic, index-based sampling
- Element and depth caps for large tensors
- Borrowed or owned output streams
- Configuration from TENSORTRACE_* environment variables

Quick Start:
    >>> import sys
    >>> import numpy as np
    >>> import tensortrace
    >>> options = tensortrace.TraceOptions(format=tensortrace.TraceFormat.SCRIPT_LITERAL)
    >>> sink = tensortrace.stream_sink(sys.stdout, options)
    >>> view = tensortrace.BufferView.from_array(np.array([1.0, 2.0], dtype=np.float32))
    >>> sink.trace("matmul", [view])
    # === matmul ===
    import torch
    matmul_00000000 = torch.tensor([1.0, 2.0], dtype=torch.float32)
    # hash=0x...
    >>> sink.release()

Public API:
    DebugSink, NullSink, CallbackSink, StreamSink: Sink implementations
    TraceOptions, TraceFormat, UNBOUNDED: Sink configuration
    null_sink(), stream_sink(), owned_file_sink(), open_trace_file(),
    sink_from_environment(): Sink factories
    BufferView, BufferMapping, HostAllocator, ElementType: Buffer model
    accepts(), samples(), sanitize_identifier(), fnv1a_64(),
    script_dtype_name(): Building blocks used by the stream sink
"""

from .buffers import BufferMapping, BufferView, HostAllocator, system_allocator
from .core import (
    CallbackSink,
    DebugSink,
    NullSink,
    StreamSink,
    TraceOptions,
    null_sink,
    open_trace_file,
    owned_file_sink,
    sink_from_environment,
    stream_sink,
)
from .dtypes import ElementType, script_dtype_name
from .errors import (
    AllocationError,
    FormatterError,
    InsufficientSpaceError,
    MappingError,
    TraceError,
)
from .filters import accepts, samples
from .formatters import GenericFormatter, ScriptLiteralFormatter
from .hashing import fnv1a_64
from .naming import MAX_IDENTIFIER_LENGTH, sanitize_identifier
from .registry import UNBOUNDED, ElementFormatter, FormatterRegistry, TraceFormat

__version__ = "0.1.0"
__all__ = [
    "DebugSink",
    "NullSink",
    "CallbackSink",
    "StreamSink",
    "TraceOptions",
    "TraceFormat",
    "UNBOUNDED",
    "null_sink",
    "stream_sink",
    "owned_file_sink",
    "open_trace_file",
    "sink_from_environment",
    "BufferView",
    "BufferMapping",
    "HostAllocator",
    "system_allocator",
    "ElementType",
    "ElementFormatter",
    "FormatterRegistry",
    "GenericFormatter",
    "ScriptLiteralFormatter",
    "TraceError",
    "AllocationError",
    "MappingError",
    "FormatterError",
    "InsufficientSpaceError",
    "accepts",
    "samples",
    "sanitize_identifier",
    "MAX_IDENTIFIER_LENGTH",
    "fnv1a_64",
    "script_dtype_name",
]
