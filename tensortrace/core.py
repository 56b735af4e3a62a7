"""
Core functionality for tensortrace: debug sinks and their options.
"""

import os
import sys
import threading
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, Sequence

from .buffers import HostAllocator, system_allocator
from .dtypes import script_dtype_name
from .errors import InsufficientSpaceError
from .filters import accepts, samples
from .hashing import fnv1a_64
from .naming import sanitize_identifier
from .registry import UNBOUNDED, FormatterRegistry, TraceFormat

ENV_PREFIX = 'TENSORTRACE_'

_FORMAT_NAMES = {
    'generic': TraceFormat.GENERIC,
    'script': TraceFormat.SCRIPT_LITERAL,
    'script_literal': TraceFormat.SCRIPT_LITERAL,
    'pytorch': TraceFormat.SCRIPT_LITERAL,
}


@dataclass(frozen=True)
class TraceOptions:
    """Options controlling what a stream sink captures and how it renders it.

    Attributes:
        format: TraceFormat.GENERIC for element dumps, TraceFormat.SCRIPT_LITERAL
            for a generated torch script
        max_element_count: Elements printed per buffer before eliding, or UNBOUNDED
        max_depth: Dimensions expanded before eliding, or UNBOUNDED
        dispatch_filter: Comma-separated event names to capture; empty captures all
        dispatch_sample_percent: Share of events to capture, by event index.
            Values below 0 or at/above 100 capture everything.
    """

    format: TraceFormat = TraceFormat.GENERIC
    max_element_count: int = UNBOUNDED
    max_depth: int = UNBOUNDED
    dispatch_filter: str = ''
    dispatch_sample_percent: int = 100

    @classmethod
    def from_environment(cls, environ=None) -> "TraceOptions":
        """Build options from TENSORTRACE_* environment variables.

        Recognized variables (all optional):
        - TENSORTRACE_FORMAT: "generic" or "script"
        - TENSORTRACE_MAX_ELEMENT_COUNT: int, empty or negative for unbounded
        - TENSORTRACE_MAX_DEPTH: int, empty or negative for unbounded
        - TENSORTRACE_DISPATCH_FILTER: comma-separated event names
        - TENSORTRACE_DISPATCH_SAMPLE_PERCENT: int

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            TraceOptions: Options with defaults for unset variables

        Raises:
            ValueError: If a variable holds an invalid value
        """
        if environ is None:
            environ = os.environ

        format_name = environ.get(f'{ENV_PREFIX}FORMAT', 'generic').strip().lower()
        if format_name not in _FORMAT_NAMES:
            raise ValueError(
                f"Invalid {ENV_PREFIX}FORMAT '{format_name}'. "
                f"Must be one of: {', '.join(sorted(_FORMAT_NAMES))}"
            )

        return cls(
            format=_FORMAT_NAMES[format_name],
            max_element_count=_read_limit(environ, f'{ENV_PREFIX}MAX_ELEMENT_COUNT'),
            max_depth=_read_limit(environ, f'{ENV_PREFIX}MAX_DEPTH'),
            dispatch_filter=environ.get(f'{ENV_PREFIX}DISPATCH_FILTER', ''),
            dispatch_sample_percent=_read_int(environ, f'{ENV_PREFIX}DISPATCH_SAMPLE_PERCENT', 100),
        )


def _read_int(environ, key: str, default: int) -> int:
    raw = environ.get(key, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid {key} '{raw}'. Must be an integer")


def _read_limit(environ, key: str) -> int:
    value = _read_int(environ, key, UNBOUNDED)
    return UNBOUNDED if value < 0 else value


class DebugSink(ABC):
    """Abstract consumer of buffer view trace events.

    The runtime calls trace() once per traced dispatch and release() exactly
    once when it is done with the sink. Anything the sink captured must stay
    valid until release().

    Sinks are context managers; leaving the block releases the sink.

    Examples:
        >>> with stream_sink(sys.stdout) as sink:
        ...     sink.trace("matmul", [view])
    """

    @abstractmethod
    def trace(self, name: str, buffer_views: Sequence, allocator: HostAllocator | None = None):
        """Handle one trace event.

        Args:
            name: Event name (typically the dispatch name)
            buffer_views: Ordered BufferViews captured under this event
            allocator: HostAllocator for scratch memory (default: a fresh
                system allocator)

        Raises:
            TraceError: If the event could not be handled
        """
        pass

    @abstractmethod
    def release(self):
        """Release the sink. It must not be used afterwards."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class NullSink(DebugSink):
    """Sink that accepts every event and does nothing."""

    def trace(self, name, buffer_views, allocator=None):
        return None

    def release(self):
        return None


class CallbackSink(DebugSink):
    """Sink built from a pair of plain callables.

    Args:
        trace_fn: Called as trace_fn(name, buffer_views, allocator); None makes
            trace a no-op
        release_fn: Called with no arguments on the first release(); None makes
            release a no-op

    Examples:
        >>> events = []
        >>> sink = CallbackSink(lambda name, views, allocator: events.append(name))
    """

    def __init__(self, trace_fn: Callable | None = None, release_fn: Callable | None = None):
        self._trace_fn = trace_fn
        self._release_fn = release_fn

    def trace(self, name, buffer_views, allocator=None):
        if self._trace_fn is None:
            return None
        return self._trace_fn(name, list(buffer_views), allocator or system_allocator())

    def release(self):
        release_fn, self._release_fn = self._release_fn, None
        self._trace_fn = None
        if release_fn is not None:
            release_fn()


class StreamSink(DebugSink):
    """Sink that writes trace events as text to a stream.

    Each captured event is written as a "# === name ===" header, one block per
    buffer view, and a blank line. In generic format a block is a single dump
    line; in script format it is a torch.tensor() assignment followed by a
    "# hash=0x..." comment with the FNV-1a hash of the raw bytes, and the first
    block in the sink's lifetime is preceded by "import torch".

    All state is per instance and guarded by a lock, so several sinks never
    interfere and one sink may be shared between threads.

    Attributes:
        stream: Text stream receiving the output
        options: TraceOptions copied at construction
        dispatch_count: Number of trace() calls seen so far
        header_emitted: Whether the script import line has been written
    """

    def __init__(self, stream, options: TraceOptions | None = None, owns_stream: bool = False,
                 registry: FormatterRegistry | None = None):
        """Create a stream sink.

        Args:
            stream: Text stream to write to
            options: TraceOptions (default: generic, unbounded, no filter, 100%)
            owns_stream: If True, release() closes the stream
            registry: FormatterRegistry to look the formatter up in
                (default: built-in formatters)
        """
        self.stream = stream
        self.options = replace(options) if options is not None else TraceOptions()
        self.dispatch_count = 0
        self.header_emitted = False
        self._owns_stream = owns_stream
        self._released = False
        self._lock = threading.Lock()
        self._formatter = (registry or FormatterRegistry()).get_formatter(self.options.format)

    @property
    def owns_stream(self) -> bool:
        return self._owns_stream

    @property
    def released(self) -> bool:
        return self._released

    def trace(self, name, buffer_views, allocator=None):
        """Capture one event if it passes the filter and sampler.

        The dispatch counter advances on every call, whether or not the event
        is captured. Output already written is kept if rendering fails.

        Raises:
            RuntimeError: If the sink was released
            AllocationError: If scratch memory could not be allocated
            MappingError: If a buffer view could not be mapped
            FormatterError: If a buffer could not be rendered
        """
        if allocator is None:
            allocator = system_allocator()

        with self._lock:
            if self._released:
                raise RuntimeError("StreamSink used after release()")

            dispatch_index = self.dispatch_count
            self.dispatch_count += 1

            if not accepts(name, self.options.dispatch_filter):
                return
            if not samples(dispatch_index, self.options.dispatch_sample_percent):
                return

            self.stream.write(f"# === {name} ===\n")
            identifier = sanitize_identifier(name)
            for position, buffer_view in enumerate(buffer_views):
                if self.options.format == TraceFormat.SCRIPT_LITERAL:
                    self._write_script_literal(identifier, dispatch_index, position,
                                               buffer_view, allocator)
                else:
                    self._write_generic(buffer_view, allocator)
            self.stream.write("\n")

    def _measure(self, render) -> int:
        try:
            render(None)
        except InsufficientSpaceError as e:
            return e.required_length
        # Only an empty rendering fits in no destination at all.
        return 0

    def _write_generic(self, buffer_view, allocator: HostAllocator):
        formatter = self._formatter
        options = self.options

        def render(destination):
            return formatter.format_buffer_view(
                buffer_view, options.max_element_count, options.max_depth, destination
            )

        length = self._measure(render)
        scratch = allocator.allocate(length)
        try:
            length = render(scratch)
            self.stream.write(scratch[:length].decode('ascii') + "\n")
        finally:
            allocator.free(scratch)

    def _write_script_literal(self, identifier: str, dispatch_index: int, position: int,
                              buffer_view, allocator: HostAllocator):
        formatter = self._formatter
        options = self.options

        with buffer_view.map_range() as mapping:
            contents = mapping.contents

            def render(destination):
                return formatter.format_elements(
                    contents, buffer_view.shape, buffer_view.element_type,
                    options.max_element_count, options.max_depth, destination
                )

            length = self._measure(render)
            scratch = allocator.allocate(length)
            try:
                length = render(scratch)
                literal = scratch[:length].decode('ascii')
            finally:
                allocator.free(scratch)

            if not self.header_emitted:
                self.stream.write("import torch\n")
                self.header_emitted = True

            tag = (dispatch_index << 16) | position
            dtype = script_dtype_name(buffer_view.element_type)
            self.stream.write(
                f"{identifier}_{tag:08x} = torch.tensor({literal}, dtype=torch.{dtype})\n"
            )
            self.stream.write(f"# hash=0x{fnv1a_64(contents):016x}\n")

    def release(self):
        """Release the sink, closing the stream if the sink owns it.

        Errors while closing are reported as warnings and not raised.
        Subsequent calls do nothing.
        """
        with self._lock:
            if self._released:
                return
            self._released = True
            if self._owns_stream and self.stream is not None:
                try:
                    self.stream.close()
                except Exception as e:
                    warnings.warn(f"Failed to close trace stream {self.stream!r}: {e}")


def null_sink() -> NullSink:
    """Return a sink that ignores all events."""
    return NullSink()


def stream_sink(stream, options: TraceOptions | None = None) -> StreamSink:
    """Return a sink writing to a borrowed stream.

    The caller keeps ownership: releasing the sink leaves the stream open.
    Without options the sink uses generic format with no caps, no filter and
    captures every event.

    Examples:
        >>> sink = stream_sink(sys.stdout)
        >>> sink.trace("matmul", [view])
        # === matmul ===
        2xf32=1 2
    """
    return StreamSink(stream, options, owns_stream=False)


def owned_file_sink(stream, options: TraceOptions | None = None) -> StreamSink:
    """Return a sink that takes ownership of `stream` and closes it on release."""
    return StreamSink(stream, options, owns_stream=True)


def open_trace_file(path, options: TraceOptions | None = None) -> StreamSink:
    """Open `path` for writing and return a sink owning the file.

    Args:
        path: Destination file path (parent directories are created)
        options: TraceOptions for the sink

    Returns:
        StreamSink: Sink that closes the file on release
    """
    from pathlib import Path

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return owned_file_sink(open(path, 'w', encoding='utf-8'), options)


def sink_from_environment(environ=None) -> DebugSink:
    """Create a sink configured from TENSORTRACE_* environment variables.

    TENSORTRACE_TRACE_FILE selects the destination: a path opens an owned
    file sink, "-" writes to stdout (borrowed), and an unset or empty value
    yields a NullSink. The remaining options come from
    TraceOptions.from_environment().

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        DebugSink: Configured sink

    Raises:
        ValueError: If an option variable holds an invalid value
    """
    if environ is None:
        environ = os.environ

    trace_file = environ.get(f'{ENV_PREFIX}TRACE_FILE', '').strip()
    if not trace_file:
        return NullSink()

    options = TraceOptions.from_environment(environ)
    if trace_file == '-':
        return stream_sink(sys.stdout, options)

    sink = open_trace_file(trace_file, options)
    print(f"[TensorTrace] Tracing {options.format.value} output to {trace_file}")
    return sink
