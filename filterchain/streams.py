"""
Stream handles and deferred stream splicing.

Every continuation returns a stream handle synchronously. A filter that has to
do asynchronous work before it can call `next` (fetching a credential, say)
returns an interim stream instead, and splices it to the real stream once that
exists:

    def token_filter(options, next, callback):
        def setup(input, output):
            input.pause()

            def on_token(error, token):
                if error is not None:
                    callback(error, None, None, None)
                    return
                options["headers"]["Authorization"] = f"Bearer {token}"
                splice(input, next(options, callback), output)

            fetch_token(on_token)

        return interim_stream(setup)

Writes made to the interim stream before splicing are buffered and delivered,
in order, once the input half is resumed.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeAlias

from .exceptions import StreamClosedError, StreamSpliceError
from .types import StreamHandle, Writable

logger = logging.getLogger(__name__)

DataListener: TypeAlias = Callable[[Any], None]
EndListener: TypeAlias = Callable[[], None]


class ThroughStream:
    """
    Passthrough duplex stream.

    Written chunks are delivered in order to every piped destination and
    `on_data` listener. While the stream is paused, or nothing is attached to
    receive them, chunks stay buffered; `resume()`, `pipe()` and `on_data()`
    flush the buffer. `end()` is forwarded once the buffer has drained.
    """

    def __init__(self) -> None:
        self._buffer: deque[Any] = deque()
        self._destinations: list[Writable] = []
        self._data_listeners: list[DataListener] = []
        self._end_listeners: list[EndListener] = []
        self._paused = False
        self._ending = False
        self._ended = False
        self._flushing = False

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def piped(self) -> bool:
        return bool(self._destinations)

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def write(self, chunk: Any) -> None:
        if self._ending:
            raise StreamClosedError("write after end")
        self._buffer.append(chunk)
        self._flush()

    def end(self, chunk: Any = None) -> None:
        if self._ending:
            return
        if chunk is not None:
            self.write(chunk)
        self._ending = True
        self._flush()

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False
        self._flush()

    def pipe(self, dest: Writable) -> Writable:
        self._destinations.append(dest)
        if self._ended:
            dest.end()
        else:
            self._flush()
        return dest

    def on_data(self, listener: DataListener) -> None:
        self._data_listeners.append(listener)
        self._flush()

    def on_end(self, listener: EndListener) -> None:
        if self._ended:
            listener()
            return
        self._end_listeners.append(listener)

    def _has_readers(self) -> bool:
        return bool(self._destinations or self._data_listeners)

    def _flush(self) -> None:
        # Re-entrant writes (from a listener) land in the buffer and are picked
        # up by the loop that is already running.
        if self._flushing:
            return
        self._flushing = True
        try:
            while self._buffer and not self._paused and self._has_readers():
                chunk = self._buffer.popleft()
                for dest in list(self._destinations):
                    dest.write(chunk)
                for listener in list(self._data_listeners):
                    listener(chunk)
            if self._ending and not self._ended and not self._buffer and not self._paused:
                self._ended = True
                for dest in list(self._destinations):
                    dest.end()
                for end_listener in list(self._end_listeners):
                    end_listener()
        finally:
            self._flushing = False


class DuplexStream:
    """Joins a writable half and a readable half into one handle."""

    def __init__(self, writable: ThroughStream, readable: ThroughStream) -> None:
        self.input = writable
        self.output = readable

    def write(self, chunk: Any) -> None:
        self.input.write(chunk)

    def end(self, chunk: Any = None) -> None:
        self.input.end(chunk)

    def pipe(self, dest: Writable) -> Writable:
        return self.output.pipe(dest)

    def on_data(self, listener: DataListener) -> None:
        self.output.on_data(listener)

    def on_end(self, listener: EndListener) -> None:
        self.output.on_end(listener)


class StreamState(Enum):
    BUFFERING = "buffering"
    SPLICED = "spliced"


class InterimStream(DuplexStream):
    """
    Stand-in handle returned before the real request stream exists.

    Starts in `StreamState.BUFFERING`; moves to `StreamState.SPLICED` exactly
    once, when its input half is connected to the real stream.
    """

    def __init__(self) -> None:
        super().__init__(ThroughStream(), ThroughStream())

    @property
    def state(self) -> StreamState:
        return StreamState.SPLICED if self.input.piped else StreamState.BUFFERING

    def splice(self, real: StreamHandle) -> StreamHandle:
        return splice(self.input, real, self.output)


StreamSetup: TypeAlias = Callable[[ThroughStream, ThroughStream], None]


def interim_stream(setup: StreamSetup) -> InterimStream:
    """
    Create an interim stream that can be returned to the caller synchronously.

    Args:
        setup: Called synchronously with the `(input, output)` halves. `input`
            should be piped to the real stream returned by the rest of the
            pipeline, and the real stream piped to `output` (see `splice`). It
            is common to pause `input` first so nothing is lost before the real
            stream exists.

    Returns:
        A duplex handle: writes go to `input`, reads come from `output`.
    """
    stream = InterimStream()
    setup(stream.input, stream.output)
    return stream


def splice(input: ThroughStream, real: StreamHandle, output: ThroughStream) -> StreamHandle:
    """
    Connect `input -> real -> output` and resume flow on `input`.

    Raises:
        StreamSpliceError: If `input` has already been spliced.
    """
    if input.piped:
        raise StreamSpliceError("Interim stream is already spliced")
    logger.debug(f"Splicing interim stream ({input.buffered} buffered chunks)")
    input.pipe(real)
    real.pipe(output)
    input.resume()
    return real
