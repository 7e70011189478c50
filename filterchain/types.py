"""
Shared contracts for filters, sinks and stream handles.

Everything in a pipeline speaks one of two call shapes:

- a continuation (sink, pipeline entry point, the `next` given to a filter):
  `(options, callback) -> stream handle`
- a filter: `(options, next, callback) -> stream handle`
"""

from __future__ import annotations

from collections.abc import Callable, MutableMapping
from typing import Any, Protocol, TypeAlias

# The engine never inspects option contents; filters and sinks agree on keys
# (the default sink reads uri, method, headers, params, body, json, timeout, stream).
RequestOptions: TypeAlias = MutableMapping[str, Any]


class Writable(Protocol):
    def write(self, chunk: Any) -> None: ...

    def end(self) -> None: ...


class Readable(Protocol):
    def pipe(self, dest: Writable) -> Writable: ...


class StreamHandle(Writable, Readable, Protocol):
    """Duplex handle returned synchronously by every continuation."""


class Callback(Protocol):
    def __call__(
        self,
        error: BaseException | None,
        result: Any,
        response: Any,
        body: Any,
    ) -> None: ...


Continuation: TypeAlias = Callable[[RequestOptions, Callback], Any]
Sink: TypeAlias = Continuation


class Filter(Protocol):
    def __call__(self, options: RequestOptions, next: Continuation, callback: Callback) -> Any: ...
