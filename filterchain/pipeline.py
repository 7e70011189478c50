"""
Request pipeline engine.

Request pipelines let you add filters that modify requests and responses
before/after the actual HTTP exchange performed by a sink. Filters are folded
around the sink in the order given: the first filter is closest to the sink
(last to see the outgoing request, first to see the response), the last filter
is closest to the caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass
from typing import Any

import httpx

from .exceptions import FilterContractError, InvalidArgumentsError
from .policies import ContractPolicy, Policies
from .sinks import HttpxSink, SinkConfig
from .types import Callback, Continuation, Filter, RequestOptions

logger = logging.getLogger(__name__)

VERBS = ("get", "post", "delete", "put", "merge", "head")


@dataclass(slots=True)
class NormalizedCall:
    options: RequestOptions
    callback: Callback


def normalize_arguments(uri: Any, options: Any = None, callback: Any = None) -> NormalizedCall:
    """
    Figure out which of the supported call shapes was used.

    1. `(uri, options, callback)` - everything passed; `uri` is stored in `options`
    2. `(options, callback)` - the target is assumed to be in `options` already
    3. `(uri, callback)` - options are created from scratch

    Keyword calls such as `pipeline(uri, callback=cb)` resolve to the same
    shapes. The resulting options always carry a `headers` mapping.

    Raises:
        InvalidArgumentsError: If the arguments match none of the shapes.
    """
    if isinstance(uri, str) and isinstance(options, MutableMapping) and callable(callback):
        options["uri"] = uri
        result = NormalizedCall(options, callback)
    elif isinstance(uri, MutableMapping) and callable(options) and callback is None:
        result = NormalizedCall(uri, options)
    elif isinstance(uri, MutableMapping) and options is None and callable(callback):
        result = NormalizedCall(uri, callback)
    elif isinstance(uri, str) and callable(options) and callback is None:
        result = NormalizedCall({"uri": uri}, options)
    elif isinstance(uri, str) and options is None and callable(callback):
        result = NormalizedCall({"uri": uri}, callback)
    else:
        raise InvalidArgumentsError(received=(uri, options, callback))

    # We must always have headers
    if result.options.get("headers") is None:
        result.options["headers"] = {}
    return result


def _describe(filter: Filter) -> str:
    return getattr(filter, "__qualname__", None) or type(filter).__name__


def _guard_next(filter: Filter, next: Continuation) -> Continuation:
    called = False

    def _next_once(options: RequestOptions, callback: Callback) -> Any:
        nonlocal called
        if called:
            raise FilterContractError(
                f"Filter {_describe(filter)} called next more than once", filter=filter
            )
        called = True
        return next(options, callback)

    return _next_once


def _guard_callback(callback: Callback) -> Callback:
    called = False

    def _callback_once(error: BaseException | None, result: Any, response: Any, body: Any) -> None:
        nonlocal called
        if called:
            raise FilterContractError("Pipeline callback invoked more than once")
        called = True
        callback(error, result, response, body)

    return _callback_once


def compose(
    filters: Iterable[Filter],
    sink: Continuation,
    *,
    policies: Policies | None = None,
) -> Continuation:
    """
    Fold filters around a continuation, sink-facing first.

    Each filter `f` turns the current continuation `c` into
    `(options, callback) -> f(options, c, callback)`.
    """
    enforce = (policies or Policies()).contract is ContractPolicy.ENFORCE
    pipeline = sink
    for filter in filters:
        next_pipeline = pipeline

        def _wrapped(
            options: RequestOptions,
            callback: Callback,
            *,
            _f: Filter = filter,
            _n: Continuation = next_pipeline,
        ) -> Any:
            # A fresh guard per invocation keeps concurrent calls independent.
            return _f(options, _guard_next(_f, _n) if enforce else _n, callback)

        pipeline = _wrapped
    return pipeline


class Pipeline:
    """
    A chain of filters ending in a sink.

    Calling the pipeline runs the chain and returns the stream handle produced
    by it. Because `pipeline(options, callback)` matches the sink contract, a
    pipeline can itself be the sink of another pipeline:

        base = Pipeline(sink, auth_filter, log_filter())
        tagged = Pipeline(base, add_header("X-Client", "reports"))

    Build and extend a pipeline fully before its first invocation; calling
    `add` while requests are in flight on the same pipeline is not supported.
    """

    def __init__(
        self,
        sink: Continuation,
        *filters: Filter,
        policies: Policies | None = None,
    ):
        self._sink = sink
        self._policies = policies or Policies()
        self._filters: list[Filter] = []
        self._entry: Continuation = sink
        self._lock = threading.Lock()
        self.add(*filters)

    @property
    def sink(self) -> Continuation:
        return self._sink

    @property
    def policies(self) -> Policies:
        return self._policies

    @property
    def filters(self) -> tuple[Filter, ...]:
        """Installed filters, sink-facing first."""
        return tuple(self._filters)

    def add(self, *filters: Filter) -> None:
        """Add filters; each new filter becomes the most caller-facing one."""
        if not filters:
            return
        with self._lock:
            self._entry = compose(filters, self._entry, policies=self._policies)
            self._filters.extend(filters)
        logger.debug(
            f"Added {len(filters)} filter(s) to pipeline ({len(self._filters)} installed): "
            + ", ".join(_describe(f) for f in filters)
        )

    def __call__(self, uri: Any, options: Any = None, callback: Any = None) -> Any:
        args = normalize_arguments(uri, options, callback)
        return self._run(args)

    def request(self, method: str, uri: Any, options: Any = None, callback: Any = None) -> Any:
        """Run the pipeline with `method` set on the request options."""
        args = normalize_arguments(uri, options, callback)
        args.options["method"] = method.upper()
        return self._run(args)

    def get(self, uri: Any, options: Any = None, callback: Any = None) -> Any:
        return self.request("GET", uri, options, callback)

    def post(self, uri: Any, options: Any = None, callback: Any = None) -> Any:
        return self.request("POST", uri, options, callback)

    def delete(self, uri: Any, options: Any = None, callback: Any = None) -> Any:
        return self.request("DELETE", uri, options, callback)

    def put(self, uri: Any, options: Any = None, callback: Any = None) -> Any:
        return self.request("PUT", uri, options, callback)

    def merge(self, uri: Any, options: Any = None, callback: Any = None) -> Any:
        return self.request("MERGE", uri, options, callback)

    def head(self, uri: Any, options: Any = None, callback: Any = None) -> Any:
        return self.request("HEAD", uri, options, callback)

    def _run(self, args: NormalizedCall) -> Any:
        callback = args.callback
        if self._policies.contract is ContractPolicy.ENFORCE:
            callback = _guard_callback(callback)
        entry = self._entry
        return entry(args.options, callback)

    def __repr__(self) -> str:
        names = ", ".join(_describe(f) for f in self._filters)
        return f"Pipeline(sink={_describe(self._sink)}, filters=[{names}])"


def create_with_sink(
    sink: Continuation,
    *filters: Filter,
    policies: Policies | None = None,
) -> Pipeline:
    """Create a pipeline that ends with a call to `sink`."""
    return Pipeline(sink, *filters, policies=policies)


def create(
    *filters: Filter,
    config: SinkConfig | None = None,
    transport: httpx.BaseTransport | None = None,
    policies: Policies | None = None,
) -> Pipeline:
    """
    Create a pipeline that ends with an HTTP exchange made through httpx.

    Args:
        *filters: Filters to install, sink-facing first.
        config: Settings for the default sink.
        transport: Optional httpx transport (e.g. `httpx.MockTransport` in tests).
        policies: Pipeline policies.
    """
    return Pipeline(HttpxSink(config, transport=transport), *filters, policies=policies)
