"""
Ready-made filters.

Each factory returns an ordinary filter: a callable
`(options, next, callback) -> stream handle`.

Example:
    from filterchain import create
    from filterchain.filters import add_header, log_filter

    pipeline = create(add_header("Accept", "application/json"), log_filter())
    pipeline.get("https://example.com/api", on_done)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from .streams import ThroughStream, interim_stream, splice
from .types import Callback, Continuation, Filter, RequestOptions

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
DEFAULT_REDACTED_HEADERS = ("authorization", "proxy-authorization", "cookie")

Ready = Callable[..., None]
Prepare = Callable[[RequestOptions, Ready], None]


def add_header(name: str, value: str) -> Filter:
    """Set a request header before the request reaches the sink."""

    def _add_header(options: RequestOptions, next: Continuation, callback: Callback) -> Any:
        options.setdefault("headers", {})[name] = value
        return next(options, callback)

    _add_header.__qualname__ = f"add_header({name!r})"
    return _add_header


def _redact(headers: dict[str, Any], redacted: set[str]) -> dict[str, Any]:
    return {k: (REDACTED if k.lower() in redacted else v) for k, v in headers.items()}


def log_filter(
    log: logging.Logger | None = None,
    *,
    level: int = logging.DEBUG,
    include_headers: bool = False,
    redact_headers: Iterable[str] = DEFAULT_REDACTED_HEADERS,
) -> Filter:
    """
    Log each outgoing request and the response (or error) it produced.

    Args:
        log: Logger to write to (default: this module's logger)
        level: Log level for both lines
        include_headers: Also log request headers
        redact_headers: Header names (case-insensitive) whose values are masked
    """
    target = log or logger
    redacted = {h.lower() for h in redact_headers}

    def _log(options: RequestOptions, next: Continuation, callback: Callback) -> Any:
        method = options.get("method") or "GET"
        uri = options.get("uri")
        if include_headers:
            headers = _redact(dict(options.get("headers") or {}), redacted)
            target.log(level, f"--> {method} {uri} headers={headers}")
        else:
            target.log(level, f"--> {method} {uri}")

        def _logged(error: BaseException | None, result: Any, response: Any, body: Any) -> None:
            if error is not None:
                target.log(level, f"<-- {method} {uri} error: {error}")
            else:
                status = getattr(response, "status_code", None)
                target.log(level, f"<-- {method} {uri} {status}")
            callback(error, result, response, body)

        return next(options, _logged)

    return _log


def deferred_filter(prepare: Prepare) -> Filter:
    """
    Run asynchronous preparation before the rest of the pipeline is called.

    `prepare(options, ready)` may mutate `options` and must call `ready()` once
    it is done, or `ready(error)` on failure. Until then the caller holds an
    interim stream whose writes are buffered. On failure the caller's callback
    receives the error and the rest of the pipeline is never called.
    """

    def _deferred(options: RequestOptions, next: Continuation, callback: Callback) -> Any:
        def setup(input: ThroughStream, output: ThroughStream) -> None:
            input.pause()

            def ready(error: BaseException | None = None) -> None:
                if error is not None:
                    logger.warning(f"Deferred setup for {options.get('uri')} failed: {error}")
                    output.end()
                    callback(error, None, None, None)
                    return
                splice(input, next(options, callback), output)

            prepare(options, ready)

        return interim_stream(setup)

    return _deferred
