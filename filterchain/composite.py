"""
Utilities for composing filters.
"""

from __future__ import annotations

from typing import Any

from .types import Callback, Continuation, Filter, RequestOptions


def _pair(inner: Filter, outer: Filter) -> Filter:
    def _paired(options: RequestOptions, next: Continuation, callback: Callback) -> Any:
        def _call_inner(o: RequestOptions, cb: Callback) -> Any:
            return inner(o, next, cb)

        return outer(options, _call_inner, callback)

    _paired.__qualname__ = (
        f"{getattr(outer, '__qualname__', type(outer).__name__)}"
        f"+{getattr(inner, '__qualname__', type(inner).__name__)}"
    )
    return _paired


def combine(*filters: Filter) -> Filter:
    """
    Create a single filter that behaves like all of `filters` in sequence.

    The first filter is closest to the sink (last to run before the request,
    first to run on the response), exactly as if the filters had been passed
    to `Pipeline` or `Pipeline.add` in the same order.

    Raises:
        ValueError: If no filters are given.
    """
    if not filters:
        raise ValueError("combine() requires at least one filter")
    combined = filters[0]
    for filter in filters[1:]:
        combined = _pair(combined, filter)
    return combined
