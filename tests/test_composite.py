"""Tests for combining filters into a single filter."""

from __future__ import annotations

from typing import Any

import pytest

from filterchain import Pipeline, ThroughStream, combine
from filterchain.filters import add_header
from filterchain.types import Callback, Continuation, RequestOptions


def _tracer(name: str, trace: list[str]):
    def _filter(options: RequestOptions, next: Continuation, callback: Callback) -> Any:
        trace.append(f"{name}>")

        def _on_response(error: Any, result: Any, response: Any, body: Any) -> None:
            trace.append(f"<{name}")
            callback(error, result, response, body)

        return next(options, _on_response)

    return _filter


def _sink(trace: list[str]):
    stream = ThroughStream()

    def sink(options: RequestOptions, callback: Callback) -> ThroughStream:
        trace.append("sink")
        callback(None, None, None, None)
        return stream

    return sink


def _noop(error: Any, result: Any, response: Any, body: Any) -> None:
    return None


def _run(*names: str, combined: list[list[str]] | None = None) -> str:
    trace: list[str] = []
    filters = [_tracer(name, trace) for name in names]
    if combined is not None:
        groups = [combine(*[_tracer(n, trace) for n in group]) for group in combined]
        filters = groups
    Pipeline(_sink(trace), *filters)("http://x", _noop)
    return " ".join(trace)


def test_combined_pair_matches_direct_inclusion() -> None:
    direct = _run("f1", "f2")
    combined = _run(combined=[["f1", "f2"]])
    assert combined == direct
    assert direct == "f2> f1> sink <f1 <f2"


def test_combined_filter_in_the_middle_of_a_chain() -> None:
    direct = _run("a", "b", "c", "d")
    combined = _run(combined=[["a"], ["b", "c"], ["d"]])
    assert combined == direct


def test_combine_is_associative() -> None:
    trace_nested: list[str] = []
    nested = combine(
        combine(_tracer("f1", trace_nested), _tracer("f2", trace_nested)),
        _tracer("f3", trace_nested),
    )
    Pipeline(_sink(trace_nested), nested)("http://x", _noop)

    trace_flat: list[str] = []
    flat = combine(_tracer("f1", trace_flat), _tracer("f2", trace_flat), _tracer("f3", trace_flat))
    Pipeline(_sink(trace_flat), flat)("http://x", _noop)

    trace_right: list[str] = []
    right = combine(
        _tracer("f1", trace_right),
        combine(_tracer("f2", trace_right), _tracer("f3", trace_right)),
    )
    Pipeline(_sink(trace_right), right)("http://x", _noop)

    assert trace_nested == trace_flat == trace_right


def test_combine_single_filter_returns_it() -> None:
    f = add_header("X-A", "1")
    assert combine(f) is f


def test_combine_requires_a_filter() -> None:
    with pytest.raises(ValueError, match="at least one filter"):
        combine()


def test_combined_filter_returns_sink_stream_and_applies_headers() -> None:
    seen: list[RequestOptions] = []

    def sink(options: RequestOptions, callback: Callback) -> ThroughStream:
        seen.append(options)
        callback(None, None, None, None)
        return stream

    stream = ThroughStream()
    combined = combine(add_header("X-A", "1"), add_header("X-A", "2"), add_header("X-B", "3"))

    assert Pipeline(sink, combined)("http://x", _noop) is stream
    # X-A: the sink-facing filter runs last and wins.
    assert seen[0]["headers"] == {"X-A": "1", "X-B": "3"}


def test_combined_filter_can_be_added_later() -> None:
    trace: list[str] = []
    pipeline = Pipeline(_sink(trace), _tracer("base", trace))
    pipeline.add(combine(_tracer("x", trace), _tracer("y", trace)))

    pipeline("http://x", _noop)

    assert " ".join(trace) == "y> x> base> sink <base <x <y"
