"""
Exceptions raised by filterchain.

Failures of the network exchange itself are never raised; they travel through
the `error` slot of the pipeline callback.
"""

from __future__ import annotations

from typing import Any


class FilterChainError(Exception):
    """Base class for all filterchain errors."""


class InvalidArgumentsError(FilterChainError, TypeError):
    """A pipeline was called with an unrecognized argument shape."""

    def __init__(
        self,
        message: str = "Invalid parameter set passed",
        *,
        received: tuple[Any, ...] = (),
    ):
        super().__init__(message)
        self.message = message
        self.received = received


class FilterContractError(FilterChainError):
    """A filter called `next` or the caller's callback more than once."""

    def __init__(self, message: str, *, filter: Any = None):
        super().__init__(message)
        self.message = message
        self.filter = filter


class StreamError(FilterChainError):
    """Base class for stream handle misuse."""


class StreamSpliceError(StreamError):
    """An interim stream was spliced to a real stream more than once."""


class StreamClosedError(StreamError):
    """A chunk was written to a stream after `end()`."""
