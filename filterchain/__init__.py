"""
filterchain: composable request/response filters for outbound HTTP calls.

Example:
    ```python
    from filterchain import create
    from filterchain.filters import add_header, log_filter

    pipeline = create(add_header("Accept", "application/json"), log_filter())

    def on_done(error, result, response, body):
        ...

    pipeline.get("https://example.com/api/items", on_done)
    ```
"""

from __future__ import annotations

__version__ = "0.1.0"

from .composite import combine  # noqa: E402
from .exceptions import (  # noqa: E402
    FilterChainError,
    FilterContractError,
    InvalidArgumentsError,
    StreamClosedError,
    StreamError,
    StreamSpliceError,
)
from .pipeline import (  # noqa: E402
    NormalizedCall,
    Pipeline,
    compose,
    create,
    create_with_sink,
    normalize_arguments,
)
from .policies import ContractPolicy, Policies  # noqa: E402
from .sinks import HttpxSink, SinkConfig  # noqa: E402
from .streams import (  # noqa: E402
    DuplexStream,
    InterimStream,
    StreamState,
    ThroughStream,
    interim_stream,
    splice,
)

__all__ = [
    "ContractPolicy",
    "DuplexStream",
    "FilterChainError",
    "FilterContractError",
    "HttpxSink",
    "InterimStream",
    "InvalidArgumentsError",
    "NormalizedCall",
    "Pipeline",
    "Policies",
    "SinkConfig",
    "StreamClosedError",
    "StreamError",
    "StreamSpliceError",
    "StreamState",
    "ThroughStream",
    "__version__",
    "combine",
    "compose",
    "create",
    "create_with_sink",
    "interim_stream",
    "normalize_arguments",
    "splice",
]
