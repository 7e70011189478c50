from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from pydantic import ValidationError

from filterchain.filters import log_filter
from filterchain.pipeline import Pipeline
from filterchain.sinks import HttpxSink, SinkConfig
from filterchain.types import Filter

from .errors import CLIError


@dataclass
class CLIContext:
    output: Literal["text", "json"] = "text"
    quiet: bool = False
    verbosity: int = 0
    timeout: float | None = None
    _sink: HttpxSink | None = field(default=None, repr=False)

    def sink(self) -> HttpxSink:
        if self._sink is None:
            try:
                config = (
                    SinkConfig() if self.timeout is None else SinkConfig(timeout=self.timeout)
                )
            except ValidationError as e:
                raise CLIError(
                    f"Invalid --timeout: {self.timeout}", exit_code=2, error_type="usage_error"
                ) from e
            self._sink = HttpxSink(config)
        return self._sink

    def pipeline(self, filters: Sequence[Filter] = ()) -> Pipeline:
        """Build a pipeline on the shared sink; request logging is caller-facing."""
        return Pipeline(self.sink(), *filters, log_filter(level=logging.INFO))

    def close(self) -> None:
        if self._sink is not None:
            self._sink.close()
            self._sink = None
