"""
Default network sink.

The sink is the terminal stage of a pipeline: it performs the HTTP exchange
with httpx, invokes the pipeline callback exactly once and returns a stream
handle synchronously.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .streams import DuplexStream, ThroughStream
from .types import Callback, RequestOptions

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class SinkConfig(BaseModel):
    """Settings for `HttpxSink`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float = Field(DEFAULT_TIMEOUT, gt=0)
    follow_redirects: bool = False
    verify: bool = True
    user_agent: str = f"filterchain/{__version__}"
    headers: dict[str, str] = Field(default_factory=dict)


def _to_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, bytes):
        return chunk
    if isinstance(chunk, (bytearray, memoryview)):
        return bytes(chunk)
    return str(chunk).encode("utf-8")


def _parse_json(response: httpx.Response) -> Any | None:
    if "json" not in response.headers.get("content-type", ""):
        return None
    try:
        return response.json()
    except ValueError:
        logger.debug(f"Response from {response.request.url} declared JSON but did not parse")
        return None


class HttpxSink:
    """
    Sink that performs the exchange with an `httpx.Client`.

    By default the exchange runs as soon as the sink is called. When
    `options["stream"]` is true, the request body is whatever the caller writes
    to the returned handle, and the exchange runs when the handle is ended;
    if nothing was written, `options["body"]` or `options["json"]` is sent.
    Either way the readable side of the handle yields the response body.

    The callback receives `(None, parsed_json_or_None, httpx.Response, text)`
    on success, and `(error, None, None, None)` when the exchange fails.
    """

    def __init__(
        self,
        config: SinkConfig | None = None,
        *,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._config = config or SinkConfig()
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(
                timeout=self._config.timeout,
                follow_redirects=self._config.follow_redirects,
                verify=self._config.verify,
                headers={"User-Agent": self._config.user_agent, **self._config.headers},
                transport=transport,
            )
        self._client = client

    @property
    def config(self) -> SinkConfig:
        return self._config

    def __enter__(self) -> HttpxSink:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this sink created it."""
        if self._owns_client:
            self._client.close()

    def __call__(self, options: RequestOptions, callback: Callback) -> DuplexStream:
        request_half = ThroughStream()
        response_half = ThroughStream()
        handle = DuplexStream(request_half, response_half)

        if options.get("stream"):
            chunks: list[bytes] = []
            request_half.on_data(lambda chunk: chunks.append(_to_bytes(chunk)))
            request_half.on_end(
                lambda: self._exchange(options, b"".join(chunks) or None, response_half, callback)
            )
        else:
            request_half.end()
            self._exchange(options, None, response_half, callback)
        return handle

    def _exchange(
        self,
        options: RequestOptions,
        content: bytes | None,
        response_half: ThroughStream,
        callback: Callback,
    ) -> None:
        method = str(options.get("method") or "GET").upper()
        uri = options.get("uri")
        if not uri:
            response_half.end()
            callback(ValueError("Request options have no 'uri'"), None, None, None)
            return

        kwargs: dict[str, Any] = {
            "headers": options.get("headers") or None,
            "params": options.get("params"),
        }
        if content is not None:
            kwargs["content"] = content
        elif options.get("body") is not None:
            kwargs["content"] = options["body"]
        elif "json" in options:
            kwargs["json"] = options["json"]
        if options.get("timeout") is not None:
            kwargs["timeout"] = options["timeout"]

        logger.debug(f"Sending {method} {uri}")
        try:
            request = self._client.build_request(method, uri, **kwargs)
        except (TypeError, ValueError, httpx.InvalidURL) as e:
            # Malformed options (header values, params, unserializable json).
            logger.debug(f"{method} {uri} could not be built: {e!r}")
            response_half.end()
            callback(e, None, None, None)
            return
        try:
            response = self._client.send(request)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {uri} failed: {e!r}")
            response_half.end()
            callback(e, None, None, None)
            return

        logger.debug(f"{method} {uri} -> {response.status_code} ({len(response.content)} bytes)")
        result = _parse_json(response)
        if response.content:
            response_half.write(response.content)
        response_half.end()
        callback(None, result, response, response.text)
