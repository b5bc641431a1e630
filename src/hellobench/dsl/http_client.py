"""Instrumented HTTP client with auto-timing, metric emission and checks."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import aiohttp

from hellobench._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = get_logger("dsl.http_client")


def _noop_callback(metric: object) -> None:
    """Default no-op metric callback."""


@dataclass
class RequestMetric:
    """Raw metric emitted for every HTTP request.

    Attributes:
        timestamp: Monotonic timestamp when the request started.
        name: Logical name for metric grouping (e.g., "Create").
        method: HTTP method (GET, POST, etc.).
        url: Full request URL.
        status_code: HTTP response status code (0 if request failed).
        latency_ms: Response time in milliseconds, body included.
        content_length: Response body size in bytes.
        error: Error message if the request failed, None otherwise.
        worker_id: ID of the worker that made the request.
    """

    timestamp: float
    name: str
    method: str
    url: str
    status_code: int
    latency_ms: float
    content_length: int
    error: str | None = None
    worker_id: int = 0


@dataclass
class CheckMetric:
    """Outcome of one named check evaluated against a response.

    Attributes:
        timestamp: Monotonic timestamp when the check was evaluated.
        name: Check label, e.g. ``"create status was 201"``.
        passed: Whether the predicate returned a truthy value.
        worker_id: ID of the worker that evaluated the check.
    """

    timestamp: float
    name: str
    passed: bool
    worker_id: int = 0


@dataclass
class FailedResponse:
    """What a request method returns when no HTTP response arrived.

    Connection refused, DNS failures and timeouts all end up here with
    ``status`` 0, so a task can still run its checks against the result and
    any status expectation fails.  Only the parts of ``aiohttp.ClientResponse``
    that tasks commonly read are provided.

    Attributes:
        method: HTTP method of the failed request.
        url: Full request URL.
        error: ``"ExcType: message"`` of the transport error.
        status: Always 0.
    """

    method: str
    url: str
    error: str
    status: int = 0
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False

    async def read(self) -> bytes:
        return b""

    async def text(self) -> str:
        return ""

    async def json(self) -> object:
        msg = f"No response body, the request failed: {self.error}"
        raise ValueError(msg)


Response = aiohttp.ClientResponse | FailedResponse


class HttpClient:
    """Instrumented async HTTP client wrapping ``aiohttp.ClientSession``.

    Every request is auto-timed and emits a ``RequestMetric`` through
    ``metric_callback``; every :meth:`check` emits one ``CheckMetric`` per
    predicate through ``check_callback``.  Response bodies are read before
    the response is returned, so callers may inspect ``await resp.text()``
    and the connection goes straight back to the pool.  Transport errors are
    not raised: the request comes back as a :class:`FailedResponse` with
    ``status`` 0 and is recorded as an errored request.

    Attributes:
        base_url: Base URL prepended to all request paths.
        headers: Mutable headers dict applied to every request. Setup hooks
            can modify this to add authentication tokens.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        metric_callback: Callable[[RequestMetric], None] | None = None,
        check_callback: Callable[[CheckMetric], None] | None = None,
        worker_id: int = 0,
        timeout: float = 30.0,
        pool_size: int = 100,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL prepended to all request paths.
            headers: Default headers applied to every request.
            metric_callback: Called with a ``RequestMetric`` after each
                request. Defaults to a no-op.
            check_callback: Called with a ``CheckMetric`` for each evaluated
                check. Defaults to a no-op.
            worker_id: Worker identifier for metric tagging.
            timeout: Total request timeout in seconds.
            pool_size: Maximum simultaneous connections for this client.
        """
        self.base_url = base_url.rstrip("/")
        self.headers: dict[str, str] = dict(headers or {})
        self._metric_callback = metric_callback or _noop_callback
        self._check_callback = check_callback or _noop_callback
        self._worker_id = worker_id
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._pool_size = pool_size
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpClient:
        """Open the underlying aiohttp session."""
        self._session = aiohttp.ClientSession(
            timeout=self._timeout,
            connector=aiohttp.TCPConnector(limit=self._pool_size),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def get(self, path: str, *, name: str | None = None, **kwargs: object) -> Response:
        """Send a GET request."""
        return await self._request("GET", path, name=name, **kwargs)

    async def post(self, path: str, *, name: str | None = None, **kwargs: object) -> Response:
        """Send a POST request. Pass ``json=`` for a JSON body."""
        return await self._request("POST", path, name=name, **kwargs)

    async def put(self, path: str, *, name: str | None = None, **kwargs: object) -> Response:
        """Send a PUT request. Pass ``json=`` for a JSON body."""
        return await self._request("PUT", path, name=name, **kwargs)

    async def patch(self, path: str, *, name: str | None = None, **kwargs: object) -> Response:
        """Send a PATCH request."""
        return await self._request("PATCH", path, name=name, **kwargs)

    async def delete(self, path: str, *, name: str | None = None, **kwargs: object) -> Response:
        """Send a DELETE request."""
        return await self._request("DELETE", path, name=name, **kwargs)

    def check(
        self,
        response: Response,
        checks: Mapping[str, Callable[[Response], object]],
    ) -> bool:
        """Evaluate named predicates against *response* without raising.

        Each predicate is evaluated independently and recorded as its own
        ``CheckMetric``.  A predicate that raises counts as a failed check.

        Args:
            response: A response returned by one of the request methods.
            checks: Mapping of check label to predicate.

        Returns:
            True if every predicate passed, False otherwise.

        Example::

            resp = await client.post("/create", json={"id": "1"})
            client.check(resp, {"create status was 201": lambda r: r.status == 201})
        """
        all_passed = True
        for label, predicate in checks.items():
            try:
                passed = bool(predicate(response))
            except Exception:
                logger.debug("Check %r raised", label, exc_info=True)
                passed = False
            all_passed = all_passed and passed
            self._check_callback(
                CheckMetric(
                    timestamp=time.monotonic(),
                    name=label,
                    passed=passed,
                    worker_id=self._worker_id,
                )
            )
        return all_passed

    async def _request(
        self,
        method: str,
        path: str,
        *,
        name: str | None = None,
        **kwargs: object,
    ) -> Response:
        """Send an HTTP request with auto-timing and metric emission.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: URL path appended to base_url.
            name: Logical name for metric grouping. Defaults to the path.
            **kwargs: Additional keyword arguments passed to aiohttp.

        Returns:
            The aiohttp response with its body already read, or a
            :class:`FailedResponse` if the request failed before a response
            arrived.

        Raises:
            RuntimeError: If the client is used outside of an async context
                manager.
        """
        if self._session is None:
            msg = "HttpClient must be used as an async context manager"
            raise RuntimeError(msg)

        url = f"{self.base_url}{path}"
        metric_name = name or path
        merged_headers = {**self.headers}

        start = time.monotonic()
        status_code = 0
        content_length = 0
        error: str | None = None
        resp: aiohttp.ClientResponse | None = None

        try:
            resp = await self._session.request(
                method,
                url,
                headers=merged_headers,
                **kwargs,  # type: ignore[arg-type]
            )
            status_code = resp.status
            body = await resp.read()
            content_length = len(body)
        except Exception as exc:
            status_code = 0
            error = f"{type(exc).__name__}: {exc}"
            logger.debug("%s %s failed: %s", method, url, error)
            if resp is not None:
                resp.release()
        finally:
            latency_ms = (time.monotonic() - start) * 1000
            self._metric_callback(
                RequestMetric(
                    timestamp=start,
                    name=metric_name,
                    method=method,
                    url=url,
                    status_code=status_code,
                    latency_ms=latency_ms,
                    content_length=content_length,
                    error=error,
                    worker_id=self._worker_id,
                )
            )

        if error is not None or resp is None:
            return FailedResponse(method=method, url=url, error=error or "no response")
        return resp
