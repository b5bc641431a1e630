"""Hello-world echo server built on aiohttp."""

from __future__ import annotations

import asyncio

from aiohttp import web

from hellobench._internal.config import ServerConfig
from hellobench._internal.errors import ServerError
from hellobench._internal.logging import get_logger
from hellobench._internal.signals import install_stop_handlers, remove_stop_handlers

logger = get_logger("server.app")

CONFIG_KEY = web.AppKey("config", ServerConfig)

GREETING_TEMPLATE = "<h1>Hello World</h1><h1>Running on port {port}</h1>"


async def _index_handler(request: web.Request) -> web.Response:
    """Answer ``GET /`` with the static greeting and log the caller."""
    config = request.app[CONFIG_KEY]
    logger.info(
        "Requester IP: %s",
        request.remote,
        extra={"client_ip": request.remote},
    )
    return web.Response(
        text=GREETING_TEMPLATE.format(port=config.port),
        content_type="text/html",
    )


def create_app(config: ServerConfig) -> web.Application:
    """Build the echo server application.

    Only ``GET /`` is routed; every other path or method falls through to
    aiohttp's default 404/405 responses.

    Args:
        config: Resolved server configuration.

    Returns:
        The configured aiohttp application.
    """
    app = web.Application()
    app[CONFIG_KEY] = config
    app.router.add_get("/", _index_handler)
    return app


class EchoServer:
    """Owns the echo server's aiohttp application for the process lifetime.

    Usage::

        async with EchoServer(ServerConfig(port=8080)) as server:
            ...  # server.url == "http://0.0.0.0:8080"

    Attributes:
        config: The configuration the server was built from.
    """

    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self._app = create_app(config)
        self._runner: web.AppRunner | None = None

    @property
    def app(self) -> web.Application:
        """Return the underlying aiohttp application."""
        return self._app

    @property
    def is_running(self) -> bool:
        """Return True while the server is bound and accepting connections."""
        return self._runner is not None

    @property
    def url(self) -> str:
        """Return the base URL the server listens on."""
        return f"http://{self.config.host}:{self.config.port}"

    async def start(self) -> None:
        """Bind the configured address and start serving.

        Raises:
            ServerError: If the server is already running or the address
                cannot be bound (e.g. the port is taken).
        """
        if self._runner is not None:
            msg = f"Server already running on {self.url}"
            raise ServerError(msg)

        # Each start gets a fresh application so a stopped server can be
        # started again on the same port.
        if self._app.frozen:
            self._app = create_app(self.config)

        runner = web.AppRunner(self._app)
        await runner.setup()
        site = web.TCPSite(runner, self.config.host, self.config.port)
        try:
            await site.start()
        except OSError as exc:
            await runner.cleanup()
            msg = f"Cannot bind {self.config.host}:{self.config.port}: {exc}"
            raise ServerError(msg) from exc

        self._runner = runner
        logger.info(
            "Service is running on: %d",
            self.config.port,
            extra={"port": self.config.port},
        )

    async def stop(self) -> None:
        """Stop serving and release the listening socket. Safe to call twice."""
        if self._runner is None:
            return
        runner, self._runner = self._runner, None
        await runner.cleanup()
        logger.info("Service on port %d stopped", self.config.port)

    async def serve_forever(self, stop_event: asyncio.Event | None = None) -> None:
        """Start the server and block until *stop_event* is set or a signal arrives.

        Args:
            stop_event: Optional event that ends the serve loop when set.
                SIGINT and SIGTERM set it as well.

        Raises:
            ServerError: If the server fails to start.
        """
        event = stop_event or asyncio.Event()
        await self.start()

        def _on_signal() -> None:
            logger.info("Signal received, shutting down")
            event.set()

        install_stop_handlers(_on_signal)
        try:
            await event.wait()
        finally:
            remove_stop_handlers()
            await self.stop()

    async def __aenter__(self) -> EchoServer:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.stop()
