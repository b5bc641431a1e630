"""Shared test fixtures for the hellobench test suite."""

from __future__ import annotations

import asyncio
import socket
import threading
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


@pytest.fixture
def free_port() -> int:
    """An unused localhost port."""
    return get_free_port()


# =============================================================================
# Mock CRUD target
# =============================================================================

# Status returned by each mock endpoint; tests override entries through
# the ``crud_target`` fixture's ``statuses`` app key.
STATUSES_KEY = web.AppKey("statuses", dict)
CALLS_KEY = web.AppKey("calls", list)

DEFAULT_STATUSES = {
    "read": 200,
    "create": 201,
    "update": 200,
    "delete": 200,
}


def _endpoint(kind: str):
    async def handler(request: web.Request) -> web.Response:
        body = await request.read()
        request.app[CALLS_KEY].append((request.method, request.path_qs, body.decode() or None))
        status = request.app[STATUSES_KEY][kind]
        return web.json_response({"endpoint": kind}, status=status)

    return handler


def create_crud_app(statuses: dict[str, int] | None = None) -> web.Application:
    """Build a stand-in for the service the CRUD profile targets."""
    app = web.Application()
    app[STATUSES_KEY] = {**DEFAULT_STATUSES, **(statuses or {})}
    app[CALLS_KEY] = []
    app.router.add_get("/", _endpoint("read"))
    app.router.add_post("/create", _endpoint("create"))
    app.router.add_put("/update", _endpoint("update"))
    app.router.add_delete("/delete", _endpoint("delete"))
    return app


class CrudTarget:
    """A running mock CRUD service."""

    def __init__(self, app: web.Application, url: str) -> None:
        self.app = app
        self.url = url

    @property
    def statuses(self) -> dict[str, int]:
        return self.app[STATUSES_KEY]

    @property
    def calls(self) -> list[tuple[str, str, str | None]]:
        return self.app[CALLS_KEY]


@pytest.fixture
async def crud_target() -> AsyncIterator[CrudTarget]:
    """Mock CRUD server on a free port; statuses can be changed per test."""
    app = create_crud_app()
    port = get_free_port()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield CrudTarget(app, f"http://127.0.0.1:{port}")
    await runner.cleanup()


@pytest.fixture
def sync_crud_target() -> Iterator[CrudTarget]:
    """Mock CRUD server running in a background thread for sync tests.

    Used where the code under test owns the event loop (``asyncio.run``).
    """
    port = get_free_port()
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []
    app = create_crud_app()

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(app)
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield CrudTarget(app, f"http://127.0.0.1:{port}")

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


# =============================================================================
# Scenario files
# =============================================================================

CRUD_SCENARIO_CODE = '''\
from __future__ import annotations

from hellobench import HttpClient, scenario, task


@scenario(
    name="{name}",
    base_url="{base_url}",
    think_time=(0.01, 0.02),
    stages=[("1s", 2), ("1s", 2), ("0.5s", 0)],
)
class CrudScenario:

    @task
    async def read(self, client: HttpClient) -> None:
        resp = await client.get("/", name="Read")
        client.check(resp, {{"read status was 200": lambda r: r.status == 200}})

    @task
    async def create(self, client: HttpClient) -> None:
        resp = await client.post("/create", json={{"id": "1", "value": "test value"}}, name="Create")
        client.check(resp, {{"create status was 201": lambda r: r.status == 201}})

    @task
    async def update(self, client: HttpClient) -> None:
        resp = await client.put("/update", json={{"id": "1", "value": "updated value"}}, name="Update")
        client.check(resp, {{"update status was 200": lambda r: r.status == 200}})

    @task
    async def delete(self, client: HttpClient) -> None:
        resp = await client.delete("/delete?id=1", name="Delete")
        client.check(resp, {{"delete status was 200": lambda r: r.status == 200}})
'''


def write_crud_scenario(directory: Path, base_url: str, name: str = "CRUD Test") -> Path:
    """Write a short CRUD profile pointing at *base_url*."""
    path = directory / "crud_scenario.py"
    path.write_text(CRUD_SCENARIO_CODE.format(name=name, base_url=base_url))
    return path


@pytest.fixture
def scenario_file(tmp_path: Path, sync_crud_target: CrudTarget) -> Path:
    """A short CRUD profile pointing at the threaded mock target."""
    return write_crud_scenario(tmp_path, sync_crud_target.url)
