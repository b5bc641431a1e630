"""Smoke profile for the echo server.

Start the server and run a short ramp against it:

    hellobench serve 8080 &
    hellobench run examples/greeting_smoke.py
"""

from __future__ import annotations

from hellobench import HttpClient, scenario, task


@scenario(
    name="Greeting Smoke",
    base_url="http://localhost:8080",
    think_time=(0.5, 1.0),
    stages=[("10s", 10), ("20s", 10), ("5s", 0)],
)
class GreetingSmoke:
    """Fetch the greeting and verify it names the port."""

    @task
    async def greeting(self, client: HttpClient) -> None:
        resp = await client.get("/", name="Greeting")
        body = await resp.text()
        client.check(
            resp,
            {
                "status was 200": lambda r: r.status == 200,
                "names the port": lambda _r: "Running on port 8080" in body,
            },
        )
