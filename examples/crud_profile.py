"""CRUD load profile: read, create, update, delete, then pause one second.

The stages ramp to 200 VUs over 5 minutes, up to 1000 and hold, spike to
2000, then step back down to zero (42 minutes in total). Run it with:

    hellobench run examples/crud_profile.py

or point it elsewhere and shorten the schedule:

    hellobench run examples/crud_profile.py --base-url http://localhost:8080 \
        --stage 30s:20 --stage 30s:20 --stage 10s:0

Only ``GET /`` is served by ``hellobench serve``; the create, update and
delete endpoints belong to whatever service sits behind the base URL.
"""

from __future__ import annotations

from hellobench import HttpClient, scenario, task

API_URL = "http://localhost:8080"


@scenario(
    name="CRUD Profile",
    base_url=API_URL,
    think_time=(1.0, 1.0),
    stages=[
        ("5m", 200),
        ("10m", 1000),
        ("10m", 1000),
        ("5m", 2000),
        ("2m", 2000),
        ("5m", 1000),
        ("5m", 0),
    ],
)
class CrudProfile:
    """One iteration touches every CRUD endpoint once, in order."""

    @task(name="Read")
    async def read(self, client: HttpClient) -> None:
        resp = await client.get("/", name="Read")
        client.check(resp, {"read status was 200": lambda r: r.status == 200})

    @task(name="Create")
    async def create(self, client: HttpClient) -> None:
        resp = await client.post(
            "/create",
            json={"id": "1", "value": "test value"},
            name="Create",
        )
        client.check(resp, {"create status was 201": lambda r: r.status == 201})

    @task(name="Update")
    async def update(self, client: HttpClient) -> None:
        resp = await client.put(
            "/update",
            json={"id": "1", "value": "updated value"},
            name="Update",
        )
        client.check(resp, {"update status was 200": lambda r: r.status == 200})

    @task(name="Delete")
    async def delete(self, client: HttpClient) -> None:
        resp = await client.delete("/delete?id=1", name="Delete")
        client.check(resp, {"delete status was 200": lambda r: r.status == 200})
