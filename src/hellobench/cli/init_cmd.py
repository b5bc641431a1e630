"""``hellobench init``: scaffold a CRUD load profile from a template."""

from __future__ import annotations

from pathlib import Path
from string import Template

import typer
from rich.console import Console

console = Console(stderr=True)

_SCENARIO_TEMPLATE = Template('''\
"""Load profile: $name.

Run with:
    hellobench run $filename
    hellobench run $filename --base-url http://localhost:8080 --stage 30s:10 --stage 10s:0
"""

from __future__ import annotations

from hellobench import HttpClient, scenario, task


@scenario(
    name="$name",
    base_url="$base_url",
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
class $class_name:
    """Read, create, update and delete once per iteration."""

    @task
    async def read(self, client: HttpClient) -> None:
        resp = await client.get("/", name="Read")
        client.check(resp, {"read status was 200": lambda r: r.status == 200})

    @task
    async def create(self, client: HttpClient) -> None:
        resp = await client.post("/create", json={"id": "1", "value": "test value"}, name="Create")
        client.check(resp, {"create status was 201": lambda r: r.status == 201})

    @task
    async def update(self, client: HttpClient) -> None:
        resp = await client.put("/update", json={"id": "1", "value": "updated value"}, name="Update")
        client.check(resp, {"update status was 200": lambda r: r.status == 200})

    @task
    async def delete(self, client: HttpClient) -> None:
        resp = await client.delete("/delete?id=1", name="Delete")
        client.check(resp, {"delete status was 200": lambda r: r.status == 200})
''')


def init_cmd(
    name: str = typer.Argument(
        "crud_profile",
        help="Name for the profile (used as filename and class name).",
    ),
    base_url: str = typer.Option(
        "http://localhost:8080",
        "--base-url",
        "-b",
        help="Target base URL written into the profile.",
    ),
) -> None:
    """Scaffold a CRUD load profile in the current directory."""
    safe_name = "".join(c if c.isalnum() or c == "_" else "_" for c in name).lower()
    if not safe_name or safe_name[0].isdigit():
        safe_name = "profile_" + safe_name

    filename = f"{safe_name}.py"
    words = [w for w in safe_name.split("_") if w]
    if words[-1:] != ["profile"]:
        words.append("profile")
    class_name = "".join(word.capitalize() for word in words)
    display_name = name.replace("_", " ").replace("-", " ").title()

    target = Path.cwd() / filename
    if target.exists():
        console.print(f"[red]File already exists:[/red] {filename}")
        raise typer.Exit(code=1)

    content = _SCENARIO_TEMPLATE.substitute(
        name=display_name,
        filename=filename,
        class_name=class_name,
        base_url=base_url,
    )
    target.write_text(content)
    console.print(f"[green]Created load profile:[/green] {filename}")
