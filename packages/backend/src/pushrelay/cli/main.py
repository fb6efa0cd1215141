"""pushrelay CLI — run the relay and poke at a running one.

Usage:
    pushrelay serve                                  # Start the relay (uvicorn)
    pushrelay health                                 # Dependency status
    pushrelay set-token alice pixel-7 <fcm-token>    # Register a push token
    pushrelay get-token alice                        # Show a stored token
    pushrelay queue                                  # Queue sizes per identity
    pushrelay queue alice                            # Pending messages for alice
    pushrelay drain alice                            # Fetch and clear alice's queue
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Optional

import click
import httpx

from pushrelay import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"


def _api_url() -> str:
    return os.environ.get("PUSHRELAY_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the relay."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=10.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler."""
    try:
        return asyncio.run(coro)
    except httpx.ConnectError:
        click.secho(f"Error: relay not reachable at {_api_url()}", fg="red", err=True)
        sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


async def _request(method: str, path: str, **kwargs) -> httpx.Response:
    async with _client() as c:
        return await c.request(method, f"/api/v1{path}", **kwargs)


def _fail_unless_ok(r: httpx.Response) -> dict:
    body = r.json()
    if r.status_code >= 400:
        click.secho(f"Error ({r.status_code}): {body.get('error', body)}", fg="red", err=True)
        sys.exit(1)
    return body


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="pushrelay")
def main():
    """pushrelay: relay events between users, with push fallback."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: RELAY_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: RELAY_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Start the relay server."""
    import uvicorn

    from pushrelay.config import settings

    uvicorn.run(
        "pushrelay.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@main.command()
def health():
    """Show relay and dependency status."""
    r = _run(_request("GET", "/health"))
    body = _fail_unless_ok(r)
    color = "green" if body.get("status") == "healthy" else "yellow"
    click.secho(f"status:   {body.get('status')}", fg=color, bold=True)
    click.echo(f"version:  {body.get('version')}")
    click.echo(f"database: {body.get('database')}")
    click.echo(f"redis:    {body.get('redis')}")
    click.echo(f"firebase: {'enabled' if body.get('firebase') else 'disabled'}")


@main.command("set-token")
@click.argument("user_id")
@click.argument("device_id")
@click.argument("fcm_token")
def set_token(user_id: str, device_id: str, fcm_token: str):
    """Register (or replace) USER_ID's push token."""
    r = _run(_request("POST", "/tokens", json={
        "userId": user_id,
        "deviceId": device_id,
        "fcmToken": fcm_token,
    }))
    _fail_unless_ok(r)
    click.secho(f"Token set for {user_id} ({device_id})", fg="green")


@main.command("get-token")
@click.argument("user_id")
def get_token(user_id: str):
    """Show USER_ID's stored push token."""
    r = _run(_request("GET", f"/tokens/{user_id}"))
    click.echo(_pretty_json(_fail_unless_ok(r)))


@main.command()
@click.argument("identity", required=False)
def queue(identity: Optional[str]):
    """Show queue sizes, or the pending messages for IDENTITY."""
    path = f"/queues/{identity}" if identity else "/queues"
    r = _run(_request("GET", path))
    click.echo(_pretty_json(_fail_unless_ok(r)))


@main.command()
@click.argument("identity")
def drain(identity: str):
    """Fetch and clear every pending message for IDENTITY."""
    r = _run(_request("POST", f"/queues/{identity}/drain"))
    body = _fail_unless_ok(r)
    click.secho(f"Drained {body['count']} message(s) for {identity}", fg="green")
    for message in body["messages"]:
        click.echo(_pretty_json(message))


if __name__ == "__main__":
    main()
