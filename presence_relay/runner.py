"""
CLI entrypoint for the presence relay.
"""
import asyncio
import json

import httpx
import typer

from presence_relay.client.subscriber import RelaySubscriber
from presence_relay.client.visualizer import Visualizer
from presence_relay.shared.config import settings
from presence_relay.shared.log_setup import setup_logging

app = typer.Typer(help="Presence relay: webhook in, WebSocket fan-out")

ServerOption = typer.Option(None, "--server", help="Relay base URL (defaults to SERVER_URL)")


def _base_url(server: str | None) -> str:
    return (server or settings.SERVER_URL).rstrip("/")


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind host (defaults to HOST)"),
    port: int = typer.Option(None, help="Bind port (defaults to PORT)"),
):
    """Start the relay with Uvicorn."""
    import uvicorn
    setup_logging(settings.LOG_LEVEL)
    port = port or settings.PORT
    typer.echo(f"Webhook server is running at http://localhost:{port}")
    uvicorn.run(
        "presence_relay.server.main:app",
        host=host or settings.HOST,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
    )


@app.command()
def listen(
    duration: float = typer.Option(300.0, help="How long to stay subscribed, in seconds"),
    client_id: str = typer.Option("cli_listener", help="client_id reported to the relay"),
    server: str = ServerOption,
):
    """Subscribe over WebSocket and show the live feed."""
    subscriber = RelaySubscriber(client_id, _base_url(server))
    try:
        asyncio.run(Visualizer(subscriber).run(duration))
    except KeyboardInterrupt:
        pass


@app.command()
def notify(
    user_id: str = typer.Option(..., "--id", help="Resource id of the user"),
    availability: str = typer.Option("Available", help="Availability to report"),
    activity: str = typer.Option(None, help="Optional activity"),
    server: str = ServerOption,
):
    """Post a single fake presence notification, as the webhook source would."""
    resource = {"id": user_id, "availability": availability}
    if activity:
        resource["activity"] = activity
    resp = httpx.post(f"{_base_url(server)}/notifications", json={"value": [{"resourceData": resource}]})
    typer.echo(f"{resp.status_code} {resp.text}")
    if resp.status_code != 200:
        raise typer.Exit(1)


@app.command()
def handshake(
    token: str = typer.Option(..., help="validationToken to send"),
    server: str = ServerOption,
):
    """Run the validation handshake and check the token comes back unchanged."""
    resp = httpx.post(f"{_base_url(server)}/notifications", params={"validationToken": token})
    if resp.status_code != 200 or resp.text != token:
        typer.echo(f"Handshake failed: {resp.status_code} {resp.text!r}")
        raise typer.Exit(1)
    typer.echo("Handshake OK")


@app.command()
def events(server: str = ServerOption):
    """Dump the relay's full event buffer."""
    resp = httpx.get(f"{_base_url(server)}/events")
    resp.raise_for_status()
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def stats(server: str = ServerOption):
    """Query the relay for live stats."""
    resp = httpx.get(f"{_base_url(server)}/stats")
    typer.echo(resp.json())


if __name__ == "__main__":
    app()
