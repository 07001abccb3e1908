"""
Root Typer application for the stepgate CLI.

Usage::

    stepgate synth --arn arn:aws:states:us-east-1:123456789012:stateMachine:OrderFlow --name OrderFlow
    stepgate synth --arn ARN --imported --stack-path OrdersApp/OrdersStack --cors
    stepgate request --arn ARN --body '{"id": 1}'
    stepgate response --status 200 --body '{"status": "FAILED", "error": "Bad", "cause": "Timeout"}'
"""

from __future__ import annotations

import json

import typer
from rich.console import Console
from typer import Typer

from stepgate import __version__
from stepgate.core.errors import GatewayError
from stepgate.core.logging import configure_logging
from stepgate.core.settings import get_settings
from stepgate.integration.backend import BackendHandle
from stepgate.integration.options import PassthroughBehavior
from stepgate.integration.responses import default_rules
from stepgate.integration.templates import request_templates
from stepgate.rest.composer import StepFunctionsRestApi
from stepgate.simulate.gateway import GatewaySimulator

app = Typer(
    name="stepgate",
    help="stepgate: REST front end for synchronous Step Functions workflows.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"stepgate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Synthesize integrations and try mapping templates offline."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


def _handle(arn: str, name: str | None, imported: bool, stack_path: str) -> BackendHandle:
    if imported:
        return BackendHandle.imported(arn, stack_path=stack_path)
    return BackendHandle.direct(arn, name=name, stack_path=stack_path)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def synth(
    arn: str = typer.Option(..., "--arn", help="State machine ARN."),
    name: str | None = typer.Option(None, "--name", "-n", help="Declared state machine name."),
    imported: bool = typer.Option(False, "--imported", help="Treat the state machine as imported."),
    stack_path: str = typer.Option("Stack", "--stack-path", help="Owning stack path (a/b/c)."),
    api_name: str | None = typer.Option(None, "--api-name", help="REST API name."),
    cors: bool = typer.Option(False, "--cors", help="Enable CORS preflight (allow all origins)."),
    region: str | None = typer.Option(None, "--region", help="Region for integration URIs."),
) -> None:
    """Compose the REST API and print its definition as JSON."""
    try:
        api = StepFunctionsRestApi(
            _handle(arn, name, imported, stack_path),
            rest_api_name=api_name,
            default_cors_preflight_options={"allowOrigins": ["*"]} if cors else None,
            region=region,
        )
    except GatewayError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    typer.echo(json.dumps(api.to_dict(), indent=2))


@app.command()
def request(
    arn: str = typer.Option(..., "--arn", help="State machine ARN."),
    body: str = typer.Option("{}", "--body", "-b", help="Raw HTTP request body."),
    content_type: str = typer.Option("application/json", "--content-type", help="Request content type."),
) -> None:
    """Render the StartSyncExecution payload for a request body."""
    simulator = GatewaySimulator(
        request_templates=request_templates(BackendHandle.direct(arn)),
        passthrough_behavior=PassthroughBehavior.NEVER,
    )
    try:
        payload = simulator.render_request(body, content_type)
    except GatewayError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    typer.echo(payload)


@app.command()
def response(
    status: int = typer.Option(200, "--status", "-s", help="Backend status signal."),
    body: str = typer.Option("{}", "--body", "-b", help="Backend response body."),
    strict: bool = typer.Option(False, "--strict", help="Render error bodies as well-formed JSON."),
) -> None:
    """Show the HTTP status and body the response rules produce."""
    simulator = GatewaySimulator(rules=default_rules(strict=strict))
    try:
        result = simulator.render_response(status, body)
    except GatewayError as e:
        err_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    console.print(f"[bold]HTTP {result.status_code}[/bold]")
    typer.echo(result.body.strip())
