"""
Key Service CLI

Commands:
- serve: Run the gRPC surface, plus HTTP outside development mode
- generate: Print a random credential string
- config show: Display the effective configuration with keys masked
"""

import asyncio
import logging
from typing import Optional

import click
import uvicorn
from rich.console import Console
from rich.table import Table
from rich import box

from keyservice import __version__
from keyservice.config import KeyServiceConfig, load_config
from keyservice.constants import PAIR_KEY_LENGTH
from keyservice.exceptions import ConfigurationError, GenerationError
from keyservice.identity.gate import ALLOWED_SERVICES
from keyservice.identity.generator import generate_random_string
from keyservice.observability.metrics import KeyServiceMetrics
from keyservice.services.credential_service import CredentialService
from keyservice.storage import create_store
from keyservice.transport.grpc_server import KeyServiceServicer, create_grpc_server
from keyservice.transport.http_app import create_app

console = Console()
logger = logging.getLogger(__name__)

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML configuration file. Environment variables override it.",
)


def _load(config_path: Optional[str]) -> KeyServiceConfig:
    try:
        return load_config(config_path)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc


def _mask(key: str) -> str:
    """Show only whether a key is set, never its value."""
    return "[green]set[/green]" if key else "[red]unset[/red]"


@click.group()
@click.version_option(__version__, prog_name="keyservice")
def cli():
    """Key service: issue and validate credentials for users, hooks and agents."""


@cli.command()
@config_option
@click.option("--host", default="0.0.0.0", show_default=True, help="HTTP bind address.")
def serve(config_path: Optional[str], host: str):
    """Run the key service."""
    config = _load(config_path)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(_serve(config, host))


async def _serve(config: KeyServiceConfig, host: str) -> None:
    metrics = KeyServiceMetrics()
    store = create_store(config)
    service = CredentialService(config, store, metrics)

    grpc_server = create_grpc_server(
        KeyServiceServicer(service), config.grpc_port, metrics=metrics
    )
    await grpc_server.start()
    logger.info("Starting key gRPC on port %d", config.grpc_port)
    try:
        if config.development:
            logger.info("Development mode: HTTP surface disabled")
            await grpc_server.wait_for_termination()
        else:
            logger.info("Starting key HTTP on %s:%d", host, config.http_port)
            http_server = uvicorn.Server(
                uvicorn.Config(
                    create_app(service, metrics),
                    host=host,
                    port=config.http_port,
                    log_config=None,
                )
            )
            await http_server.serve()
    finally:
        await grpc_server.stop(grace=2)
        await store.close()


@cli.command()
@click.option(
    "--length",
    "-n",
    type=click.IntRange(min=1),
    default=PAIR_KEY_LENGTH,
    show_default=True,
    help="Number of characters.",
)
@click.option("--count", "-c", type=click.IntRange(min=1), default=1, show_default=True)
def generate(length: int, count: int):
    """Print random credential strings (ASCII letters only)."""
    try:
        for _ in range(count):
            click.echo(generate_random_string(length))
    except GenerationError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.group()
def config():
    """Inspect configuration."""


@config.command("show")
@config_option
def show_config(config_path: Optional[str]):
    """Show the effective configuration. Key values are never printed."""
    cfg = _load(config_path)

    table = Table(title="Services", box=box.ROUNDED)
    table.add_column("Service", style="cyan")
    table.add_column("Address")
    table.add_column("Key")
    table.add_column("Allow-listed")
    for name, endpoint in cfg.services.items():
        table.add_row(
            name.value,
            endpoint.address,
            _mask(endpoint.key),
            "yes" if name in ALLOWED_SERVICES else "no",
        )
    console.print(table)

    stores = Table(title="Stores", box=box.ROUNDED)
    stores.add_column("Partition", style="cyan")
    stores.add_column("Database")
    stores.add_column("Collection")
    for partition in ("bundle", "user", "hooks", "agent"):
        location = getattr(cfg.locations, partition)
        stores.add_row(partition, location.database, location.collection)
    console.print(stores)

    console.print(f"Backend: [bold]{cfg.store.backend}[/bold]")
    console.print(f"HTTP port: {cfg.http_port}  gRPC port: {cfg.grpc_port}")
    if cfg.development:
        console.print("[yellow]Development mode: HTTP surface disabled[/yellow]")


if __name__ == "__main__":
    cli()
