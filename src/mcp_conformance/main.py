"""CLI main entry point."""

import asyncio
import sys
from urllib.parse import urlparse

import click

from .config import load_config
from .errors import ConformanceError
from .formatters import print_config_yaml, print_run_result, print_summary
from .runner import run_batch, run_client_scenario
from .scenarios.registry import default_registry
from .shared.logging import configure_logging


def validate_url(ctx: click.Context, param: click.Parameter, value: str) -> str:
    """Validate URL format."""
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise click.BadParameter(f"Invalid URL format: {value}")
    return value


@click.group()
@click.option("-c", "--config", "config_path", type=click.Path(), help="Config file path")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Log level (default: from config, else warning)",
)
@click.option("--log-file", type=click.Path(), help="Write logs to file instead of stderr")
@click.option("-v", "--verbose", is_flag=True, help="Print the full JSON check report")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    log_level: str | None,
    log_file: str | None,
    verbose: bool,
) -> None:
    """MCP conformance harness."""
    ctx.ensure_object(dict)
    config = load_config(config_path)
    if log_level:
        config.log_level = log_level.lower()
    configure_logging(config.log_level, log_file=log_file, json_output=bool(log_file))

    ctx.obj["config"] = config
    ctx.obj["registry"] = default_registry()
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option("--command", "command", required=True, help="Command launching the client under test")
@click.option("--scenario", required=True, help="Scenario to serve (see 'list')")
@click.option("-t", "--timeout", type=float, help="Client timeout in seconds")
@click.pass_context
def client(ctx: click.Context, command: str, scenario: str, timeout: float | None) -> None:
    """Test an MCP client: serve a scenario and run COMMAND <server_url>."""
    config = ctx.obj["config"]
    if timeout is not None:
        config.timeout = timeout

    registry = ctx.obj["registry"]
    if not registry.has_scenario(scenario):
        click.echo(f"Error: Unknown scenario '{scenario}'", err=True)
        click.echo(f"Available: {', '.join(registry.list_scenarios())}", err=True)
        sys.exit(1)

    try:
        result = asyncio.run(run_client_scenario(command, scenario, registry, config=config))
    except ConformanceError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"Error: Cannot launch client: {e}", err=True)
        sys.exit(1)

    print_run_result(result, verbose=ctx.obj["verbose"])
    sys.exit(1 if result.failed else 0)


@cli.command()
@click.option("--url", required=True, callback=validate_url, help="MCP endpoint (e.g., http://localhost:3000/mcp)")
@click.option("--scenario", "scenarios", multiple=True, help="Client scenario to run (repeatable; default: all)")
@click.pass_context
def server(ctx: click.Context, url: str, scenarios: tuple[str, ...]) -> None:
    """Test an MCP server at URL."""
    registry = ctx.obj["registry"]
    unknown = [name for name in scenarios if not registry.has_probe(name)]
    if unknown:
        click.echo(f"Error: Unknown client scenario(s): {', '.join(unknown)}", err=True)
        click.echo(f"Available: {', '.join(registry.list_probes())}", err=True)
        sys.exit(1)

    summary = asyncio.run(run_batch(url, registry, scenarios or None, config=ctx.obj["config"]))
    print_summary(summary, verbose=ctx.obj["verbose"])
    sys.exit(0 if summary.success else 1)


@cli.command("list")
@click.pass_context
def list_scenarios(ctx: click.Context) -> None:
    """List available scenarios."""
    registry = ctx.obj["registry"]
    click.echo("Scenarios for testing clients (client --scenario):")
    for name in registry.list_scenarios():
        click.echo(f"  - {name}: {registry.create_scenario(name).description}")
    click.echo("\nScenarios for testing servers (server --scenario):")
    for name in registry.list_probes():
        click.echo(f"  - {name}: {registry.create_probe(name).description}")


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Show the effective configuration and where each value came from."""
    config = ctx.obj["config"]
    print_config_yaml(config.to_dict(), sources={key: config.get_source(key) for key in config.to_dict()})


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
