import click


@click.group()
def main() -> None:
    """Maistro - prompt automation for the goose agent CLI."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from MAISTRO_HOST or 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Bind port (default: from MAISTRO_PORT or 3000).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the Maistro server."""
    import uvicorn

    from maistro.server.settings import get_settings

    settings = get_settings()

    uvicorn.run(
        "maistro.server.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
        ws_ping_interval=30,
        # Allow in-flight executions to drain before the process exits.
        timeout_graceful_shutdown=settings.graceful_shutdown_timeout + 30,
    )


@main.command()
@click.argument("config_id")
def run(config_id: str) -> None:
    """Run one configuration to completion, printing its output.

    This is the entry point installed into the crontab for scheduled runs.
    """
    import asyncio

    from maistro.server.channels import ConsoleChannel
    from maistro.server.log import setup_logging
    from maistro.server.services import create_services
    from maistro.server.settings import get_settings

    settings = get_settings()
    setup_logging(settings.effective_log_level)

    async def _run() -> bool:
        services = create_services(settings)
        await services.load()
        config = await services.configs.find_config(config_id)
        if config is None:
            click.secho(f"Configuration not found: {config_id}", fg="red", err=True)
            return False
        services.channels.register(config_id, ConsoleChannel())
        result = await services.coordinator.execute_configuration(config)
        return result.ok

    ok = asyncio.run(_run())
    raise SystemExit(0 if ok else 1)


@main.command()
def check() -> None:
    """Verify that the goose CLI can be found and started."""
    import subprocess

    from maistro.server.execution.discovery import find_agent_executable
    from maistro.server.settings import get_settings

    executable = find_agent_executable(get_settings().agent_command)
    click.echo(f"Agent CLI: {executable}")
    try:
        completed = subprocess.run(  # noqa: S603
            [executable, "--version"],
            capture_output=True,
            text=True,
            timeout=30,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        click.secho(f"Could not run {executable}: {exc}", fg="red", err=True)
        raise SystemExit(1) from None
    if completed.returncode != 0:
        click.secho(completed.stderr.strip() or f"exit code {completed.returncode}", fg="red", err=True)
        raise SystemExit(1)
    click.secho(completed.stdout.strip(), fg="green")


if __name__ == "__main__":
    main()
