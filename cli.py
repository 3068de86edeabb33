"""CLI entry point for upstream-forwarder."""

import sys
from datetime import datetime

import uvicorn
from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, load_config
from health import check_upstream
from ui.dashboard import Dashboard, PlainLogger
from ui.log_utils import write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()
    use_dashboard = config.proxy.dashboard

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--check":
            sys.exit(0 if check_upstream(config) else 1)

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print_json(config.model_dump_json())
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        if arg == "--no-dashboard":
            use_dashboard = False
        else:
            console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
            _print_help()
            sys.exit(2)

    dashboard = Dashboard(config) if use_dashboard else None
    logger = dashboard or PlainLogger()
    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    if dashboard:
        dashboard.start()
    else:
        console.print(
            f"[bold cyan]Upstream Forwarder[/bold cyan] on "
            f"http://{config.proxy.host}:{config.proxy.port} -> {config.upstream.base_url}"
        )
    start_time = datetime.now()
    write_cli_log("STARTUP", "Forwarder started", port=config.proxy.port, upstream=config.upstream.base_url)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Forwarder stopped", duration=str(duration))
        if dashboard:
            dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Upstream Forwarder[/bold cyan]

Relays every request, unmodified, to one fixed upstream.

[bold]Usage:[/bold]
    upstream-forwarder                 Start with live dashboard
    upstream-forwarder --no-dashboard  Start with plain console logging
    upstream-forwarder --check         Check the upstream is reachable
    upstream-forwarder --config        Show config location and settings
    upstream-forwarder --help          Show this help
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
