"""Upstream reachability check for the ``--check`` command."""

import httpx
from rich.console import Console

from core.config import CONFIG_FILE, Config

console = Console()


def probe_upstream(base_url: str, timeout: float = 5.0) -> int | None:
    """Return the upstream's status for ``GET base_url``, or None if unreachable."""
    try:
        response = httpx.get(base_url, timeout=timeout)
    except httpx.RequestError as e:
        console.print(f"[red]Upstream unreachable:[/red] {str(e) or type(e).__name__}")
        return None
    return response.status_code


def check_upstream(config: Config) -> bool:
    """Check if the configured upstream answers HTTP."""
    base_url = config.upstream.base_url
    status = probe_upstream(base_url)
    if status is not None:
        console.print(f"[green]Upstream reachable[/green] {base_url} (status {status})")
        return True
    else:
        console.print(f"[yellow]Upstream not reachable[/yellow] {base_url}")
        console.print(f"\n[dim]Start the upstream service or edit upstream.base_url in:[/dim] {CONFIG_FILE}")
        return False
