"""Real-time CLI dashboard for forwarder monitoring."""

from datetime import datetime
from pathlib import Path
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import truncate, write_cli_log

console = Console()


class ForwardInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, path: str, status: int, timestamp: datetime):
        self.method = method
        self.path = truncate(path, 60)
        self.status = status
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent forwards and errors."""

    def __init__(self, config: Config, log_file: Path | None = None):
        self.config = config
        self._log_file = log_file
        self._lock = Lock()
        self._recent: list[ForwardInfo] = []
        self._max_recent = 10
        self._counts = {"forwarded": 0, "errors": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_forward(self, method: str, path: str, target: str, status: int) -> None:
        """Log a request relayed to the upstream."""
        with self._lock:
            self._counts["forwarded"] += 1
            self._recent.insert(0, ForwardInfo(method, path, status, datetime.now()))
            self._recent = self._recent[: self._max_recent]
            self._refresh()
            write_cli_log("FORWARD", f"{method} {path}", log_file=self._log_file, target=target, status=status)

    def log_error(self, method: str, path: str, status: int | None, message: str) -> None:
        """Log a forwarding error."""
        with self._lock:
            self._counts["errors"] += 1
            label = status if status is not None else "stream"
            self._errors.insert(0, f"{method} {path} {label}: {truncate(message, 50)}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], log_file=self._log_file, method=method, path=path, status=label)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Upstream Forwarder", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Forwarded: {self._counts['forwarded']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Errors: {self._counts['errors']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")
        stats.append("  ->  ")
        stats.append(self.config.upstream.base_url, style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=8)
            table.add_column("Path", ratio=3)
            table.add_column("Status", width=6)

            for info in self._recent:
                style = "red" if info.status >= 500 else "yellow" if info.status >= 400 else "green"
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    info.path,
                    Text(str(info.status), style=style),
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Send requests to http://localhost:{self.config.proxy.port}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")


class PlainLogger:
    """Line-per-event console logger for runs without the live dashboard."""

    def __init__(self, log_file: Path | None = None):
        self._log_file = log_file
        self._lock = Lock()

    def log_forward(self, method: str, path: str, target: str, status: int) -> None:
        with self._lock:
            console.print(f"[blue]{method}[/blue] {escape(path)} -> {escape(target)} [bold]{status}[/bold]")
            write_cli_log("FORWARD", f"{method} {path}", log_file=self._log_file, target=target, status=status)

    def log_error(self, method: str, path: str, status: int | None, message: str) -> None:
        with self._lock:
            label = status if status is not None else "stream"
            console.print(f"[red]{method} {escape(path)} {label}:[/red] {escape(message)}")
            write_cli_log("ERROR", message[:200], log_file=self._log_file, method=method, path=path, status=label)
