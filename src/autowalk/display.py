"""
Display manager for Rich-based REPL output and live updates.

Renders the treadmill -> VRTI -> game pipeline as tables, prints command
results, and drives the toggle-able live view.
"""

import logging
from typing import Any, Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from .core import PRESETS, ResultCode
from .engine import OverrideLevel
from .nudge import NudgeDirection

logger = logging.getLogger(__name__)


class DisplayManager:
    """Manages console output with Rich library."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize display manager.

        Args:
            console: Rich Console instance (creates one if None)
        """
        self.console = console or Console()
        self.live_enabled = False
        self._live: Optional[Live] = None
        self._live_data: dict[str, Any] = {}

    def print_banner(self) -> None:
        """Print startup banner."""
        panel = Panel(
            "[bold cyan]AutoWalk - Walk Speed Preview[/bold cyan]\n"
            "[dim]Type 'help' for commands, 'quit' to exit[/dim]",
            expand=False,
        )
        self.console.print(panel)

    def print_status(self, data: dict) -> None:
        """Display one-time pipeline table.

        Args:
            data: Status dict from AutoWalkController.get_status()
        """
        table = self.format_status_table(data)
        self.console.print(table)

    def print_result(self, cmd: str, result: ResultCode) -> None:
        """Display command result.

        Args:
            cmd: Command name
            result: ResultCode enum
        """
        if result == ResultCode.SUCCESS:
            self.console.print(f"[green]✓[/green] {cmd} succeeded", highlight=False)
        elif result == ResultCode.INVALID_PARAMETER:
            self.console.print(
                f"[red]✗[/red] {cmd} invalid parameter",
                highlight=False,
            )
        elif result == ResultCode.NOT_PERMITTED:
            self.console.print(
                f"[red]✗[/red] {cmd} not permitted while override is active",
                highlight=False,
            )
        else:
            self.console.print(
                f"[yellow]?[/yellow] {cmd} result: {result.name}", highlight=False
            )

    def print_error(self, message: str) -> None:
        """Print red error message.

        Args:
            message: Error message text
        """
        self.console.print(f"[red]Error:[/red] {message}", highlight=False)

    def print_info(self, message: str) -> None:
        """Print blue info message.

        Args:
            message: Info message text
        """
        self.console.print(f"[cyan]Info:[/cyan] {message}", highlight=False)

    def print_help(self, commands: list) -> None:
        """Display command reference.

        Args:
            commands: List of Command objects
        """
        table = Table(title="Available Commands", show_header=True)
        table.add_column("Command", style="cyan")
        table.add_column("Aliases", style="magenta")
        table.add_column("Description", style="white")
        table.add_column("Usage", style="yellow")

        for cmd in commands:
            aliases = ", ".join(cmd.aliases) if cmd.aliases else "-"
            table.add_row(cmd.name, aliases, cmd.description, cmd.usage)

        self.console.print(table)
        self.console.print(
            "[dim]Keyboard shortcuts: Ctrl+C to interrupt, Ctrl+D to exit[/dim]"
        )

    def print_mapping(self, rows: list[dict]) -> None:
        """Display final speed for a sweep of treadmill speeds.

        Args:
            rows: Status dicts, one per treadmill speed
        """
        table = Table(title="Treadmill to Walk Speed", show_header=True)
        table.add_column("Treadmill", style="cyan", justify="right")
        table.add_column("Base", justify="right")
        table.add_column("VRTI", justify="right")
        table.add_column("Offset", justify="right")
        table.add_column("Walk", justify="right")

        for row in rows:
            table.add_row(
                self.format_speed(row["target_speed"]),
                self.format_percent(row["base"]),
                self.format_percent(row["post_multiplier"]),
                f"{row['effective_offset']:+.2f}",
                self.format_walk_speed(row["final_speed"]),
            )

        self.console.print(table)

    def start_live(self) -> None:
        """Start live display refresh mode."""
        if self.live_enabled:
            return

        self.live_enabled = True
        # Create initial renderable (will be updated)
        self._live_data = {
            "target_speed": 0.0,
            "current_speed": 0.0,
            "multiplier": 1.0,
            "override": OverrideLevel.OFF,
            "temp_offset": 0.0,
            "holding": None,
            "base": 0.0,
            "post_multiplier": 0.0,
            "effective_offset": 0.0,
            "final_speed": 0.0,
        }
        renderable = self._create_live_table()
        self._live = Live(renderable, console=self.console, refresh_per_second=10)
        self._live.start()
        self.console.print("[dim]Live display enabled ['live' to disable][/dim]")

    def stop_live(self) -> None:
        """Stop live display refresh mode."""
        if not self.live_enabled:
            return

        self.live_enabled = False
        if self._live is not None:
            self._live.stop()
            self._live = None

    def update_live(self, data: dict) -> None:
        """Update live display with new session state.

        Args:
            data: Status dict from AutoWalkController.get_status()
        """
        if not self.live_enabled or self._live is None:
            return

        self._live_data.update(data)

        try:
            renderable = self._create_live_table()
            self._live.update(renderable)
        except Exception as e:
            logger.error(f"Live update error: {e}")

    def toggle_live(self) -> bool:
        """Toggle live display on/off.

        Returns:
            New live display state (True = on, False = off)
        """
        if self.live_enabled:
            self.stop_live()
        else:
            self.start_live()
        return self.live_enabled

    def _create_live_table(self) -> Table:
        return self.format_status_table(self._live_data)

    def format_status_table(self, data: dict) -> Table:
        """Create Rich Table for the three pipeline stages.

        Args:
            data: Status dict from AutoWalkController.get_status()

        Returns:
            Rich Table object
        """
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Stage", style="cyan")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="yellow")

        override = OverrideLevel(data.get("override", OverrideLevel.OFF))

        table.add_row(
            "Treadmill", "Target", self.format_speed(data.get("target_speed", 0.0))
        )
        table.add_row("", "Current", self.format_speed(data.get("current_speed", 0.0)))
        table.add_row(
            "VRTI",
            "Auto Walk",
            self.format_multiplier(
                data.get("multiplier", 1.0), locked=override.is_active
            ),
        )
        table.add_row("", "Override", self.format_override(override))
        table.add_row("Game", "Nudge", self.format_nudge(data.get("holding")))
        table.add_row(
            "", "Walk Speed", self.format_walk_speed(data.get("final_speed", 0.0))
        )

        return table

    @staticmethod
    def format_speed(speed: float) -> str:
        """Format treadmill speed value.

        Args:
            speed: Speed in km/h-equivalent units

        Returns:
            Formatted speed string
        """
        return f"{speed:.1f} km/h"

    @staticmethod
    def format_percent(fraction: float) -> str:
        return f"{fraction * 100:.0f}%"

    @staticmethod
    def format_multiplier(value: float, locked: bool = False) -> str:
        text = f"{value:.2f}x"
        if locked:
            return f"[dim]{text} (locked)[/dim]"
        return text

    @staticmethod
    def format_override(level: OverrideLevel) -> str:
        """Render the override as a four-LED ladder plus its preset.

        Args:
            level: Current override level

        Returns:
            e.g. "●●●○ 75%" or "○○○○ Off"
        """
        leds = "".join(
            "●" if level.is_active and level.value >= i else "○"
            for i in range(len(PRESETS))
        )
        if level.preset is None:
            return f"{leds} Off"
        return f"{leds} {level.preset * 100:.0f}%"

    @staticmethod
    def format_nudge(holding: Optional[NudgeDirection]) -> str:
        if holding is NudgeDirection.SLOW_DOWN:
            return "[green]Slow Down[/green]"
        if holding is NudgeDirection.CATCH_UP:
            return "[green]Catch Up[/green]"
        return "-"

    @staticmethod
    def speed_color(fraction: float) -> str:
        """Pick the walk-speed colour: red above 88%, yellow above 75%.

        Args:
            fraction: Final walk speed in [0, 1]

        Returns:
            Rich colour name
        """
        pct = min(max(fraction, 0.0), 1.0) * 100
        if pct > 88:
            return "red"
        if pct > 75:
            return "yellow"
        return "green"

    @classmethod
    def format_walk_speed(cls, fraction: float) -> str:
        color = cls.speed_color(fraction)
        pct = min(max(fraction, 0.0), 1.0) * 100
        return f"[{color}]{pct:.0f}%[/{color}]"
