"""
Main REPL application for the walk-speed preview.

Interactive command loop with async support, auto-completion and live
pipeline display, plus one-shot commands for scripting.
"""

import argparse
import asyncio
import logging
import math
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import InMemoryHistory

from .commands import COMMANDS, RESET_TARGETS, CommandCompleter, get_command
from .controller import AutoWalkController
from .core import (
    APPROACH_RATE,
    MAX_SPEED,
    MIN_FINAL_SPEED,
    MULTIPLIER_SNAP_THRESHOLD,
    PRESETS,
    SNAP_EPSILON,
    SPEED_STEP,
    TEMP_OFFSET_AMOUNT,
    ResultCode,
)
from .display import DisplayManager
from .engine import OverrideLevel, to_override_level
from .nudge import NudgeDirection

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_HOLD_SECONDS = 1.0


class AutoWalkREPL:
    """Interactive REPL for previewing the walk-speed mapping."""

    def __init__(
        self,
        controller: Optional[AutoWalkController] = None,
        display: Optional[DisplayManager] = None,
    ) -> None:
        """Initialize REPL with controller and display manager."""
        self.controller = controller or AutoWalkController()
        self.display = display or DisplayManager()
        self.running = False
        self.session: Optional[PromptSession] = None

        self.controller.set_on_update(self._on_state_update)

    async def run(self) -> None:
        """Run the main REPL loop."""
        self.running = True
        self.display.print_banner()

        # Create prompt session with auto-completion
        self.session = PromptSession(
            completer=CommandCompleter(),
            history=InMemoryHistory(),
            enable_history_search=True,
        )

        self.controller.start()

        try:
            while self.running:
                try:
                    text = await self.session.prompt_async(self._get_prompt())

                    if text.strip():
                        await self._handle_input(text.strip())

                except KeyboardInterrupt:
                    # Just show new prompt on Ctrl+C
                    self.display.console.print()
                    continue

        except EOFError:
            # End of input (Ctrl+D)
            await self.cmd_quit([])
        finally:
            self.running = False
            self.display.stop_live()
            await self.controller.stop()

    def _get_prompt(self) -> FormattedText:
        """Get prompt showing the current walk speed.

        Returns:
            FormattedText for prompt_toolkit
        """
        pct = self.controller.final_speed * 100
        return FormattedText([("class:prompt", f"[walk {pct:.0f}%] > ")])

    async def _handle_input(self, text: str) -> None:
        """Parse and dispatch command.

        Args:
            text: Raw user input text
        """
        parts = text.split(maxsplit=1)
        if not parts:
            return

        cmd_name = parts[0].lower()
        args = parts[1].split() if len(parts) > 1 else []

        cmd = get_command(cmd_name)
        if not cmd:
            self.display.print_error(
                f"Unknown command: {cmd_name}. Type 'help' for available commands."
            )
            return

        handler = getattr(self, cmd.handler, None)
        if handler is None:
            self.display.print_error(f"Handler not found: {cmd.handler}")
            return

        try:
            await handler(args)
        except Exception as e:
            self.display.print_error(f"Command failed: {e}")
            logger.exception("Command exception")

    def _on_state_update(self, data: dict) -> None:
        """Callback when session state changes.

        Args:
            data: Status dict from the controller
        """
        if self.display.live_enabled:
            self.display.update_live(data)

    # ========== Command Handlers ==========

    async def cmd_speed(self, args: list) -> None:
        """Set treadmill target speed."""
        if not args:
            self.display.print_error("Usage: speed <km/h>")
            self.display.print_info(
                f"Range: {self.controller.SPEED_MIN}-{self.controller.SPEED_MAX} km/h"
            )
            return

        try:
            speed = float(args[0])
        except ValueError:
            self.display.print_error(f"Invalid speed: {args[0]}")
            return

        result = self.controller.set_target_speed(speed)
        if result == ResultCode.SUCCESS:
            self.display.print_info(f"Target speed set to {speed:.1f} km/h")
        else:
            self.display.print_result("speed", result)

    async def cmd_multiplier(self, args: list) -> None:
        """Set auto-walk multiplier."""
        if not args:
            self.display.print_error("Usage: multiplier <0-2>")
            return

        try:
            value = float(args[0])
        except ValueError:
            self.display.print_error(f"Invalid multiplier: {args[0]}")
            return

        result = self.controller.set_multiplier(value)
        if result == ResultCode.SUCCESS:
            self.display.print_info(
                f"Multiplier set to {self.controller.multiplier:.2f}x"
            )
        else:
            self.display.print_result("multiplier", result)

    async def cmd_override(self, args: list) -> None:
        """Cycle the override ladder."""
        level = self.controller.cycle_override()
        self.display.print_info(
            f"Override: {self.display.format_override(level)}"
        )

    async def cmd_slow(self, args: list) -> None:
        """Hold slow-down nudge."""
        await self._hold(NudgeDirection.SLOW_DOWN, args)

    async def cmd_catchup(self, args: list) -> None:
        """Hold catch-up nudge."""
        await self._hold(NudgeDirection.CATCH_UP, args)

    async def _hold(self, direction: NudgeDirection, args: list) -> None:
        try:
            seconds = float(args[0]) if args else DEFAULT_HOLD_SECONDS
        except ValueError:
            self.display.print_error(f"Invalid duration: {args[0]}")
            return
        if not math.isfinite(seconds) or seconds <= 0:
            self.display.print_error("Duration must be positive")
            return

        with self.controller.hold_nudge(direction):
            self.display.print_status(self.controller.get_status())
            await asyncio.sleep(seconds)
        self.display.print_info("Nudge released")

    async def cmd_reset(self, args: list) -> None:
        """Reset treadmill, VRTI or both."""
        target = args[0].lower() if args else "all"
        if target not in RESET_TARGETS:
            self.display.print_error(f"Usage: reset [{'|'.join(RESET_TARGETS)}]")
            return

        if target in ("treadmill", "all"):
            self.controller.reset_treadmill()
        if target in ("vrti", "all"):
            self.controller.reset_vrti()
        self.display.print_info(f"Reset {target}")

    async def cmd_status(self, args: list) -> None:
        """Show current pipeline values."""
        self.display.print_status(self.controller.get_status())

    async def cmd_live(self, args: list) -> None:
        """Toggle live display mode."""
        enabled = self.display.toggle_live()
        if enabled:
            self.display.update_live(self.controller.get_status())
        else:
            self.display.print_info("Live display disabled")

    async def cmd_info(self, args: list) -> None:
        """Show mapping constants and debug information."""
        console = self.display.console
        console.print("[bold cyan]Mapping Constants[/bold cyan]")
        console.print(f"  Max speed: {MAX_SPEED} km/h (step {SPEED_STEP})")
        console.print(f"  Approach rate: {APPROACH_RATE} per frame")
        console.print(f"  Snap epsilon: {SNAP_EPSILON} km/h")
        console.print(f"  Minimum final speed: {MIN_FINAL_SPEED}")
        console.print(f"  Nudge amount: {TEMP_OFFSET_AMOUNT}")
        console.print(f"  Multiplier snap: ±{MULTIPLIER_SNAP_THRESHOLD}")
        console.print(f"  Presets: {', '.join(f'{p:.0%}' for p in PRESETS)}")

        console.print()
        console.print("[bold cyan]Debug Information[/bold cyan]")
        console.print(f"  Ticker running: {self.controller.is_running}")
        console.print(f"  Live enabled: {self.display.live_enabled}")
        console.print(f"  Treadmill at default: {self.controller.treadmill_is_default}")
        console.print(f"  VRTI at default: {self.controller.vrti_is_default}")
        console.print(f"  Breakdown: {self.controller.breakdown}")

    async def cmd_help(self, args: list) -> None:
        """Show all available commands."""
        self.display.print_help(COMMANDS)

    async def cmd_quit(self, args: list) -> None:
        """Exit the REPL."""
        self.display.stop_live()
        self.display.console.print("[cyan]Goodbye![/cyan]")
        self.running = False


def build_controller(
    speed: float,
    multiplier: float,
    override: int,
    nudge: Optional[str],
) -> AutoWalkController:
    """Create a settled controller for one set of inputs.

    Raises:
        ValueError: If any input is rejected
    """
    level = to_override_level(override)
    controller = AutoWalkController()

    result = controller.set_target_speed(speed)
    if result != ResultCode.SUCCESS:
        raise ValueError(f"Invalid speed: {speed}")
    result = controller.set_multiplier(multiplier)
    if result != ResultCode.SUCCESS:
        raise ValueError(f"Invalid multiplier: {multiplier}")
    while controller.override is not level:
        controller.cycle_override()
    if nudge == "slow":
        controller.press_nudge(NudgeDirection.SLOW_DOWN)
    elif nudge == "catchup":
        controller.press_nudge(NudgeDirection.CATCH_UP)

    controller.settle()
    return controller


def run_cli_command(
    command: str, args: argparse.Namespace, display: Optional[DisplayManager] = None
) -> None:
    """Run a single CLI command and exit."""
    display = display or DisplayManager()

    if command == "compute":
        controller = build_controller(
            args.speed, args.multiplier, args.override, args.nudge
        )
        display.print_status(controller.get_status())
        display.console.print(f"{controller.final_speed:.4f}", highlight=False)

    elif command == "table":
        rows = []
        steps = int(round(MAX_SPEED / SPEED_STEP))
        for i in range(steps + 1):
            controller = build_controller(
                i * SPEED_STEP, args.multiplier, args.override, args.nudge
            )
            rows.append(controller.get_status())
        display.print_mapping(rows)

    else:
        raise ValueError(f"Unknown command: {command}")


def main(argv: Optional[list] = None) -> None:
    """Entry point for the REPL application."""
    parser = argparse.ArgumentParser(
        description="Treadmill to avatar walk-speed preview",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  autowalk                               # Start interactive REPL
  autowalk --compute --speed 7.5         # Final walk speed for 7.5 km/h
  autowalk --compute --override 2        # Pinned at the 75% preset
  autowalk --compute --nudge slow        # With slow-down held
  autowalk --table --multiplier 1.5      # Walk speed for every treadmill speed
        """,
    )

    parser.add_argument(
        "--compute", action="store_true", help="Print the breakdown for one input"
    )
    parser.add_argument(
        "--table", action="store_true", help="Print the mapping for all speeds"
    )
    parser.add_argument(
        "--speed", type=float, default=5.0, help="Treadmill speed (default 5.0)"
    )
    parser.add_argument(
        "--multiplier", type=float, default=1.0, help="Auto-walk multiplier"
    )
    parser.add_argument(
        "--override",
        type=int,
        default=-1,
        choices=[level.value for level in OverrideLevel],
        help="Override index, -1 for off",
    )
    parser.add_argument(
        "--nudge", choices=["slow", "catchup"], help="Hold a nudge"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")

    args = parser.parse_args(argv)

    commands = []
    if args.compute:
        commands.append("compute")
    if args.table:
        commands.append("table")

    # One-shot output stays clean unless debugging
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    elif commands:
        logging.getLogger().setLevel(logging.WARNING)

    # If no CLI commands, start REPL
    if not commands:
        try:
            repl = AutoWalkREPL()
            asyncio.run(repl.run())
        except KeyboardInterrupt:
            print("\nInterrupted")
            sys.exit(0)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        if len(commands) > 1:
            print("Error: Only one command can be specified at a time", file=sys.stderr)
            sys.exit(1)

        try:
            run_cli_command(commands[0], args)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
