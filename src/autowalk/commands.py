"""
Command definitions and auto-completion for REPL.

Defines all available commands with metadata and provides a completer
for prompt_toolkit auto-completion.
"""

from dataclasses import dataclass
from typing import Any, List

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .core import MAX_SPEED, MULTIPLIER_MAX, SPEED_STEP


@dataclass
class Command:
    """Command definition with metadata."""

    name: str
    aliases: List[str]
    description: str
    usage: str
    handler: str


# Define all available commands
COMMANDS = [
    Command(
        name="speed",
        aliases=["sp"],
        description="Set treadmill target speed",
        usage="speed <km/h>",
        handler="cmd_speed",
    ),
    Command(
        name="multiplier",
        aliases=["m", "mult"],
        description="Set auto-walk multiplier (snaps to 1.0 near 1.0)",
        usage="multiplier <0-2>",
        handler="cmd_multiplier",
    ),
    Command(
        name="override",
        aliases=["o"],
        description="Cycle override: off, 25%, 50%, 75%, 100%",
        usage="override",
        handler="cmd_override",
    ),
    Command(
        name="slow",
        aliases=["sd"],
        description="Hold slow-down nudge",
        usage="slow [seconds]",
        handler="cmd_slow",
    ),
    Command(
        name="catchup",
        aliases=["cu"],
        description="Hold catch-up nudge",
        usage="catchup [seconds]",
        handler="cmd_catchup",
    ),
    Command(
        name="reset",
        aliases=["rs"],
        description="Reset treadmill, VRTI or both",
        usage="reset [treadmill|vrti|all]",
        handler="cmd_reset",
    ),
    Command(
        name="status",
        aliases=["st"],
        description="Show current pipeline values",
        usage="status",
        handler="cmd_status",
    ),
    Command(
        name="live",
        aliases=["l"],
        description="Toggle live display mode",
        usage="live",
        handler="cmd_live",
    ),
    Command(
        name="info",
        aliases=["i"],
        description="Show mapping constants and debug information",
        usage="info",
        handler="cmd_info",
    ),
    Command(
        name="help",
        aliases=["h", "?"],
        description="Show all available commands",
        usage="help",
        handler="cmd_help",
    ),
    Command(
        name="quit",
        aliases=["q", "exit"],
        description="Exit the REPL",
        usage="quit",
        handler="cmd_quit",
    ),
]

RESET_TARGETS = ["treadmill", "vrti", "all"]


def get_command(name: str) -> Command | None:
    """Get command by name or alias.

    Args:
        name: Command name or alias

    Returns:
        Command object if found, None otherwise
    """
    for cmd in COMMANDS:
        if cmd.name == name or name in cmd.aliases:
            return cmd
    return None


def _steps(stop: float, step: float) -> List[str]:
    values = []
    i = 0
    while i * step <= stop + 1e-9:
        values.append(f"{i * step:.2f}".rstrip("0").rstrip("."))
        i += 1
    return values


class CommandCompleter(Completer):
    """Auto-completion for commands and arguments."""

    def __init__(self) -> None:
        """Initialize completer."""
        self._command_names = set()
        self._command_aliases = set()

        for cmd in COMMANDS:
            self._command_names.add(cmd.name)
            self._command_aliases.update(cmd.aliases)

        self._argument_values = {
            "speed": _steps(MAX_SPEED, SPEED_STEP),
            "multiplier": _steps(MULTIPLIER_MAX, 0.25),
            "reset": RESET_TARGETS,
        }

    def get_completions(self, document: Document, complete_event) -> Any:  # type: ignore[no-untyped-def]
        """Get completion suggestions for current input.

        Args:
            document: Current input document
            complete_event: Completion event

        Yields:
            Completion objects for matching commands/arguments
        """
        text = document.text_before_cursor.lstrip()
        parts = text.split()

        # If no text yet, suggest nothing (avoid spam)
        if not text:
            return []

        # First part: complete command name
        if len(parts) == 1 and not text.endswith(" "):
            partial_cmd = parts[0].lower()
            all_names = self._command_names | self._command_aliases

            for name in sorted(all_names):
                if name.startswith(partial_cmd):
                    yield Completion(
                        name,
                        start_position=-len(partial_cmd),
                        display=f"({name})",
                    )
            return

        # Second part: suggest argument values for the command
        cmd = get_command(parts[0].lower())
        if cmd is None or cmd.name not in self._argument_values:
            return

        partial = "" if text.endswith(" ") else parts[-1].lower()
        for value in self._argument_values[cmd.name]:
            if value.startswith(partial):
                yield Completion(
                    value,
                    start_position=-len(partial),
                    display=value,
                )
