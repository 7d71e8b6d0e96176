"""The registry of subcommands and the overall usage message."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

VERSION = "dev"

commands: dict[str, Any] = {}


@dataclass
class BaseCommand:
    """Common description of a subcommand: its flags, summary, usage line and help text."""

    flags: Optional[Any] = None
    short: str = ""
    usage: str = ""
    help: str = ""

    def help_message(self, writer) -> None:
        """Write the command's help text to writer."""
        writer.write(self.help)


def register_command(name: str, cmd) -> None:
    """Add a command to the registry."""
    commands[name] = cmd
    flags = getattr(cmd, "flags", None)
    if flags is not None and hasattr(flags, "exit_on_error"):
        flags.exit_on_error = False


def get_command(name: str):
    """The registered command of that name, or None."""
    return commands.get(name)


def usage(writer) -> None:
    """Write the overall usage message listing every registered command."""
    lines = [
        f"GoWrap({VERSION}) is a tool for generating decorators for the Go interfaces\n",
        "\n",
        "Usage:\n",
        "\n",
        "\tgowrap command [arguments]\n",
        "\n",
        "The commands are:\n",
    ]
    for name in sorted(commands):
        lines.append(f"\n\t{name:<10}{commands[name].short}\n")
    lines.append('\nUse "gowrap help [command]" for more information about a command.\n')
    writer.write("".join(lines))