#!/usr/bin/env python3
"""
Upload backend CLI
Entry point for all CLI commands
"""

import argparse
import importlib
import sys
from pathlib import Path
from typing import Dict, List, Optional, Type

from dashboard.core.logging import setup_logging

from .commands.base import BaseCommand

COMMANDS_PACKAGE = "dashboard.interfaces.cli.commands"


class CLIManager:
    def __init__(self):
        self.commands_dir = Path(__file__).parent / "commands"
        self.available_commands = self._discover_commands()

    def _discover_commands(self) -> Dict[str, Type[BaseCommand]]:
        """Discover every module in the commands package that defines ``Command``"""
        commands = {}

        for file_path in sorted(self.commands_dir.glob("*.py")):
            if file_path.name.startswith("_") or file_path.stem == "base":
                continue

            module = importlib.import_module(f"{COMMANDS_PACKAGE}.{file_path.stem}")
            if hasattr(module, 'Command'):
                commands[file_path.stem] = module.Command

        return commands

    def list_commands(self):
        print("Available commands:")
        print("=" * 40)

        if not self.available_commands:
            print("No commands found.")
            return

        for name, command_class in self.available_commands.items():
            print(f"  {name:<20} {command_class.description}")

    def run_command(self, command_name: str, args: List[str]) -> int:
        if command_name not in self.available_commands:
            print(f"Unknown command: {command_name}")
            print("Use 'python -m dashboard.interfaces.cli.main help' to see available commands.")
            return 1

        return self.available_commands[command_name]().run(args)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    parser = argparse.ArgumentParser(description="Upload backend CLI", add_help=False)
    parser.add_argument('command', nargs='?', help='Command to run')

    args, remaining = parser.parse_known_args(argv[:1])
    remaining += argv[1:]

    cli_manager = CLIManager()

    if not args.command or args.command in ('help', '-h', '--help'):
        if remaining and remaining[0] in cli_manager.available_commands:
            cli_manager.available_commands[remaining[0]]().help()
        else:
            print("Usage: python -m dashboard.interfaces.cli.main <command> [args...]")
            print()
            cli_manager.list_commands()
        return 0

    setup_logging()
    return cli_manager.run_command(args.command, remaining)


if __name__ == "__main__":
    sys.exit(main())
