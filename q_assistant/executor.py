"""Displays a command suggestion and, once confirmed, runs it in a subshell."""

import logging
import re
import subprocess
import sys
from typing import List

import pyperclip
from rich.console import Console
from rich.prompt import Confirm, Prompt

from .exceptions import CommandFailedError, ExecutionError, QError
from .models import CommandSuggestion

log = logging.getLogger("q.executor")

VARIABLE_PATTERN = re.compile(r"\{\{([A-Z0-9_]+)\}\}")


class Executor:
    def __init__(
        self,
        auto_confirm: bool,
        show_explanation: bool,
        copy_to_clipboard: bool = False,
    ):
        self.auto_confirm = auto_confirm
        self.show_explanation = show_explanation
        self.copy_to_clipboard = copy_to_clipboard
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def handle_suggestion(self, suggestion: CommandSuggestion) -> int:
        """
        Displays the suggestion and runs it if the user agrees (or auto-confirm is on).

        Returns the exit code of the executed command, or 0 when nothing was run.
        Raises CommandFailedError when the command exits with a non-zero status.
        """
        self.console.print("\n[bold bright_cyan]💡 Suggested command:[/]")
        self.console.print(
            suggestion.command, style="bright_white", markup=False, emoji=False, soft_wrap=True
        )

        if self.show_explanation:
            self.console.print("\n[bright_yellow]Explanation:[/]")
            self.console.print(suggestion.explanation, markup=False, emoji=False)

        if suggestion.warning:
            self.console.print("\n[bold bright_red]⚠️  WARNING:[/]")
            self.console.print(
                suggestion.warning, style="bright_red", markup=False, emoji=False
            )

        if self.copy_to_clipboard:
            self._copy(suggestion.command)

        if self.auto_confirm:
            should_execute = True
        else:
            self.console.print()
            should_execute = self._get_user_confirmation("Run this command?")

        if not should_execute:
            self.console.print("Command not executed.", style="bright_black")
            return 0

        final_command = self.resolve_variables(suggestion.command)
        return self.execute_command(final_command)

    def resolve_variables(self, command: str) -> str:
        """Prompts for every {{VAR}} placeholder in the command and substitutes the values."""
        variables = find_variables(command)
        if not variables:
            return command

        self.console.print("\n[bright_yellow]📝 Input required:[/]")
        final_command = command
        for var in variables:
            value = self._read_value(f"Enter value for {var}")
            final_command = final_command.replace(f"{{{{{var}}}}}", value)
            log.debug("resolved variable %s", var)

        self.console.print("\n[bright_cyan]Final command:[/]")
        self.console.print(
            final_command, style="bright_white", markup=False, emoji=False, soft_wrap=True
        )
        return final_command

    def execute_command(self, command: str) -> int:
        """Runs the command in the platform shell and relays its output."""
        self.console.print("\n[bright_green]Executing...[/]")
        log.debug("executing %r", command)

        if sys.platform == "win32":
            args = ["powershell", "-NoProfile", "-Command", command]
        else:
            args = ["bash", "-c", command]

        try:
            result = subprocess.run(args, capture_output=True)
        except OSError as e:
            raise ExecutionError(f"Failed to execute command: {e}") from e

        stdout = result.stdout.decode("utf-8", errors="replace")
        stderr = result.stderr.decode("utf-8", errors="replace")
        if stdout:
            sys.stdout.write(stdout)
            sys.stdout.flush()
        if stderr:
            self.err_console.print(
                stderr, style="bright_red", markup=False, emoji=False, end="", soft_wrap=True
            )

        # A negative return code means the process was killed by a signal
        exit_code = result.returncode if result.returncode >= 0 else -1
        log.debug("command exited with %d", exit_code)
        if exit_code != 0:
            raise CommandFailedError(exit_code)

        self.console.print("\n[bright_green]✓ Command completed successfully[/]")
        return 0

    def _get_user_confirmation(self, message: str) -> bool:
        try:
            return Confirm.ask(message, default=False, console=self.console)
        except (KeyboardInterrupt, EOFError):
            return False

    def _read_value(self, message: str) -> str:
        value = ""
        try:
            while not value:
                value = Prompt.ask(message, console=self.console)
        except EOFError as e:
            raise QError("Failed to read input") from e
        return value

    def _copy(self, command: str):
        try:
            pyperclip.copy(command)
            self.console.print("\n[bright_black]📋 Copied to clipboard[/]")
        except pyperclip.PyperclipException as e:
            log.warning("could not copy the command to the clipboard: %s", e)


def find_variables(command: str) -> List[str]:
    """Returns the unique {{VAR}} names in the command, in order of first appearance."""
    variables = []
    for match in VARIABLE_PATTERN.finditer(command):
        name = match.group(1)
        if name not in variables:
            variables.append(name)
    return variables
