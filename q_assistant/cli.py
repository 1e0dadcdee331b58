#!/usr/bin/env python3
# PYTHON_ARGCOMPLETE_OK

import argparse
import argcomplete
import logging
import os
import subprocess
import sys

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Prompt

from . import __version__
from .ai import get_provider
from .config import Config, OpenRouterConfig
from .exceptions import CommandFailedError, ConfigError, QError
from .executor import Executor
from .models import SystemContext


_available_commands: List["Command"] = []

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

log = logging.getLogger("q.cli")


@dataclass
class Argument(ABC):
    def __init__(self, help: str, kwargs: Optional[dict] = None):
        self.help = help
        self.kwargs = kwargs if kwargs is not None else {}

    @abstractmethod
    def add_to_parser(self, parser: argparse.ArgumentParser):
        pass


class OptionalArg(Argument):
    def __init__(
        self,
        short_option: Optional[str],
        long_option: str,
        help: str,
        kwargs: Optional[dict] = None,
    ):
        super().__init__(help=help, kwargs=kwargs)
        self.short_option = short_option
        self.long_option = long_option

    def add_to_parser(self, parser: argparse.ArgumentParser):
        options = [o for o in (self.short_option, self.long_option) if o]
        parser.add_argument(*options, help=self.help, **self.kwargs)


class PositionalArg(Argument):
    def __init__(self, name: str, help: str, kwargs: Optional[dict] = None):
        super().__init__(help=help, kwargs=kwargs)
        self.name = name

    def add_to_parser(self, parser: argparse.ArgumentParser):
        parser.add_argument(self.name, help=self.help, **self.kwargs)


@dataclass
class Command:
    name: str
    func: Callable
    help: str
    description: str
    args: list[Argument]


# Arguments shared by the query parser and every sub-command
COMMON_ARGS: List[Argument] = [
    OptionalArg(
        short_option="-v",
        long_option="--verbose",
        help="Print debug logs to stderr.",
        kwargs={"action": "store_true"},
    ),
]

QUERY_ARGS: List[Argument] = [
    PositionalArg(
        name="query",
        help="What you want to do, in plain words.",
        kwargs={"nargs": argparse.REMAINDER},
    ),
    OptionalArg(
        short_option=None,
        long_option="--config-path",
        help="Show the config file path and exit.",
        kwargs={"action": "store_true"},
    ),
    OptionalArg(
        short_option="-y",
        long_option="--yes",
        help="Skip confirmation and execute immediately (use with caution!).",
        kwargs={"action": "store_true"},
    ),
]


def command(args: List[Argument]):
    def decorator(func):
        if not func.__name__.startswith("handle_"):
            raise ValueError("Command handler must start with 'handle_'.")

        if not func.__doc__:
            raise ValueError(
                f"Command handler '{func.__name__}' must have a docstring for its help text."
            )

        command_name = func.__name__.split("_")[1]
        # Use the first line of the docstring as the help text and
        # the full docstring for the detailed description.
        help_text = func.__doc__.strip().split("\n")[0]
        _available_commands.append(
            Command(command_name, func, help_text, func.__doc__, args)
        )
        return func

    return decorator


def _print_error(error: QError):
    err_console.print(
        f"Error: {error.message}", style="bright_red", markup=False, emoji=False
    )
    if error.hint:
        err_console.print(error.hint, markup=False, emoji=False)


def _setup_logging(verbose: bool):
    logger = logging.getLogger("q")
    if not logger.handlers:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


##############################################################################


@command(
    [
        OptionalArg(
            short_option="-e",
            long_option="--edit",
            help="Open the config file in $EDITOR instead of prompting for an API key.",
            kwargs={"action": "store_true"},
        ),
    ]
)
def handle_config(args) -> int:
    """Configure the application.
    Prompts for your OpenRouter API key and stores it in the config file.
    """
    if args.edit:
        return _edit_config()

    try:
        config = Config.load()
    except ConfigError as e:
        log.warning("ignoring unreadable config: %s", e.message)
        config = Config()

    console.print("Configuring OpenRouter...", style="bright_cyan")
    try:
        api_key = Prompt.ask("Enter your OpenRouter API Key", password=True, console=console)
    except EOFError as e:
        raise QError("Failed to read input") from e

    api_key = api_key.strip()
    if not api_key:
        raise ConfigError("API Key cannot be empty.")

    if config.ai.openrouter is not None:
        config.ai.openrouter.api_key = api_key
    else:
        config.ai.openrouter = OpenRouterConfig(api_key=api_key)

    config.save()
    console.print("Configuration saved successfully!", style="bright_green")
    return 0


def _edit_config() -> int:
    config_path = Config.config_path()
    if not os.path.exists(config_path):
        Config.template().save()

    editor = os.getenv("EDITOR") or "vi"
    console.print(f"Opening {config_path} with {editor}...", markup=False, emoji=False)
    try:
        subprocess.run([editor, config_path])
    except FileNotFoundError as e:
        raise ConfigError(
            f"Could not find editor '{editor}'.",
            hint="Set the EDITOR environment variable to your preferred editor.",
        ) from e
    return 0


def run_query(args) -> int:
    """Asks the AI for a command matching the query and hands it to the executor."""
    if args.config_path:
        print(Config.config_path())
        return 0

    query = " ".join(args.query)
    if not query.strip():
        args.parser.print_help()
        return 0

    config = Config.load()
    try:
        config.validate()
    except ConfigError as e:
        err_console.print(
            f"Configuration error: {e.message}",
            style="bright_red",
            markup=False,
            emoji=False,
        )
        err_console.print("\nTo edit your config, run: [bright_cyan]q --config-path[/]")
        return 1

    context = SystemContext.gather(config.context.shell)
    provider = get_provider(config.ai.default_provider, config)
    log.debug("using %r", provider)

    console.print("🤔 Thinking...", style="bright_cyan")
    suggestion = provider.generate_command(query, context)

    # The -y flag overrides auto_confirm from the config
    auto_confirm = args.yes or config.execution.auto_confirm
    executor = Executor(
        auto_confirm,
        config.execution.show_explanation,
        config.execution.copy_to_clipboard,
    )
    return executor.handle_suggestion(suggestion)


##############################################################################


def _build_query_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="q",
        description="AI-powered terminal command assistant.",
        epilog="Sub-commands: "
        + ", ".join(f"'q {cmd.name}' ({cmd.help})" for cmd in _available_commands),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    for arg in COMMON_ARGS + QUERY_ARGS:
        arg.add_to_parser(parser)
    parser.set_defaults(func=run_query, parser=parser)
    return parser


def _build_command_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="q", description="AI-powered terminal command assistant."
    )
    subparsers = parser.add_subparsers(
        dest="command", help="Sub-commands", required=True
    )

    # Sort commands alphabetically for consistent --help output.
    _available_commands.sort(key=lambda cmd: cmd.name)

    for command in _available_commands:
        subparser = subparsers.add_parser(
            command.name, help=command.help, description=command.description
        )
        for arg in COMMON_ARGS + command.args:
            arg.add_to_parser(subparser)
        subparser.set_defaults(func=command.func, parser=subparser)

    return parser


def run_cli(argv: Optional[List[str]] = None):
    """
    Parses command-line arguments and executes the corresponding command.

    A first argument naming a sub-command (e.g. `config`) selects that command;
    anything else is treated as a natural language query.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used.
    """
    if argv is None:
        argv = sys.argv[1:]

    command_names = {cmd.name for cmd in _available_commands}
    if argv and argv[0] in command_names:
        parser = _build_command_parser()
    else:
        parser = _build_query_parser()

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        exit_code = args.func(args)
    except CommandFailedError as e:
        _print_error(e)
        sys.exit(e.exit_code)
    except QError as e:
        _print_error(e)
        sys.exit(1)
    except KeyboardInterrupt:
        err_console.print("\nInterrupted.")
        sys.exit(130)

    if exit_code:
        sys.exit(exit_code)


def main():
    """The entry point of the `q` script."""
    run_cli()


if __name__ == "__main__":
    main()
