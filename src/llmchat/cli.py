"""Command-line interface for llmchat."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from llmchat import __version__

if TYPE_CHECKING:
    from llmchat.config.schema import Config

console = Console()

RESERVED_COMMANDS = {"interactive", "query", "list-models", "ls", "set-default", "set", "build"}


def _add_model_options(parser: argparse.ArgumentParser, default: object) -> None:
    parser.add_argument(
        "-m", "--model",
        default=default,
        help="Model id or alias to use",
    )
    parser.add_argument(
        "-s", "--stream",
        action="store_true",
        default=default,
        help="Stream replies as they are generated",
    )


def _pre_parser() -> argparse.ArgumentParser:
    """Parses only the options needed before the config is loaded."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--config", type=Path)
    return parser


def create_parser(aliases: Iterable[str] = ()) -> argparse.ArgumentParser:
    """Create the argument parser.

    Args:
        aliases: Configured model aliases; each becomes a subcommand.
    """
    parser = argparse.ArgumentParser(
        prog="llmchat",
        description="Chat with language models from the terminal",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be repeated)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file path (default: <config dir>/config.yaml)",
    )
    _add_model_options(parser, None)

    # Subcommand copies of -m/-s only take effect when given
    model_options = argparse.ArgumentParser(add_help=False)
    _add_model_options(model_options, argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", help="Command (default: interactive)")

    subparsers.add_parser(
        "interactive",
        parents=[model_options],
        help="Interactive chat session",
    )

    query_parser = subparsers.add_parser(
        "query",
        parents=[model_options],
        help="Ask a single question",
    )
    query_parser.add_argument("question", nargs="+", help="Question to ask")

    subparsers.add_parser(
        "list-models",
        aliases=["ls"],
        help="List available models",
    )

    set_parser = subparsers.add_parser(
        "set-default",
        aliases=["set"],
        parents=[model_options],
        help="Set the default model (and stream mode with -s)",
    )
    set_parser.add_argument("default_model", metavar="MODEL", help="Model id or alias")

    build_parser = subparsers.add_parser(
        "build",
        parents=[model_options],
        help="Run the build and ask the model about the result",
    )
    build_parser.add_argument("question", nargs="*", help="Question to ask after the build")

    for alias in aliases:
        if alias in RESERVED_COMMANDS:
            continue
        alias_parser = subparsers.add_parser(
            alias,
            parents=[model_options],
            help=f"Use the '{alias}' model alias",
        )
        alias_parser.add_argument("question", nargs="*", help="Question to ask (interactive if omitted)")

    return parser


def select_model(parsed: argparse.Namespace, config: Config) -> str:
    """Pick the model: -m, then an alias command, then the config, then the catalog."""
    from llmchat.core.llm.models import DEFAULT_MODEL, resolve_model

    if parsed.model:
        return resolve_model(parsed.model, config.aliases)
    if parsed.command in config.aliases:
        return config.aliases[parsed.command]
    if config.default_model:
        return resolve_model(config.default_model, config.aliases)
    return DEFAULT_MODEL


def select_stream(parsed: argparse.Namespace, config: Config) -> bool:
    if parsed.stream:
        return True
    return bool(config.stream)


def list_models(model: str) -> None:
    from llmchat.core.llm.models import AVAILABLE_MODELS

    console.print(f"Default model: [bright_yellow]{model}[/bright_yellow]")
    console.print("Available models:")
    for model_id in AVAILABLE_MODELS:
        console.print(f"  {model_id}")


def _joined(words: list[str] | None) -> str | None:
    text = " ".join(words or []).strip()
    return text or None


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    pre, _ = _pre_parser().parse_known_args(args)

    from llmchat.config import load_config, save_config
    from llmchat.config.schema import Config
    from llmchat.logging import setup_logging

    config = load_config(config_path=pre.config)
    parser = create_parser(config.aliases)
    parsed = parser.parse_args(args)

    if parsed.verbose:
        config.logging.verbose = min(1 + parsed.verbose, 4)
    setup_logging(config.logging)

    model = select_model(parsed, config)
    stream = select_stream(parsed, config)

    if parsed.command in ("list-models", "ls"):
        list_models(model)
        return 0

    if parsed.command in ("set-default", "set"):
        from llmchat.core.llm.models import resolve_model

        default_model = resolve_model(parsed.default_model, config.aliases)
        path = save_config(
            Config(default_model=default_model, stream=True if parsed.stream else None),
            pre.config,
        )
        console.print(f"Default model set to {default_model} ({path})")
        return 0

    from llmchat.core.llm.litellm_provider import LiteLLMProvider

    provider = LiteLLMProvider(model)

    if parsed.command == "build":
        from llmchat.tools.build_release import handle_build_release

        try:
            return asyncio.run(
                handle_build_release(
                    provider,
                    model,
                    config.build,
                    question=_joined(parsed.question),
                    stream=stream,
                    out=console,
                )
            )
        except Exception as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            return 1

    question = _joined(getattr(parsed, "question", None))
    if question is not None:
        from llmchat.query import run_query

        console.print(f"Using model: [bright_yellow]{model}[/bright_yellow]")
        console.print(f"stream: [bright_yellow]{stream}[/bright_yellow]")
        try:
            asyncio.run(run_query(provider, model, question, stream=stream, out=console))
        except Exception as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            return 1
        return 0

    from llmchat.interactive.repl import run_interactive

    return asyncio.run(run_interactive(config, model, stream=stream, provider=provider))
