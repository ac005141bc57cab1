"""CLI entry point for llmchat.

Usage:
    python -m llmchat
    python -m llmchat query "What is a monad?"
"""

import sys


def main() -> int:
    """Main entry point for the llmchat CLI."""
    from llmchat.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
