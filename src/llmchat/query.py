"""One-shot questions outside interactive mode."""

from __future__ import annotations

from rich.console import Console

from llmchat.core.llm.models import QUERY_SYSTEM_PROMPT
from llmchat.core.llm.provider import LLMProvider, Message
from llmchat.interactive.render import StreamPrinter, print_reply


async def run_query(
    provider: LLMProvider,
    model: str,
    question: str,
    *,
    stream: bool = False,
    out: Console | None = None,
) -> str:
    """Ask a single question and print the answer.

    Returns:
        The full reply text. Provider errors propagate.
    """
    out = out or Console()
    messages = [Message.system(QUERY_SYSTEM_PROMPT), Message.user(question)]

    if not stream:
        result = await provider.complete(messages, model=model)
        print_reply(out, result.content)
        return result.content

    printer = StreamPrinter(out)
    parts: list[str] = []
    try:
        async for chunk in provider.stream(messages, model=model):
            if chunk.text:
                parts.append(chunk.text)
                printer.feed(chunk.text)
    finally:
        printer.finish()
    return "".join(parts)
