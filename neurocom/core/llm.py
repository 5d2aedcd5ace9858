"""LLM client utilities for single-shot completions."""

import re

from anthropic import AsyncAnthropic

from neurocom.core.config import Settings


def get_anthropic_client(settings: Settings) -> AsyncAnthropic:
    """
    Build the Anthropic client shared by the chat components.

    Args:
        settings: Application settings

    Returns:
        AsyncAnthropic configured with API key and request deadline
    """
    return AsyncAnthropic(
        api_key=settings.ANTHROPIC_API_KEY,
        timeout=settings.MODEL_TIMEOUT_SECONDS,
    )


async def complete(
    client: AsyncAnthropic,
    model: str,
    prompt: str,
    max_tokens: int,
    temperature: float = 0.7,
) -> str:
    """
    Run one non-streaming completion over a single user prompt.

    Args:
        client: Anthropic client
        model: Model name
        prompt: Full prompt text
        max_tokens: Completion budget
        temperature: Sampling temperature

    Returns:
        Concatenated text blocks of the response, stripped (may be empty)

    Raises:
        anthropic.APIError: On transport or API failure
    """
    response = await client.messages.create(
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
        messages=[{"role": "user", "content": prompt}],
    )
    return extract_text(response)


def extract_text(response) -> str:
    """Join the text blocks of a Messages API response."""
    parts = [
        block.text
        for block in (getattr(response, "content", None) or [])
        if getattr(block, "type", None) == "text" and block.text
    ]
    return "".join(parts).strip()


_LIST_MARKER_RE = re.compile(r"^[\s\-\*•\d\.\)]+")


def strip_list_marker(line: str) -> str:
    """Remove leading bullet or numbering markers ("- ", "1. ", "2) ") from a line."""
    return _LIST_MARKER_RE.sub("", line).strip()
