"""Literal listing of the user's last messages.

Requests such as "quais foram as últimas 3 mensagens que te mandei?" are
answered straight from the stored history, without retrieval or generation,
and are not persisted. Detection is keyword-based on the raw message.
"""

import re

DEFAULT_COUNT = 10
MAX_COUNT = 100

_SENT_VERBS = ("enviei", "mandei")
_COUNT_RES = [
    re.compile(r"(\d+)\s+(?:mensagens?|msgs?)"),
    re.compile(r"(?:últimas?|ultimas?)\s+(\d+)\s+(?:mensagens?|msgs?)"),
]


def is_recent_messages_request(message: str) -> bool:
    """True when the message asks for the last messages the user sent."""
    lower = (message or "").lower()
    return (
        ("ultimas" in lower or "últimas" in lower)
        and "mensagens" in lower
        and any(verb in lower for verb in _SENT_VERBS)
    )


def requested_count(message: str) -> int:
    """Number of messages asked for, DEFAULT_COUNT when absent or out of range."""
    lower = (message or "").lower()
    for pattern in _COUNT_RES:
        match = pattern.search(lower)
        if match:
            count = int(match.group(1))
            if 0 < count <= MAX_COUNT:
                return count
    return DEFAULT_COUNT


def render_recent_messages(questions: list[str]) -> str:
    """Numbered list of questions, oldest first."""
    header = (
        f"Aqui estão as últimas {len(questions)} mensagens "
        "(da mais antiga para a mais recente):"
    )
    lines = [f'{i}. "{question}"' for i, question in enumerate(questions, start=1)]
    return header + "\n\n" + "\n".join(lines)
