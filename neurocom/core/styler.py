"""Output policy applied to every generated reply.

Pure text transforms, run in a fixed order: disclaimers and filler words are
removed before the sentence cap so removed text never counts toward it.
Running the pipeline twice is stable for disclaimer and filler removal, but
not in general once the sentence cap has cut a reply whose fillers shifted
sentence boundaries.
"""

import re

MAX_SENTENCES = 6

_DISCLAIMER_PATTERNS = [
    r"como (uma )?ia[, ]?",
    r"não posso fornecer aconselhamento (médico|legal)",
    r"isto é apenas para fins educacionais",
    r"sou apenas um modelo de linguagem",
]
_DISCLAIMER_RE = re.compile("|".join(_DISCLAIMER_PATTERNS), re.IGNORECASE)

_FILLER_WORDS = [
    "basicamente",
    "de certa forma",
    "na verdade",
    "de alguma maneira",
    "talvez",
    "possivelmente",
]
_FILLER_RE = re.compile(r"\b(" + "|".join(_FILLER_WORDS) + r")\b", re.IGNORECASE)

_MULTI_SPACE_RE = re.compile(r"\s{2,}")

_DISTANT_SELF_RE = re.compile(r"\bminha posição\b", re.IGNORECASE)

_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


def drop_disclaimers(text: str) -> str:
    """Remove self-referential AI and "not advice" disclaimers."""
    if not text:
        return text
    return _DISCLAIMER_RE.sub("", text)


def trim_filler(text: str) -> str:
    """Remove filler words and collapse repeated whitespace."""
    if not text:
        return text
    text = _FILLER_RE.sub("", text)
    return _MULTI_SPACE_RE.sub(" ", text).strip()


def ensure_first_person(text: str) -> str:
    """Replace the distancing "minha posição" with "eu"."""
    if not text:
        return text
    return _DISTANT_SELF_RE.sub("eu", text)


def limit_sentences(text: str, max_sentences: int = MAX_SENTENCES) -> str:
    """Keep the first ``max_sentences`` sentences; the rest are dropped."""
    parts = [p for p in _SENTENCE_BOUNDARY_RE.split(text or "") if p]
    if len(parts) <= max_sentences:
        return text
    return " ".join(parts[:max_sentences])


def style_response(text: str) -> str:
    """Apply the full output policy to a raw reply."""
    styled = text or ""
    styled = drop_disclaimers(styled)
    styled = trim_filler(styled)
    styled = ensure_first_person(styled)
    return limit_sentences(styled, MAX_SENTENCES)
