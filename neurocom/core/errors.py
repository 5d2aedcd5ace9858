"""Error taxonomy for the chat and voice pipelines.

Each fallible step reports its result as an ``Outcome``; the orchestrating
pipeline decides per step whether a failure degrades or propagates.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class NeurocomError(Exception):
    """Base class for pipeline errors."""


class EmbeddingError(NeurocomError):
    """Embedding call failed or produced an invalid vector."""


class RetrievalError(NeurocomError):
    """Retrieval could not run because the query could not be embedded."""


class GenerationError(NeurocomError):
    """Completion transport or API failure."""


class PersistenceError(NeurocomError):
    """Every persistence path for a turn failed."""


class StreamDecodeError(NeurocomError):
    """Malformed line in an upstream chunked response or client message."""


@dataclass
class Outcome(Generic[T]):
    """Result of a single strategy: a value or the error that stopped it."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Outcome[T]":
        return cls(error=error)
