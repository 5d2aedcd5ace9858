"""OpenAI embeddings generation with dimension validation."""

import asyncio

from openai import OpenAI

from neurocom.core.errors import EmbeddingError
from neurocom.core.logging import get_logger

logger = get_logger(__name__)

EmbeddingVector = list[float]


class EmbeddingGateway:
    """Turns text into a fixed-dimension vector.

    No retries happen here; callers decide whether to retry or degrade.
    """

    def __init__(self, client: OpenAI, model: str, dimension: int = 768):
        self.client = client
        self.model = model
        self.dimension = dimension

    def embed_sync(self, text: str) -> EmbeddingVector:
        """
        Generate the embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector of exactly ``self.dimension`` floats

        Raises:
            EmbeddingError: If the API call fails, returns no vector, or the
                vector has the wrong dimension
        """
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimension,
            )
        except Exception as e:
            logger.error(f"Failed to generate embedding: {e}")
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        data = response.data or []
        vector = list(data[0].embedding) if data else []

        if not vector:
            raise EmbeddingError("Embedding response contained no vector")

        if len(vector) != self.dimension:
            raise EmbeddingError(
                f"Embedding dimension mismatch: expected {self.dimension}, got {len(vector)}"
            )

        logger.debug(f"Generated embedding using {self.model}")
        return vector

    async def embed(self, text: str) -> EmbeddingVector:
        """Async wrapper around embed_sync using the thread pool."""
        return await asyncio.to_thread(self.embed_sync, text)
