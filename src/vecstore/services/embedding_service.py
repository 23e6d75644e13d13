import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

import httpx
from google import genai
from google.genai import errors

from vecstore.core.exceptions import EmbeddingFailure

logger = logging.getLogger(__name__)

DIMENSION_PROBE_TEXT = "Hello World"


class EmbeddingProvider(ABC):
    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a document text. Raises EmbeddingFailure."""
        ...

    def embed_query(self, text: str) -> list[float]:
        """Embed a search query. Providers with a query mode override this."""
        return self.embed(text)

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        return [self.embed(text) for text in texts]

    def dimensions(self) -> int:
        """Discover the vector length by embedding a probe text."""
        return len(self.embed(DIMENSION_PROBE_TEXT))


def _to_vector(values) -> list[float]:
    if not values:
        raise EmbeddingFailure("provider returned an empty embedding")
    try:
        return [float(v) for v in values]
    except (TypeError, ValueError) as e:
        raise EmbeddingFailure(f"provider returned a non-numeric embedding: {e}") from e


def generate_embeddings(
    client: genai.Client,
    texts: list[str],
    model: str,
    task_type: str = "RETRIEVAL_DOCUMENT",
    output_dimensionality: int | None = None,
) -> list[list[float]]:
    """Generate one embedding vector per text using Gemini."""
    config: dict = {"task_type": task_type}
    if output_dimensionality:
        config["output_dimensionality"] = output_dimensionality

    try:
        result = client.models.embed_content(model=model, contents=texts, config=config)
    except (errors.APIError, httpx.HTTPError) as e:
        raise EmbeddingFailure(f"Gemini embedding request failed: {e}") from e

    embeddings = result.embeddings or []
    if len(embeddings) != len(texts):
        raise EmbeddingFailure(
            f"Gemini returned {len(embeddings)} embeddings for {len(texts)} texts"
        )
    return [_to_vector(e.values) for e in embeddings]


def generate_embedding(
    client: genai.Client,
    text: str,
    model: str,
    task_type: str = "RETRIEVAL_DOCUMENT",
    output_dimensionality: int | None = None,
) -> list[float]:
    """Generate an embedding vector for the given text using Gemini."""
    return generate_embeddings(client, [text], model, task_type, output_dimensionality)[0]


class GeminiEmbeddingProvider(EmbeddingProvider):
    def __init__(
        self,
        client: genai.Client,
        model: str,
        output_dimensionality: int | None = None,
        batch_size: int = 100,
    ) -> None:
        self._client = client
        self.model = model
        self.output_dimensionality = output_dimensionality
        self.batch_size = batch_size

    def embed(self, text: str) -> list[float]:
        return generate_embedding(
            self._client, text, self.model, "RETRIEVAL_DOCUMENT", self.output_dimensionality
        )

    def embed_query(self, text: str) -> list[float]:
        return generate_embedding(
            self._client, text, self.model, "RETRIEVAL_QUERY", self.output_dimensionality
        )

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i : i + self.batch_size])
            vectors.extend(
                generate_embeddings(
                    self._client,
                    batch,
                    self.model,
                    "RETRIEVAL_DOCUMENT",
                    self.output_dimensionality,
                )
            )
        logger.debug("Embedded %d texts with %s", len(vectors), self.model)
        return vectors

    def dimensions(self) -> int:
        if self.output_dimensionality:
            return self.output_dimensionality
        return super().dimensions()
