from abc import ABC, abstractmethod
from collections.abc import Sequence

from vecstore.schemas.document import Document


class VectorStore(ABC):
    @abstractmethod
    def add(self, documents: Sequence[Document]) -> None:
        """Embed and upsert documents by id."""
        ...

    @abstractmethod
    def delete(self, ids: Sequence[str]) -> int:
        """Delete documents by id. Missing ids are ignored; returns rows removed."""
        ...

    @abstractmethod
    def similarity_search(
        self,
        query: str,
        k: int = 4,
        threshold: float = 0.0,
        metadata_filter: dict | None = None,
    ) -> list[tuple[Document, float]]:
        """Search for similar documents. Returns (document, distance) pairs, closest first."""
        ...
