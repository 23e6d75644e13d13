import logging
import threading
from collections.abc import Sequence

from sqlalchemy import Engine, Row, Table, delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError

from vecstore.core.exceptions import (
    DimensionMismatch,
    EmbeddingFailure,
    SchemaInitFailure,
    StoreReadFailure,
    StoreWriteFailure,
)
from vecstore.models.vector_table import build_vector_table
from vecstore.schemas.collection import CollectionConfig
from vecstore.schemas.document import Document
from vecstore.services.embedding_service import EmbeddingProvider
from vecstore.storage.distance import get_strategy
from vecstore.storage.index_manager import IndexManager
from vecstore.storage.vector_store import VectorStore

logger = logging.getLogger(__name__)

# Keeps each statement well under the 65535 bind-parameter limit.
CHUNK_SIZE = 1000


def _chunks(items: Sequence, size: int = CHUNK_SIZE):
    for i in range(0, len(items), size):
        yield items[i : i + size]


def validate_search_args(k: int, threshold: float) -> None:
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [0, 1], got {threshold}")


class CollectionStore(VectorStore):
    """pgvector-backed collection of documents keyed by id.

    Every call is its own transaction. The table and index are created on
    first use when the collection is schema-managed; the embedding dimension
    is bound at that point and never changes for the life of the table.
    """

    def __init__(
        self,
        engine: Engine,
        embedding_provider: EmbeddingProvider,
        config: CollectionConfig | None = None,
    ) -> None:
        self._engine = engine
        self._provider = embedding_provider
        self.config = config or CollectionConfig()
        self.strategy = get_strategy(self.config.distance_metric)
        self.strategy.validate(self.config.index_type)
        self.index_manager = IndexManager(engine, self.config)

        self._lock = threading.Lock()
        self._table: Table | None = None
        self._dimensions: int | None = None
        self._remove_existing = self.config.remove_existing_table

    @property
    def dimensions(self) -> int | None:
        """Bound embedding dimension, or None before first use."""
        return self._dimensions

    # ── initialization ───────────────────────────────────────────────────

    def _bind(self) -> Table:
        if self._table is None:
            with self._lock:
                if self._table is None:
                    self._table = self._initialize()
        return self._table

    def _initialize(self) -> Table:
        if self._remove_existing:
            self.index_manager.drop()
            self._remove_existing = False

        dimensions = self._resolve_dimensions()
        if self.config.schema_managed:
            dimensions = self.index_manager.ensure_schema(dimensions)
        self._dimensions = dimensions
        return build_vector_table(self.config, dimensions)

    def _resolve_dimensions(self) -> int:
        existing = self.index_manager.existing_dimensions()
        configured = self.config.dimensions
        if existing is not None:
            if configured is not None and configured != existing:
                raise DimensionMismatch(existing, configured, context="configured dimension")
            return existing
        if configured is not None:
            return configured
        if not self.config.schema_managed:
            raise SchemaInitFailure(
                f"Table {self.config.qualified_name} does not exist and "
                "schema management is disabled"
            )

        dimensions = self._provider.dimensions()
        logger.info("Inferred embedding dimension %d from provider", dimensions)
        return dimensions

    def _check_dimensions(self, vector: Sequence[float], context: str) -> None:
        if len(vector) != self._dimensions:
            raise DimensionMismatch(self._dimensions, len(vector), context=context)

    # ── writes ───────────────────────────────────────────────────────────

    def _embed_missing(self, documents: Sequence[Document]) -> list[list[float]]:
        """Embeddings aligned with ``documents``, calling the provider for missing ones."""
        embeddings = [doc.embedding for doc in documents]
        pending = [i for i, embedding in enumerate(embeddings) if embedding is None]
        if not pending:
            return embeddings

        vectors = self._provider.embed_batch([documents[i].content for i in pending])
        if len(vectors) != len(pending):
            raise EmbeddingFailure(
                f"Provider returned {len(vectors)} embeddings for {len(pending)} documents"
            )
        for i, vector in zip(pending, vectors, strict=True):
            embeddings[i] = vector
        return embeddings

    def add(self, documents: Sequence[Document]) -> None:
        if not documents:
            return

        table = self._bind()
        embeddings = self._embed_missing(documents)

        # Last occurrence wins when an id repeats within the batch.
        rows: dict[str, dict] = {}
        for doc, embedding in zip(documents, embeddings, strict=True):
            self._check_dimensions(embedding, context=f"embedding of document '{doc.id}'")
            rows[doc.id] = {
                "id": doc.id,
                "content": doc.content,
                "metadata": doc.metadata,
                "embedding": embedding,
            }

        values = list(rows.values())
        try:
            with self._engine.begin() as conn:
                for chunk in _chunks(values):
                    stmt = insert(table).values(chunk)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=[table.c.id],
                        set_={
                            "content": stmt.excluded.content,
                            "metadata": stmt.excluded["metadata"],
                            "embedding": stmt.excluded.embedding,
                        },
                    )
                    conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteFailure(
                f"Upsert of {len(values)} documents into {self.config.qualified_name} failed: {e}"
            ) from e

        for doc, embedding in zip(documents, embeddings, strict=True):
            if doc.embedding is None:
                doc.embedding = embedding
        logger.info("Upserted %d documents into %s", len(values), self.config.qualified_name)

    def delete(self, ids: Sequence[str]) -> int:
        if not ids:
            return 0

        table = self._bind()
        removed = 0
        try:
            with self._engine.begin() as conn:
                for chunk in _chunks(list(dict.fromkeys(ids))):
                    removed += conn.execute(delete(table).where(table.c.id.in_(chunk))).rowcount
        except SQLAlchemyError as e:
            raise StoreWriteFailure(
                f"Delete of {len(ids)} ids from {self.config.qualified_name} failed; "
                f"an unknown subset may have been removed: {e}"
            ) from e

        logger.info("Deleted %d of %d ids from %s", removed, len(ids), self.config.qualified_name)
        return removed

    def drop(self) -> None:
        """Drop the whole collection. The next call re-creates it if schema-managed."""
        with self._lock:
            self.index_manager.drop()
            self._table = None
            self._dimensions = None

    # ── reads ────────────────────────────────────────────────────────────

    def similarity_search(
        self,
        query: str,
        k: int = 4,
        threshold: float = 0.0,
        metadata_filter: dict | None = None,
    ) -> list[tuple[Document, float]]:
        """Return up to ``k`` (document, distance) pairs, closest first.

        Distances are normalized to [0, 1] and a row is kept when
        ``1 - distance >= threshold``. For ``negative_inner_product`` the
        normalization ``(1 + raw) / 2`` is clamped, so it only discriminates
        between unit-length embeddings. With longer vectors (for example Gemini
        embeddings truncated below 3072 dimensions) dot products beyond +/-1
        all collapse to distance 0 or 1, although the ranking itself still
        follows the database order.
        """
        validate_search_args(k, threshold)
        table = self._bind()
        query_vector = self._provider.embed_query(query)
        return self._search(table, query_vector, k, threshold, metadata_filter)

    def similarity_search_by_vector(
        self,
        embedding: Sequence[float],
        k: int = 4,
        threshold: float = 0.0,
        metadata_filter: dict | None = None,
    ) -> list[tuple[Document, float]]:
        validate_search_args(k, threshold)
        table = self._bind()
        return self._search(table, list(embedding), k, threshold, metadata_filter)

    def _search(
        self,
        table: Table,
        query_vector: list[float],
        k: int,
        threshold: float,
        metadata_filter: dict | None,
    ) -> list[tuple[Document, float]]:
        self._check_dimensions(query_vector, context="query embedding")

        distance = self.strategy.ranking_expression(table.c.embedding, query_vector).label(
            "distance"
        )
        stmt = (
            select(table.c.id, table.c.content, table.c["metadata"], distance)
            .order_by(distance)
            .limit(k)
        )
        if metadata_filter:
            stmt = stmt.where(table.c["metadata"].contains(metadata_filter))

        try:
            with self._engine.begin() as conn:
                for name, value in self.strategy.search_settings(self.config).items():
                    conn.execute(select(func.set_config(name, str(value), True)))
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as e:
            raise StoreReadFailure(
                f"Similarity search on {self.config.qualified_name} failed: {e}"
            ) from e

        results = self.to_results(rows, k, threshold)
        logger.debug(
            "Similarity search returned %d of %d candidates (k=%d, threshold=%s)",
            len(results),
            len(rows),
            k,
            threshold,
        )
        return results

    def to_results(
        self, rows: Sequence[Row], k: int, threshold: float
    ) -> list[tuple[Document, float]]:
        """Normalize ranked rows, drop those below ``threshold`` similarity, keep ``k``."""
        results: list[tuple[Document, float]] = []
        for row in rows:
            record = row._mapping
            distance = self.strategy.normalize(float(record["distance"]))
            if 1.0 - distance < threshold:
                continue
            metadata = dict(record["metadata"] or {})
            metadata["distance"] = distance
            document = Document(id=record["id"], content=record["content"], metadata=metadata)
            results.append((document, distance))
        return results[:k]

    def get(self, ids: Sequence[str]) -> list[Document]:
        """Fetch stored documents by id, in request order; unknown ids are skipped."""
        if not ids:
            return []

        table = self._bind()
        wanted = list(dict.fromkeys(ids))
        rows = []
        try:
            with self._engine.connect() as conn:
                for chunk in _chunks(wanted):
                    rows.extend(conn.execute(select(table).where(table.c.id.in_(chunk))).all())
        except SQLAlchemyError as e:
            raise StoreReadFailure(
                f"Lookup on {self.config.qualified_name} failed: {e}"
            ) from e

        found = {}
        for row in rows:
            record = row._mapping
            found[record["id"]] = Document(
                id=record["id"],
                content=record["content"],
                metadata=record["metadata"] or {},
                embedding=[float(v) for v in record["embedding"]],
            )
        return [found[doc_id] for doc_id in wanted if doc_id in found]

    def count(self) -> int:
        table = self._bind()
        try:
            with self._engine.connect() as conn:
                return conn.execute(select(func.count()).select_from(table)).scalar_one()
        except SQLAlchemyError as e:
            raise StoreReadFailure(f"Count on {self.config.qualified_name} failed: {e}") from e
