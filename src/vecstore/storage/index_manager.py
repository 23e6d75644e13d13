import logging
import zlib

from sqlalchemy import Connection, Engine, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateIndex, CreateSchema, CreateTable, DropTable

from vecstore.core.exceptions import DimensionMismatch, SchemaInitFailure
from vecstore.models.vector_table import build_similarity_index, build_vector_table
from vecstore.schemas.collection import CollectionConfig
from vecstore.storage.distance import MAX_INDEXED_DIMENSIONS, get_strategy

logger = logging.getLogger(__name__)

# Every schema change in the database serializes on this advisory lock.
SCHEMA_LOCK_KEY = zlib.crc32(b"vecstore.schema")

_EMBEDDING_TYPMOD = text(
    "SELECT a.atttypmod FROM pg_attribute a "
    "WHERE a.attrelid = to_regclass(:relation) "
    "AND a.attname = 'embedding' AND NOT a.attisdropped"
)


class IndexManager:
    def __init__(self, engine: Engine, config: CollectionConfig) -> None:
        self._engine = engine
        self.config = config
        self.strategy = get_strategy(config.distance_metric)

    @property
    def index_name(self) -> str:
        return (
            f"{self.config.table_name}_{self.strategy.short_name}"
            f"_{self.config.index_type.value}_idx"
        )

    def _read_dimensions(self, conn: Connection) -> int | None:
        typmod = conn.execute(
            _EMBEDDING_TYPMOD, {"relation": self.config.qualified_name}
        ).scalar_one_or_none()
        if typmod is None or typmod < 1:
            return None
        return typmod

    def existing_dimensions(self) -> int | None:
        """Dimension of the embedding column if the table exists, else None."""
        try:
            with self._engine.connect() as conn:
                return self._read_dimensions(conn)
        except SQLAlchemyError as e:
            raise SchemaInitFailure(
                f"Cannot inspect table {self.config.qualified_name}: {e}"
            ) from e

    def ensure_schema(self, dimensions: int) -> int:
        """Create extension, table and index if missing; return the bound dimension."""
        try:
            with self._engine.begin() as conn:
                conn.execute(select(func.pg_advisory_xact_lock(SCHEMA_LOCK_KEY)))
                conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                if self.config.schema_name:
                    conn.execute(CreateSchema(self.config.schema_name, if_not_exists=True))

                existing = self._read_dimensions(conn)
                if existing is not None and existing != dimensions:
                    raise DimensionMismatch(existing, dimensions, context="configured dimension")
                self._check_indexable(dimensions)

                table = build_vector_table(self.config, dimensions)
                conn.execute(CreateTable(table, if_not_exists=True))
                if self.config.index_type.approximate:
                    index = build_similarity_index(
                        table,
                        self.index_name,
                        self.config.index_type.value,
                        self.strategy.ops_class,
                        self.strategy.build_params(self.config),
                    )
                    conn.execute(CreateIndex(index, if_not_exists=True))
        except SQLAlchemyError as e:
            raise SchemaInitFailure(
                f"Cannot initialize table {self.config.qualified_name}: {e}"
            ) from e

        logger.info(
            "Vector table %s ready (dimensions=%d, metric=%s, index=%s)",
            self.config.qualified_name,
            dimensions,
            self.config.distance_metric.value,
            self.config.index_type.value,
        )
        return dimensions

    def _check_indexable(self, dimensions: int) -> None:
        if self.config.index_type.approximate and dimensions > MAX_INDEXED_DIMENSIONS:
            raise SchemaInitFailure(
                f"{self.config.index_type.value} indexes support at most "
                f"{MAX_INDEXED_DIMENSIONS} dimensions, got {dimensions}"
            )

    def drop(self) -> None:
        """Drop the collection table together with its index."""
        table = build_vector_table(self.config, None)
        try:
            with self._engine.begin() as conn:
                conn.execute(select(func.pg_advisory_xact_lock(SCHEMA_LOCK_KEY)))
                conn.execute(DropTable(table, if_exists=True))
        except SQLAlchemyError as e:
            raise SchemaInitFailure(
                f"Cannot drop table {self.config.qualified_name}: {e}"
            ) from e
        logger.info("Dropped vector table %s", self.config.qualified_name)
