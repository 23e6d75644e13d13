from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, Index, MetaData, Table, Text
from sqlalchemy.dialects.postgresql import JSONB

from vecstore.schemas.collection import CollectionConfig


def build_vector_table(config: CollectionConfig, dimensions: int | None) -> Table:
    """Describe the collection table: id, content, metadata, embedding vector(D)."""
    return Table(
        config.table_name,
        MetaData(),
        Column("id", Text, primary_key=True),
        Column("content", Text, nullable=False),
        Column("metadata", JSONB, nullable=False, server_default="{}"),
        Column("embedding", Vector(dimensions), nullable=False),
        schema=config.schema_name,
    )


def build_similarity_index(
    table: Table,
    name: str,
    index_type: str,
    ops_class: str,
    build_params: dict[str, int],
) -> Index:
    """Describe the approximate index over the embedding column."""
    return Index(
        name,
        table.c.embedding,
        postgresql_using=index_type,
        postgresql_with=build_params,
        postgresql_ops={"embedding": ops_class},
    )
