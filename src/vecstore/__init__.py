from vecstore.core.exceptions import (
    DimensionMismatch,
    EmbeddingFailure,
    SchemaInitFailure,
    StoreReadFailure,
    StoreWriteFailure,
    UnsupportedMetricForIndex,
    VectorStoreError,
)
from vecstore.main import create_store
from vecstore.schemas import CollectionConfig, DistanceMetric, Document, IndexKind
from vecstore.services.embedding_service import EmbeddingProvider, GeminiEmbeddingProvider
from vecstore.storage import CollectionStore

__all__ = [
    "CollectionConfig",
    "CollectionStore",
    "DimensionMismatch",
    "DistanceMetric",
    "Document",
    "EmbeddingFailure",
    "EmbeddingProvider",
    "GeminiEmbeddingProvider",
    "IndexKind",
    "SchemaInitFailure",
    "StoreReadFailure",
    "StoreWriteFailure",
    "UnsupportedMetricForIndex",
    "VectorStoreError",
    "create_store",
]
