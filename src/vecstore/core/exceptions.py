class VectorStoreError(Exception):
    """Base class for every error raised by the vector store."""


class EmbeddingFailure(VectorStoreError):
    """Raised when the embedding provider fails or returns malformed output."""


class DimensionMismatch(VectorStoreError):
    def __init__(self, expected: int, actual: int, context: str = "embedding") -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{context} has {actual} dimensions, collection is bound to {expected}"
        )


class UnsupportedMetricForIndex(VectorStoreError):
    def __init__(self, metric: str, index_type: str) -> None:
        self.metric = metric
        self.index_type = index_type
        super().__init__(f"distance metric '{metric}' is not supported by '{index_type}' indexes")


class StoreWriteFailure(VectorStoreError):
    """Raised when the database rejects or fails a write."""


class StoreReadFailure(VectorStoreError):
    """Raised when the database fails a read."""


class SchemaInitFailure(VectorStoreError):
    """Raised when the backing table or index cannot be created or verified."""
