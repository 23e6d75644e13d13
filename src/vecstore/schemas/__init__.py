from vecstore.schemas.collection import (
    CollectionConfig,
    DistanceMetric,
    HnswParams,
    IndexKind,
    IvfflatParams,
)
from vecstore.schemas.document import Document

__all__ = [
    "CollectionConfig",
    "DistanceMetric",
    "Document",
    "HnswParams",
    "IndexKind",
    "IvfflatParams",
]
