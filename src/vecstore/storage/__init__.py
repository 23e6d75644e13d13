from vecstore.storage.collection_store import CollectionStore
from vecstore.storage.distance import DistanceStrategy, get_strategy
from vecstore.storage.index_manager import IndexManager
from vecstore.storage.vector_store import VectorStore

__all__ = ["CollectionStore", "DistanceStrategy", "IndexManager", "VectorStore", "get_strategy"]
