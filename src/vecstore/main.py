from sqlalchemy import Engine

from vecstore.core.config import Settings, get_settings
from vecstore.core.database import create_db_engine
from vecstore.core.llm import get_gemini_client
from vecstore.services.embedding_service import EmbeddingProvider, GeminiEmbeddingProvider
from vecstore.storage.collection_store import CollectionStore


def get_embedding_provider(settings: Settings) -> EmbeddingProvider:
    return GeminiEmbeddingProvider(
        get_gemini_client(settings),
        model=settings.gemini_embedding_model,
        output_dimensionality=settings.embedding_dimensions,
    )


def create_store(
    settings: Settings | None = None,
    engine: Engine | None = None,
    embedding_provider: EmbeddingProvider | None = None,
) -> CollectionStore:
    """Assemble a CollectionStore from settings, overriding any collaborator given."""
    settings = settings or get_settings()
    return CollectionStore(
        engine=engine or create_db_engine(settings),
        embedding_provider=embedding_provider or get_embedding_provider(settings),
        config=settings.collection_config(),
    )
