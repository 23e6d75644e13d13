from google import genai
from google.genai import types

from vecstore.core.config import Settings, get_settings


def get_gemini_client(settings: Settings | None = None) -> genai.Client:
    """Create a Gemini API client using the configured API key and timeout."""
    settings = settings or get_settings()
    return genai.Client(
        api_key=settings.google_ai_api_key,
        http_options=types.HttpOptions(timeout=settings.embedding_timeout_ms),
    )
