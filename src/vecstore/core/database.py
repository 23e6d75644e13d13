from sqlalchemy import Engine, create_engine

from vecstore.core.config import Settings


def create_db_engine(settings: Settings) -> Engine:
    """Create a pooled engine with a server-side statement timeout."""
    return create_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
        connect_args={"options": f"-c statement_timeout={settings.db_statement_timeout_ms}"},
    )
