import uuid
from typing import Any

from pydantic import BaseModel, Field


def _new_id() -> str:
    return str(uuid.uuid4())


class Document(BaseModel):
    id: str = Field(default_factory=_new_id, min_length=1)
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: list[float] | None = None

    def __repr__(self) -> str:
        return f"<Document {self.id} ({len(self.content)} chars)>"
