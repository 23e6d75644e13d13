from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# Lowercase only, so catalog lookups match the unquoted DDL names.
IDENTIFIER_PATTERN = r"^[a-z_][a-z0-9_]*$"


class DistanceMetric(StrEnum):
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    NEGATIVE_INNER_PRODUCT = "negative_inner_product"
    MANHATTAN = "manhattan"


class IndexKind(StrEnum):
    NONE = "none"
    HNSW = "hnsw"
    IVFFLAT = "ivfflat"

    @property
    def approximate(self) -> bool:
        return self is not IndexKind.NONE


class HnswParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    m: int = Field(16, ge=2, le=100)
    ef_construction: int = Field(64, ge=4, le=1000)
    ef_search: int = Field(40, ge=1, le=1000)


class IvfflatParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    lists: int = Field(100, ge=1, le=32768)
    probes: int = Field(1, ge=1)


class CollectionConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    table_name: str = Field("vector_store", max_length=40, pattern=IDENTIFIER_PATTERN)
    schema_name: str | None = Field(None, max_length=63, pattern=IDENTIFIER_PATTERN)
    dimensions: int | None = Field(None, ge=1, le=16000)
    distance_metric: DistanceMetric = DistanceMetric.COSINE
    index_type: IndexKind = IndexKind.HNSW
    hnsw: HnswParams = HnswParams()
    ivfflat: IvfflatParams = IvfflatParams()
    schema_managed: bool = True
    remove_existing_table: bool = False

    @property
    def qualified_name(self) -> str:
        if self.schema_name:
            return f"{self.schema_name}.{self.table_name}"
        return self.table_name
