"""Per-metric ranking and distance normalization.

pgvector returns a raw operator value per row. Every metric maps that value
onto a normalized distance where 0 means identical and smaller always means
more similar. Similarity is ``1 - distance`` and is what search thresholds
compare against.

- cosine: ``<=>`` yields ``1 - cos`` in [0, 2]; distance is ``raw / 2``.
- euclidean: ``<->`` yields L2 in [0, inf); distance is ``raw / (1 + raw)``.
- negative inner product: ``<#>`` yields ``-dot``; distance is
  ``(1 + raw) / 2`` clamped to [0, 1], which equals the cosine mapping for
  unit-length embeddings. Longer vectors saturate at 0 or 1.
- manhattan: ``<+>`` yields L1 in [0, inf); distance is ``raw / (1 + raw)``.
"""

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import ColumnElement, Float

from vecstore.core.exceptions import UnsupportedMetricForIndex
from vecstore.schemas.collection import CollectionConfig, DistanceMetric, IndexKind

# pgvector cannot index vector columns wider than this.
MAX_INDEXED_DIMENSIONS = 2000


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _cosine(raw: float) -> float:
    return _clamp(raw / 2)


def _unbounded(raw: float) -> float:
    raw = max(0.0, raw)
    return raw / (1.0 + raw)


def _negative_inner_product(raw: float) -> float:
    return _clamp((1.0 + raw) / 2)


@dataclass(frozen=True)
class DistanceStrategy:
    metric: DistanceMetric
    operator: str
    ops_class: str
    short_name: str
    normalize: Callable[[float], float]
    index_kinds: frozenset[IndexKind]

    def ranking_expression(self, column, query_vector: list[float]) -> ColumnElement[float]:
        """Raw distance between ``column`` and the query; ascending = closer."""
        return column.op(self.operator, return_type=Float)(query_vector)

    def supports(self, index_type: IndexKind) -> bool:
        return index_type in self.index_kinds

    def validate(self, index_type: IndexKind) -> None:
        if not self.supports(index_type):
            raise UnsupportedMetricForIndex(self.metric.value, index_type.value)

    def build_params(self, config: CollectionConfig) -> dict[str, int]:
        if config.index_type is IndexKind.HNSW:
            return {"m": config.hnsw.m, "ef_construction": config.hnsw.ef_construction}
        if config.index_type is IndexKind.IVFFLAT:
            return {"lists": config.ivfflat.lists}
        return {}

    def search_settings(self, config: CollectionConfig) -> dict[str, int]:
        """Session parameters that widen the approximate index scan."""
        if config.index_type is IndexKind.HNSW:
            return {"hnsw.ef_search": config.hnsw.ef_search}
        if config.index_type is IndexKind.IVFFLAT:
            return {"ivfflat.probes": config.ivfflat.probes}
        return {}


_ALL_INDEXES = frozenset(IndexKind)

STRATEGIES: dict[DistanceMetric, DistanceStrategy] = {
    DistanceMetric.COSINE: DistanceStrategy(
        metric=DistanceMetric.COSINE,
        operator="<=>",
        ops_class="vector_cosine_ops",
        short_name="cos",
        normalize=_cosine,
        index_kinds=_ALL_INDEXES,
    ),
    DistanceMetric.EUCLIDEAN: DistanceStrategy(
        metric=DistanceMetric.EUCLIDEAN,
        operator="<->",
        ops_class="vector_l2_ops",
        short_name="l2",
        normalize=_unbounded,
        index_kinds=_ALL_INDEXES,
    ),
    DistanceMetric.NEGATIVE_INNER_PRODUCT: DistanceStrategy(
        metric=DistanceMetric.NEGATIVE_INNER_PRODUCT,
        operator="<#>",
        ops_class="vector_ip_ops",
        short_name="ip",
        normalize=_negative_inner_product,
        index_kinds=_ALL_INDEXES,
    ),
    DistanceMetric.MANHATTAN: DistanceStrategy(
        metric=DistanceMetric.MANHATTAN,
        operator="<+>",
        ops_class="vector_l1_ops",
        short_name="l1",
        normalize=_unbounded,
        index_kinds=frozenset({IndexKind.NONE, IndexKind.HNSW}),
    ),
}


def get_strategy(metric: DistanceMetric) -> DistanceStrategy:
    return STRATEGIES[DistanceMetric(metric)]
