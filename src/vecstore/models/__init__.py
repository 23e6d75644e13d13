from vecstore.models.vector_table import build_similarity_index, build_vector_table

__all__ = ["build_similarity_index", "build_vector_table"]
