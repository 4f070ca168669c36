from expertise.models.entity_embedding import EntityEmbedding

__all__ = ["EntityEmbedding"]
