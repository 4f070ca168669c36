"""
Expertise embedding service backend package.

This package exposes a FastAPI application whose startup hook reconciles the
pgvector-backed ``entity_embeddings`` table before any request is served.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
