"""
Recommendation services package
"""

from .model_storage import JoblibCodec, PersistentModel, SimilarityMatrixCodec

__all__ = [
    'JoblibCodec',
    'PersistentModel',
    'SimilarityMatrixCodec',
]
