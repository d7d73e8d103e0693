"""
Collaborative filtering recommendation engine
"""

from .algorithms import (
    IncrementalMatrixFactorization, ItemBasedCollaborativeFiltering, RecommendationEngine,
    SVDItemBasedCollaborativeFiltering, SVDUserBasedCollaborativeFiltering,
    UserBasedCollaborativeFiltering, get_engine
)
from .config import EngineConfig, configure_logging
from .models import Algorithm, Item, MethodType, RatingCatalog, SimilarityMethod, User

__version__ = "1.0.0"

__all__ = [
    'IncrementalMatrixFactorization',
    'ItemBasedCollaborativeFiltering',
    'RecommendationEngine',
    'SVDItemBasedCollaborativeFiltering',
    'SVDUserBasedCollaborativeFiltering',
    'UserBasedCollaborativeFiltering',
    'get_engine',
    'EngineConfig',
    'configure_logging',
    'Algorithm',
    'Item',
    'MethodType',
    'RatingCatalog',
    'SimilarityMethod',
    'User',
]
