"""
Data models for the recommendation engine
"""

from .catalog import Item, Rating, RatingList, User, RatingCatalog, RATING_MIN, RATING_MAX
from .recommendation import (
    Algorithm, LatentFactors, MethodType, Neighbor, ScoredItem,
    SimilarityMatrix, SimilarityMethod
)

__all__ = [
    'Item',
    'Rating',
    'RatingList',
    'User',
    'RatingCatalog',
    'RATING_MIN',
    'RATING_MAX',
    'Algorithm',
    'LatentFactors',
    'MethodType',
    'Neighbor',
    'ScoredItem',
    'SimilarityMatrix',
    'SimilarityMethod',
]
