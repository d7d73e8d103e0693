"""
Recommendation algorithms package
"""

from .base import RecommendationEngine
from .collaborative_filtering import ItemBasedCollaborativeFiltering, UserBasedCollaborativeFiltering
from .factory import get_engine
from .matrix_factorization import IncrementalMatrixFactorization
from .svd_neighborhood import (
    SVDItemBasedCollaborativeFiltering, SVDUserBasedCollaborativeFiltering, scipy_decompose
)

__all__ = [
    'RecommendationEngine',
    'ItemBasedCollaborativeFiltering',
    'UserBasedCollaborativeFiltering',
    'IncrementalMatrixFactorization',
    'SVDItemBasedCollaborativeFiltering',
    'SVDUserBasedCollaborativeFiltering',
    'get_engine',
    'scipy_decompose',
]
