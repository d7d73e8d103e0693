"""
Engine factory
Selects a collaborative filtering engine by method type and algorithm
"""
from typing import Optional, Union

import structlog

from ..config import EngineConfig
from ..models.recommendation import Algorithm, MethodType
from .base import RecommendationEngine
from .collaborative_filtering import ItemBasedCollaborativeFiltering, UserBasedCollaborativeFiltering
from .matrix_factorization import IncrementalMatrixFactorization
from .svd_neighborhood import SVDItemBasedCollaborativeFiltering, SVDUserBasedCollaborativeFiltering

logger = structlog.get_logger()

ENGINES = {
    (MethodType.MEMORY_BASED, Algorithm.ITEM_BASED): ItemBasedCollaborativeFiltering,
    (MethodType.MEMORY_BASED, Algorithm.USER_BASED): UserBasedCollaborativeFiltering,
    (MethodType.MODEL_BASED, Algorithm.SVD_ITEM_BASED): SVDItemBasedCollaborativeFiltering,
    (MethodType.MODEL_BASED, Algorithm.SVD_USER_BASED): SVDUserBasedCollaborativeFiltering,
    (MethodType.MODEL_BASED, Algorithm.SVD_INCREMENTAL): IncrementalMatrixFactorization,
}


def get_engine(method_type: Union[MethodType, str], algorithm: Union[Algorithm, str],
               config: Optional[EngineConfig] = None, **kwargs) -> Optional[RecommendationEngine]:
    """
    Create a new engine instance

    Args:
        method_type: memory_based or model_based
        algorithm: Algorithm within the method type
        config: Engine configuration, defaults when None
        **kwargs: Engine specific constructor arguments, e.g. decompose for
            the SVD engines only

    Returns:
        The engine, or None when the combination is not supported

    Raises:
        ValueError: method_type or algorithm is not a known value
        TypeError: kwargs contains an argument the selected engine does not take
    """
    method_type = MethodType(method_type)
    algorithm = Algorithm(algorithm)

    engine_class = ENGINES.get((method_type, algorithm))
    if engine_class is None:
        logger.warning("Unsupported engine combination",
                       method_type=method_type.value, algorithm=algorithm.value)
        return None
    return engine_class(config, **kwargs)
