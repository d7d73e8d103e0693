"""
Recommendation Engine Configuration
Engine hyperparameters, persistence paths and logging setup
"""
import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

import structlog
from dotenv import load_dotenv

from .models.recommendation import SimilarityMethod


@dataclass(frozen=True)
class EngineConfig:
    """Configuration passed to an engine at construction"""

    # Neighborhood engines
    similarity_method: Optional[SimilarityMethod] = None  # engine default when None
    min_similarity: float = 0.00001
    similar_objects_count: Optional[int] = None  # top-K neighbors kept per entity
    recommendation_count: Optional[int] = None  # default top-N for recommendations

    # Persistence
    file_path: Optional[str] = None
    save_to_file: bool = True

    # Incremental matrix factorization
    n_features: int = 10
    feature_init_value: float = 0.1
    learning_rate: float = 0.001
    regularization: float = 0.015
    min_epochs: int = 50
    max_epochs: int = 100
    min_improvement: float = 0.0001

    # SVD neighborhood engines
    svd_min_similarity: float = 0.9
    svd_dimensions: int = 2

    def __post_init__(self):
        if self.similarity_method is not None and not isinstance(self.similarity_method, SimilarityMethod):
            object.__setattr__(self, 'similarity_method', SimilarityMethod(self.similarity_method))

    def with_overrides(self, **changes) -> "EngineConfig":
        return replace(self, **changes)

    @classmethod
    def from_env(cls, **overrides) -> "EngineConfig":
        """
        Build a configuration from CF_* environment variables

        A .env file in the working directory is loaded first. Keyword overrides
        take precedence over the environment.
        """
        load_dotenv()

        def _optional_int(name: str) -> Optional[int]:
            value = os.getenv(name, '')
            return int(value) if value else None

        values = {
            'similarity_method': os.getenv('CF_SIMILARITY_METHOD') or None,
            'min_similarity': float(os.getenv('CF_MIN_SIMILARITY', '0.00001')),
            'similar_objects_count': _optional_int('CF_SIMILAR_OBJECTS_COUNT'),
            'recommendation_count': _optional_int('CF_RECOMMENDATION_COUNT'),
            'file_path': os.getenv('CF_MODEL_FILE') or None,
            'save_to_file': os.getenv('CF_SAVE_MODEL', 'true').lower() == 'true',
            'n_features': int(os.getenv('CF_FEATURE_COUNT', '10')),
            'learning_rate': float(os.getenv('CF_LEARNING_RATE', '0.001')),
            'regularization': float(os.getenv('CF_REGULARIZATION', '0.015')),
            'svd_min_similarity': float(os.getenv('CF_SVD_MIN_SIMILARITY', '0.9')),
        }
        values.update(overrides)
        return cls(**values)


def configure_logging(level: str = None) -> None:
    """Configure structlog with a level filter and console rendering"""
    level_name = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        cache_logger_on_first_use=False,
    )
