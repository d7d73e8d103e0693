"""
Recommendation models shared by the collaborative filtering engines
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class SimilarityMethod(str, Enum):
    """Similarity metric used by the memory based engines"""
    EUCLIDEAN = "euclidean"
    PEARSON = "pearson"
    JACCARD = "jaccard"


class MethodType(str, Enum):
    """Family of collaborative filtering methods"""
    MEMORY_BASED = "memory_based"
    MODEL_BASED = "model_based"


class Algorithm(str, Enum):
    """Concrete collaborative filtering algorithm"""
    ITEM_BASED = "item_based"
    USER_BASED = "user_based"
    SVD_USER_BASED = "svd_user_based"
    SVD_ITEM_BASED = "svd_item_based"
    SVD_INCREMENTAL = "svd_incremental"


@dataclass(frozen=True)
class Neighbor:
    """A similar entity and its similarity score"""
    id: int
    similarity: float


@dataclass(frozen=True)
class ScoredItem:
    """Recommended item with its estimated rating"""
    item_id: int
    estimate: float


# entity id -> neighbors sorted by descending similarity
SimilarityMatrix = Dict[int, List[Neighbor]]


@dataclass
class LatentFactors:
    """
    Learned latent features for users and items

    Both tables map a 1-based feature index to a mapping of entity id -> weight.
    """
    n_features: int
    user_features: Dict[int, Dict[int, float]] = field(default_factory=dict)
    item_features: Dict[int, Dict[int, float]] = field(default_factory=dict)

    @classmethod
    def seeded(cls, n_features: int, user_ids, item_ids, init_value: float) -> "LatentFactors":
        """Create tables where every feature of every entity starts at init_value"""
        user_ids = list(user_ids)
        item_ids = list(item_ids)
        factors = cls(n_features=n_features)
        for feature in range(1, n_features + 1):
            factors.user_features[feature] = {user_id: init_value for user_id in user_ids}
            factors.item_features[feature] = {item_id: init_value for item_id in item_ids}
        return factors

    def has_user(self, user_id: int) -> bool:
        return self.n_features > 0 and user_id in self.user_features[1]

    def has_item(self, item_id: int) -> bool:
        return self.n_features > 0 and item_id in self.item_features[1]
