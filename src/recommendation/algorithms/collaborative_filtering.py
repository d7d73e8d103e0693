"""
Collaborative Filtering Algorithms Implementation
Implements both user-based and item-based memory collaborative filtering
"""

from typing import Dict, List, Optional, Set

import structlog

from ..config import EngineConfig
from ..exceptions import ConfigurationError
from ..models.catalog import Item, RatingCatalog, User
from ..models.recommendation import Neighbor, ScoredItem, SimilarityMatrix, SimilarityMethod
from .aggregation import (
    item_based_rating, item_based_recommendations,
    user_based_rating, user_based_recommendations
)
from .base import RecommendationEngine
from .similarity import compute_similarity

logger = structlog.get_logger()


class NeighborhoodEngine(RecommendationEngine):
    """Builds a similarity matrix between entities of one kind (items or users)"""

    default_similarity_method: SimilarityMethod = SimilarityMethod.EUCLIDEAN
    entity_kind = "entity"

    def __init__(self, config: Optional[EngineConfig] = None):
        super().__init__(config)
        self.similarity_method = SimilarityMethod(
            self.config.similarity_method or self.default_similarity_method
        )
        self._check_similarity_method()

        # entity id -> (counterpart id -> rating)
        self.vectors: Dict[int, Dict[int, float]] = {}
        # counterpart id -> entity ids with a rating from that counterpart
        self._raters: Dict[int, Set[int]] = {}

    def _check_similarity_method(self):
        pass

    def _build_vectors(self, catalog: RatingCatalog) -> Dict[int, Dict[int, float]]:
        raise NotImplementedError

    def set_data(self, catalog: RatingCatalog):
        super().set_data(catalog)
        self.vectors = self._build_vectors(catalog)

        self._raters = {}
        for entity_id, vector in self.vectors.items():
            for counterpart_id in vector:
                self._raters.setdefault(counterpart_id, set()).add(entity_id)

    @property
    def similarity_matrix(self) -> Optional[SimilarityMatrix]:
        return self.store.model

    def recompute_model(self) -> SimilarityMatrix:
        """Top similar entities for every entity in the catalog"""
        logger.info(f"Computing {self.entity_kind} similarity matrix",
                    n_entities=len(self.vectors),
                    similarity_method=self.similarity_method.value,
                    top_k=self.config.similar_objects_count)

        matrix: SimilarityMatrix = {}
        for entity_id in self.vectors:
            matrix[entity_id] = self.find_top_similar(entity_id, self.config.similar_objects_count)
        return matrix

    def find_top_similar(self, entity_id: int, top: Optional[int] = None) -> List[Neighbor]:
        """
        Similar entities for one entity, most similar first

        Only entities sharing at least one counterpart are scanned; all others
        have an empty common support and therefore zero similarity.

        Args:
            entity_id: Entity to find neighbors for
            top: Maximum number of neighbors, all when None

        Returns:
            Neighbors with similarity >= min_similarity, excluding the entity itself
        """
        vector = self.vectors.get(entity_id)
        if vector is None:
            return []

        candidates = set()
        for counterpart_id in vector:
            candidates.update(self._raters.get(counterpart_id, ()))
        candidates.discard(entity_id)

        similarities = []
        for other_id in candidates:
            similarity = compute_similarity(self.similarity_method, vector, self.vectors[other_id])
            if similarity < self.config.min_similarity:
                continue
            similarities.append(Neighbor(other_id, similarity))

        similarities.sort(key=lambda neighbor: (-neighbor.similarity, neighbor.id))
        return similarities[:top] if top is not None else similarities


class ItemBasedCollaborativeFiltering(NeighborhoodEngine):
    """Item-based collaborative filtering implementation"""

    default_similarity_method = SimilarityMethod.EUCLIDEAN
    entity_kind = "item"

    def _check_similarity_method(self):
        if self.similarity_method == SimilarityMethod.JACCARD:
            raise ConfigurationError("Jaccard similarity is only supported for user-user comparisons")

    def _build_vectors(self, catalog: RatingCatalog) -> Dict[int, Dict[int, float]]:
        return catalog.item_vectors()

    def rating_for(self, user: User, item: Item) -> Optional[float]:
        """Weighted rating of the item's neighbors that the user rated"""
        if self.similarity_matrix is None:
            return None
        return item_based_rating(self.similarity_matrix, user, item.id)

    def recommendations_for(self, user: User, top_n: Optional[int] = None) -> Optional[List[ScoredItem]]:
        """
        Get recommendations for a user

        Every item the user rated contributes its neighbors; items the user
        already rated are excluded.

        Args:
            user: Active user
            top_n: Number of recommendations, config default when None

        Returns:
            List of ScoredItem sorted by estimate, None if no model is available
        """
        if self.similarity_matrix is None:
            return None
        return item_based_recommendations(self.similarity_matrix, user, self._top_n(top_n))


class UserBasedCollaborativeFiltering(NeighborhoodEngine):
    """User-based collaborative filtering implementation"""

    default_similarity_method = SimilarityMethod.PEARSON
    entity_kind = "user"

    def _build_vectors(self, catalog: RatingCatalog) -> Dict[int, Dict[int, float]]:
        return {user_id: user.rating_vector() for user_id, user in catalog.users.items()}

    def rating_for(self, user: User, item: Item) -> Optional[float]:
        """Weighted rating the user's neighbors gave the item"""
        if self.similarity_matrix is None:
            return None
        return user_based_rating(self.similarity_matrix, self.catalog.users, user, item.id)

    def recommendations_for(self, user: User, top_n: Optional[int] = None) -> Optional[List[ScoredItem]]:
        """
        Get recommendations for a user from the items of the most similar users

        Args:
            user: Active user
            top_n: Number of recommendations, config default when None

        Returns:
            List of ScoredItem sorted by estimate, None if no model is available
        """
        if self.similarity_matrix is None:
            return None
        return user_based_recommendations(self.similarity_matrix, self.catalog.users, user,
                                          self._top_n(top_n))
