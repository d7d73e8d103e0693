"""
SVD Neighborhood Collaborative Filtering
Finds neighbors by cosine similarity in a rank-2 projection of the rating
matrix, then predicts with the regular neighborhood aggregation
"""
from typing import Callable, List, Optional, Tuple

import numpy as np
import structlog
from scipy import linalg
from sklearn.metrics.pairwise import cosine_similarity

from ..config import EngineConfig
from ..exceptions import ConfigurationError, ModelNotTrainedError
from ..models.catalog import Item, RatingCatalog, User
from ..models.recommendation import Neighbor, ScoredItem, SimilarityMatrix
from .aggregation import (
    item_based_rating, item_based_recommendations,
    user_based_rating, user_based_recommendations
)
from .base import RecommendationEngine
from .similarity import SIMILARITY_PRECISION

logger = structlog.get_logger()

# matrix -> (U, S, V) with matrix ~= U @ S @ V.T and S diagonal, descending
Decomposer = Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray, np.ndarray]]


def scipy_decompose(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Thin SVD from scipy, returned as (U, diag(s), V)"""
    u, s, vt = linalg.svd(matrix, full_matrices=False)
    return u, np.diag(s), vt.T


class SVDNeighborhoodEngine(RecommendationEngine):
    """
    Neighborhood model over a reduced SVD basis

    Rows of the rating matrix are entities of the engine's kind, columns are
    the counterpart entities; a missing rating is 0.
    """

    entity_kind = "entity"

    def __init__(self, config: Optional[EngineConfig] = None, decompose: Optional[Decomposer] = None):
        super().__init__(config)
        self.decompose = decompose or scipy_decompose
        self.row_ids: List[int] = []
        self.column_ids: List[int] = []
        self.rating_matrix: Optional[np.ndarray] = None
        self.same_basis: Optional[np.ndarray] = None
        self.opposite_basis: Optional[np.ndarray] = None
        self.inverse_singular: Optional[np.ndarray] = None
        self._row_index = {}

    @property
    def similarity_matrix(self) -> Optional[SimilarityMatrix]:
        return self.store.model

    def set_data(self, catalog: RatingCatalog):
        super().set_data(catalog)
        self.rating_matrix = self.same_basis = self.opposite_basis = self.inverse_singular = None

    def _axes(self) -> Tuple[List[int], List[int]]:
        """(row ids, column ids) of the rating matrix"""
        raise NotImplementedError

    def _cell(self, user_id: int, item_id: int) -> Tuple[int, int]:
        """(row id, column id) holding a user's rating of an item"""
        raise NotImplementedError

    def build_rating_matrix(self) -> np.ndarray:
        self.row_ids, self.column_ids = self._axes()
        self._row_index = {entity_id: index for index, entity_id in enumerate(self.row_ids)}
        column_index = {entity_id: index for index, entity_id in enumerate(self.column_ids)}

        matrix = np.zeros((len(self.row_ids), len(self.column_ids)), dtype=np.float64)
        for user, rating in self.catalog.iter_ratings():
            row_id, column_id = self._cell(user.id, rating.item_id)
            matrix[self._row_index[row_id], column_index[column_id]] = rating.value
        return matrix

    def recompute_model(self) -> SimilarityMatrix:
        dimensions = self.config.svd_dimensions
        self.rating_matrix = self.build_rating_matrix()
        n_rows, n_columns = self.rating_matrix.shape
        if n_rows < dimensions or n_columns < dimensions:
            raise ConfigurationError(
                f"SVD neighborhood model needs at least {dimensions} users and {dimensions} items, "
                f"got a {n_rows}x{n_columns} rating matrix"
            )

        logger.info(f"Decomposing {self.entity_kind} rating matrix",
                    shape=self.rating_matrix.shape, dimensions=dimensions)

        u, s, v = self.decompose(self.rating_matrix)
        s = np.asarray(s, dtype=np.float64)
        if s.ndim == 1:
            s = np.diag(s)

        # Dimensionality reduction: keep the leading columns as coordinates
        self.same_basis = np.asarray(u, dtype=np.float64)[:, :dimensions]
        self.opposite_basis = np.asarray(v, dtype=np.float64)[:, :dimensions]
        with np.errstate(divide='ignore'):
            self.inverse_singular = np.diag(1.0 / np.diag(s[:dimensions, :dimensions]))

        matrix: SimilarityMatrix = {}
        for entity_id in self.row_ids:
            matrix[entity_id] = self.find_similar(entity_id, self.config.similar_objects_count)
        return matrix

    def find_similar(self, entity_id: int, top: Optional[int] = None) -> List[Neighbor]:
        """
        Similar entities by cosine similarity in the reduced space

        The entity's raw rating vector is projected as raw @ V2 @ inv(S2) and
        compared with every row of the same-kind basis U2.

        Args:
            entity_id: Entity to find neighbors for
            top: Maximum number of neighbors, all when None

        Returns:
            Neighbors with similarity >= svd_min_similarity, excluding the entity itself
        """
        if self.same_basis is None:
            raise ModelNotTrainedError("SVD basis is not computed, call precompute first")

        row = self._row_index.get(entity_id)
        if row is None:
            return []

        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            embedded = self.rating_matrix[row] @ self.opposite_basis @ self.inverse_singular
        if not np.all(np.isfinite(embedded)):
            # zero singular value: every cosine is undefined and counts as 0
            return []

        # zero vectors get similarity 0
        similarities = cosine_similarity(embedded.reshape(1, -1), self.same_basis)[0]

        neighbors = []
        for index, similarity in enumerate(similarities):
            if index == row or similarity < self.config.svd_min_similarity:
                continue
            neighbors.append((self.row_ids[index], float(similarity)))

        neighbors.sort(key=lambda pair: (-pair[1], pair[0]))
        if top is not None:
            neighbors = neighbors[:top]
        return [Neighbor(neighbor_id, round(similarity, SIMILARITY_PRECISION))
                for neighbor_id, similarity in neighbors]


class SVDItemBasedCollaborativeFiltering(SVDNeighborhoodEngine):
    """Item-based CF with neighbors found in the SVD item space"""

    entity_kind = "item"

    def _axes(self) -> Tuple[List[int], List[int]]:
        return sorted(self.catalog.items), sorted(self.catalog.users)

    def _cell(self, user_id: int, item_id: int) -> Tuple[int, int]:
        return item_id, user_id

    def rating_for(self, user: User, item: Item) -> Optional[float]:
        if self.similarity_matrix is None:
            return None
        return item_based_rating(self.similarity_matrix, user, item.id)

    def recommendations_for(self, user: User, top_n: Optional[int] = None) -> Optional[List[ScoredItem]]:
        if self.similarity_matrix is None:
            return None
        return item_based_recommendations(self.similarity_matrix, user, self._top_n(top_n))


class SVDUserBasedCollaborativeFiltering(SVDNeighborhoodEngine):
    """User-based CF with neighbors found in the SVD user space"""

    entity_kind = "user"

    def _axes(self) -> Tuple[List[int], List[int]]:
        return sorted(self.catalog.users), sorted(self.catalog.items)

    def _cell(self, user_id: int, item_id: int) -> Tuple[int, int]:
        return user_id, item_id

    def rating_for(self, user: User, item: Item) -> Optional[float]:
        if self.similarity_matrix is None:
            return None
        return user_based_rating(self.similarity_matrix, self.catalog.users, user, item.id)

    def recommendations_for(self, user: User, top_n: Optional[int] = None) -> Optional[List[ScoredItem]]:
        if self.similarity_matrix is None:
            return None
        return user_based_recommendations(self.similarity_matrix, self.catalog.users, user,
                                          self._top_n(top_n))
