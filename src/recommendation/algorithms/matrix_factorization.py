"""
Incremental Matrix Factorization
Learns latent user and item features one at a time with regularized gradient
descent over every known rating
"""
import math
from typing import Dict, List, Optional, Tuple

import structlog

from ..config import EngineConfig
from ..exceptions import ModelNotTrainedError
from ..models.catalog import Item, User
from ..models.recommendation import LatentFactors, ScoredItem
from ..services.model_storage import JoblibCodec
from .aggregation import clamp_rating
from .base import RecommendationEngine

logger = structlog.get_logger()


class IncrementalMatrixFactorization(RecommendationEngine):
    """
    Latent factor model trained feature by feature

    Each feature runs epochs over all (user, item, rating) triples until the
    RMSE stops improving. The estimate used while training a feature starts
    from the cached estimate of the already trained features and adds a
    trailing term for the features that are still at their seed value.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        super().__init__(config, codec=JoblibCodec())
        # feature index -> RMSE after each epoch
        self.training_history: Dict[int, List[float]] = {}

    @property
    def factors(self) -> Optional[LatentFactors]:
        return self.store.model

    @property
    def is_trained(self) -> bool:
        return self.store.is_ready

    def set_data(self, catalog):
        super().set_data(catalog)
        self.training_history = {}

    def recompute_model(self) -> LatentFactors:
        config = self.config
        factors = LatentFactors.seeded(
            config.n_features,
            self.catalog.users.keys(),
            self.catalog.items.keys(),
            config.feature_init_value,
        )
        triples = [(user.id, rating.item_id, rating.value)
                   for user, rating in self.catalog.iter_ratings()]

        logger.info("Training latent features",
                    n_features=config.n_features,
                    n_ratings=len(triples),
                    learning_rate=config.learning_rate,
                    regularization=config.regularization)

        self._train(factors, triples)
        return factors

    def _train(self, factors: LatentFactors, triples: List[Tuple[int, int, float]]):
        config = self.config
        learning_rate = config.learning_rate
        k_value = config.regularization
        ratings_cache: Dict[Tuple[int, int], float] = {}
        self.training_history = {}

        last_rmse = rmse = 2.0
        for feature in range(1, config.n_features + 1):
            user_features = factors.user_features[feature]
            item_features = factors.item_features[feature]
            trailing = (config.n_features - feature - 1) * (config.feature_init_value ** 2)
            history = []

            epoch = 0
            while epoch < config.min_epochs or rmse <= last_rmse - config.min_improvement:
                last_rmse = rmse
                squared_error = 0.0

                for user_id, item_id, value in triples:
                    user_value = user_features[user_id]
                    item_value = item_features[item_id]
                    estimate = self._estimate(ratings_cache.get((user_id, item_id), 0.0),
                                              user_value * item_value, trailing)
                    error = value - estimate
                    squared_error += error ** 2

                    user_features[user_id] += learning_rate * (error * item_value - k_value * user_value)
                    item_features[item_id] += learning_rate * (error * user_value - k_value * item_value)

                epoch += 1
                rmse = math.sqrt(squared_error / len(triples)) if triples else 0.0
                history.append(rmse)
                if epoch > config.max_epochs:
                    break

            self.training_history[feature] = history
            logger.info("Feature trained", feature=feature, epochs=epoch, rmse=rmse)

            for user_id, item_id, _ in triples:
                key = (user_id, item_id)
                ratings_cache[key] = self._estimate(
                    ratings_cache.get(key, 0.0),
                    user_features[user_id] * item_features[item_id],
                )

    @staticmethod
    def _estimate(cached: float, product: float, trailing: float = 0.0) -> float:
        rating = cached if cached != 0 else 1.0
        rating += product
        rating += trailing
        return clamp_rating(rating)

    def _require_trained(self):
        if not self.is_trained:
            raise ModelNotTrainedError("Latent factors are not trained, call precompute first")

    def rating_for(self, user: User, item: Item) -> Optional[float]:
        """
        Predict rating as 1 + sum of feature products

        The running sum is clamped to the rating range after every feature.
        """
        self._require_trained()
        factors = self.factors
        if not factors.has_user(user.id) or not factors.has_item(item.id):
            return None

        rating = 1.0
        for feature in range(1, factors.n_features + 1):
            rating += factors.item_features[feature][item.id] * factors.user_features[feature][user.id]
            rating = clamp_rating(rating)
        return rating

    def recommendations_for(self, user: User, top_n: Optional[int] = None) -> List[ScoredItem]:
        """
        Rank every item the user has not rated by its predicted rating

        Args:
            user: Active user
            top_n: Number of recommendations, config default when None

        Returns:
            List of ScoredItem sorted by estimate, ties by item id
        """
        self._require_trained()

        recommendations = []
        for item_id in sorted(self.catalog.items):
            if user.has_item(item_id):
                continue
            estimate = self.rating_for(user, self.catalog.items[item_id])
            if estimate is not None:
                recommendations.append(ScoredItem(item_id, estimate))

        recommendations.sort(key=lambda rec: (-rec.estimate, rec.item_id))
        top_n = self._top_n(top_n)
        return recommendations[:top_n] if top_n is not None else recommendations
