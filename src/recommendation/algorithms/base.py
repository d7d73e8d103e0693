"""
Base class for collaborative filtering engines
Defines the uniform engine contract used by every host
"""
from typing import Any, List, Optional

from ..config import EngineConfig
from ..exceptions import ConfigurationError
from ..models.catalog import Item, RatingCatalog, User
from ..models.recommendation import ScoredItem
from ..services.model_storage import PersistentModel


class RecommendationEngine:
    """
    Uniform contract: set_data, precompute, predict_rating, recommendations_for

    Subclasses implement recompute_model() and rating_for(); the model
    lifecycle is delegated to a PersistentModel held by composition.
    """

    def __init__(self, config: Optional[EngineConfig] = None, codec=None):
        self.config = config or EngineConfig()
        self.catalog: Optional[RatingCatalog] = None
        self.store = PersistentModel(
            self,
            codec=codec,
            file_path=self.config.file_path,
            save_to_file=self.config.save_to_file,
        )

    @property
    def model(self) -> Any:
        return self.store.model

    def set_data(self, catalog: RatingCatalog):
        """Attach the rating catalog; any previously computed model is dropped"""
        self.catalog = catalog
        self.store.reset()

    def precompute(self, force_recompute: bool = True):
        """
        Compute the model from the catalog or load it from the model file

        Args:
            force_recompute: Recompute (and save) if True, load from file otherwise
        """
        if self.catalog is None:
            raise ConfigurationError(f"{type(self).__name__}: set_data must be called before precompute")
        self.store.precompute(force_recompute)

    def predict_rating(self, user: User, item: Item) -> Optional[float]:
        """
        Predict the user's rating for the item

        Returns:
            The user's own rating when the item is already rated, otherwise the
            engine's estimate, or None when no estimate is available
        """
        return self.store.predict_rating(user, item)

    def recompute_model(self) -> Any:
        """Override in subclasses"""
        raise NotImplementedError

    def rating_for(self, user: User, item: Item) -> Optional[float]:
        """Override in subclasses"""
        raise NotImplementedError

    def recommendations_for(self, user: User, top_n: Optional[int] = None) -> Optional[List[ScoredItem]]:
        """Override in subclasses"""
        raise NotImplementedError

    def _top_n(self, top_n: Optional[int]) -> Optional[int]:
        return top_n if top_n is not None else self.config.recommendation_count
