"""
Unit tests for incremental matrix factorization
Tests training, prediction, recommendations and persistence
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from recommendation.algorithms.matrix_factorization import IncrementalMatrixFactorization
from recommendation.config import EngineConfig
from recommendation.exceptions import MalformedModelFileError, ModelNotTrainedError
from recommendation.models.catalog import RatingCatalog
from recommendation.models.recommendation import LatentFactors


def build_catalog(ratings):
    catalog = RatingCatalog()
    for item_id in sorted({item_id for _, item_id, _ in ratings}):
        catalog.add_item(item_id)
    for user_id, item_id, value in ratings:
        catalog.add_rating(user_id, item_id, value)
    return catalog


class TestMinimalDataset:
    """One user rating one item"""

    def setup_method(self):
        self.catalog = build_catalog([(1, 1, 5)])
        self.engine = IncrementalMatrixFactorization()
        self.engine.set_data(self.catalog)

    def test_untrained_prediction_raises(self):
        """Estimates require a trained model"""
        self.catalog.add_item(2)
        with pytest.raises(ModelNotTrainedError):
            self.engine.predict_rating(self.catalog.users[1], self.catalog.items[2])
        with pytest.raises(ModelNotTrainedError):
            self.engine.recommendations_for(self.catalog.users[1])

    def test_untrained_existing_rating(self):
        """Existing ratings are returned even before training"""
        assert self.engine.predict_rating(self.catalog.users[1], self.catalog.items[1]) == 5.0

    def test_training(self):
        """Training produces an estimate in the rating range"""
        self.engine.precompute()

        assert self.engine.is_trained
        estimate = self.engine.rating_for(self.catalog.users[1], self.catalog.items[1])
        assert 1.0 <= estimate <= 5.0

    def test_rmse_non_increasing_per_feature(self):
        """RMSE never grows within the training of one feature"""
        self.engine.precompute()

        history = self.engine.training_history
        assert sorted(history) == list(range(1, 11))
        for rmses in history.values():
            assert all(later <= earlier + 1e-12 for earlier, later in zip(rmses, rmses[1:]))

    def test_epoch_bounds(self):
        """Each feature trains between min_epochs and max_epochs + 1 epochs"""
        self.engine.precompute()

        for rmses in self.engine.training_history.values():
            assert 50 <= len(rmses) <= 101


class TestIncrementalMatrixFactorization:
    """Test cases on a small rating set"""

    def setup_method(self):
        self.catalog = build_catalog([
            (1, 1, 5), (1, 2, 4), (1, 3, 3),
            (2, 1, 4), (2, 2, 5), (2, 4, 2),
            (3, 1, 5), (3, 3, 4), (3, 4, 3),
            (4, 2, 3), (4, 4, 4),
        ])
        self.config = EngineConfig(n_features=3, min_epochs=10, max_epochs=20)
        self.engine = IncrementalMatrixFactorization(self.config)
        self.engine.set_data(self.catalog)
        self.engine.precompute()

    def test_factors_cover_catalog(self):
        """Every user and item gets a value for every feature"""
        factors = self.engine.factors

        assert factors.n_features == 3
        for feature in range(1, 4):
            assert set(factors.user_features[feature]) == {1, 2, 3, 4}
            assert set(factors.item_features[feature]) == {1, 2, 3, 4}

    def test_recommendations(self):
        """Unrated items ranked by estimate"""
        user = self.catalog.users[1]
        recommendations = self.engine.recommendations_for(user)

        assert [rec.item_id for rec in recommendations] == [4]
        assert recommendations[0].estimate == self.engine.predict_rating(user, self.catalog.items[4])

    def test_recommendations_for_new_user(self):
        """A user added after training gets no recommendations"""
        user = self.catalog.add_user(9)
        assert self.engine.recommendations_for(user) == []

    def test_unknown_user(self):
        """Entities without factors have no estimate"""
        user = self.catalog.add_user(9)
        assert self.engine.predict_rating(user, self.catalog.items[1]) is None

    def test_top_n(self):
        """top_n limits the recommendations"""
        user = self.catalog.users[4]
        assert len(self.engine.recommendations_for(user)) == 2
        assert len(self.engine.recommendations_for(user, top_n=1)) == 1

    def test_persistence(self, tmp_path):
        """Trained factors load back into a new engine"""
        file_path = str(tmp_path / "factors.joblib")
        config = self.config.with_overrides(file_path=file_path)

        trained = IncrementalMatrixFactorization(config)
        trained.set_data(self.catalog)
        trained.precompute(True)

        loaded = IncrementalMatrixFactorization(config)
        loaded.set_data(self.catalog)
        loaded.precompute(False)

        user = self.catalog.users[2]
        item = self.catalog.items[3]
        assert loaded.factors == trained.factors
        assert loaded.predict_rating(user, item) == trained.predict_rating(user, item)

    def test_corrupt_model_file(self, tmp_path):
        """Loading a corrupt factor file raises a parse error"""
        file_path = tmp_path / "factors.joblib"
        file_path.write_bytes(b"garbage not a pickle")

        engine = IncrementalMatrixFactorization(self.config.with_overrides(file_path=str(file_path)))
        engine.set_data(self.catalog)
        with pytest.raises(MalformedModelFileError):
            engine.precompute(force_recompute=False)
        assert not engine.is_trained


class TestPrediction:
    """Prediction from fixed latent factors"""

    def test_running_sum_clamped_per_feature(self):
        """The running estimate is clamped after every feature"""
        catalog = build_catalog([(1, 1, 5)])
        catalog.add_item(2)
        engine = IncrementalMatrixFactorization(EngineConfig(n_features=2))
        engine.set_data(catalog)
        engine.store.model = LatentFactors(
            n_features=2,
            user_features={1: {1: 2.0}, 2: {1: 1.0}},
            item_features={1: {1: 1.0, 2: 3.0}, 2: {1: 1.0, 2: -1.0}},
        )

        # 1 + 6 clamps to 5, then 5 - 1
        assert engine.predict_rating(catalog.users[1], catalog.items[2]) == 4.0
