"""
Unit tests for engine configuration
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from recommendation.config import EngineConfig, configure_logging
from recommendation.models.recommendation import SimilarityMethod


class TestEngineConfig:
    """Test cases for EngineConfig"""

    def test_defaults(self):
        config = EngineConfig()

        assert config.similarity_method is None
        assert config.min_similarity == 0.00001
        assert config.similar_objects_count is None
        assert config.save_to_file is True
        assert config.n_features == 10
        assert config.svd_min_similarity == 0.9

    def test_similarity_method_coerced(self):
        """String similarity methods become SimilarityMethod values"""
        assert EngineConfig(similarity_method="pearson").similarity_method == SimilarityMethod.PEARSON

    def test_invalid_similarity_method(self):
        with pytest.raises(ValueError):
            EngineConfig(similarity_method="cosine")

    def test_with_overrides(self):
        config = EngineConfig(n_features=4)
        updated = config.with_overrides(file_path="model.txt")

        assert updated.n_features == 4
        assert updated.file_path == "model.txt"
        assert config.file_path is None

    def test_from_env(self, monkeypatch):
        """CF_* environment variables configure the engine"""
        monkeypatch.setenv("CF_SIMILARITY_METHOD", "jaccard")
        monkeypatch.setenv("CF_SIMILAR_OBJECTS_COUNT", "20")
        monkeypatch.setenv("CF_MODEL_FILE", "/tmp/model.txt")
        monkeypatch.setenv("CF_SAVE_MODEL", "false")
        monkeypatch.setenv("CF_FEATURE_COUNT", "5")

        config = EngineConfig.from_env()

        assert config.similarity_method == SimilarityMethod.JACCARD
        assert config.similar_objects_count == 20
        assert config.file_path == "/tmp/model.txt"
        assert config.save_to_file is False
        assert config.n_features == 5

    def test_from_env_overrides(self, monkeypatch):
        """Keyword overrides win over the environment"""
        monkeypatch.setenv("CF_SIMILAR_OBJECTS_COUNT", "20")

        config = EngineConfig.from_env(similar_objects_count=3)
        assert config.similar_objects_count == 3

    def test_configure_logging(self):
        configure_logging("DEBUG")
        configure_logging()
