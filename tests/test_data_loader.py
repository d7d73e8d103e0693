"""
Unit tests for data loading, evaluation and the benchmark CLI
"""

import math

import pandas as pd
import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from recommendation import cli
from recommendation.algorithms.collaborative_filtering import ItemBasedCollaborativeFiltering
from recommendation.algorithms.factory import get_engine
from recommendation.cli import main
from recommendation.data_loader import catalog_from_dataframe, load_movielens, read_ratings
from recommendation.evaluation import evaluate, split_ratings


SAMPLE_RATINGS = [
    (1, 1, 5), (1, 2, 4), (1, 3, 3),
    (2, 1, 4), (2, 2, 5), (2, 4, 2),
    (3, 1, 5), (3, 3, 4), (3, 4, 3),
    (4, 2, 3), (4, 4, 4),
]


def ratings_frame(rows=SAMPLE_RATINGS):
    return pd.DataFrame(rows, columns=['user_id', 'item_id', 'rating'])


def write_ratings_file(path, rows=SAMPLE_RATINGS):
    path.write_text("".join(f"{u}\t{i}\t{r}\t881250949\n" for u, i, r in rows))
    return str(path)


class TestCatalogFromDataFrame:
    """Test cases for catalog_from_dataframe"""

    def test_builds_catalog(self):
        catalog = catalog_from_dataframe(ratings_frame())

        assert len(catalog.users) == 4
        assert sorted(catalog.items) == [1, 2, 3, 4]
        assert catalog.rating_count == 11
        assert catalog.users[2].rating_for(4) == 2.0

    def test_skips_invalid_rows(self):
        """Zero, missing and out of range values are skipped"""
        df = ratings_frame(SAMPLE_RATINGS + [(5, 1, 0), (0, 1, 3), (5, 2, 7)])
        df.loc[len(df)] = [6, 3, float('nan')]

        catalog = catalog_from_dataframe(df)
        assert catalog.rating_count == 11
        assert 5 not in catalog.users
        assert 6 not in catalog.users

    def test_items_frame(self):
        """Ratings for items outside the item frame are skipped"""
        items_df = pd.DataFrame({'item_id': [1, 2, 3], 'name': ['Alpha', 'Beta', 'Gamma']})
        catalog = catalog_from_dataframe(ratings_frame(), items_df)

        assert catalog.items[1].name == 'Alpha'
        assert 4 not in catalog.items
        assert catalog.rating_count == 8

    def test_missing_columns(self):
        with pytest.raises(ValueError):
            catalog_from_dataframe(pd.DataFrame({'user_id': [1], 'rating': [3]}))


class TestMovieLensFiles:
    """Test cases for reading MovieLens files"""

    def test_read_ratings(self, tmp_path):
        df = read_ratings(write_ratings_file(tmp_path / "u.data"))

        assert list(df.columns) == ['user_id', 'item_id', 'rating']
        assert len(df) == 11

    def test_load_movielens(self, tmp_path):
        ratings_path = write_ratings_file(tmp_path / "u.data")
        items_path = tmp_path / "u.item"
        items_path.write_text(
            "1|Toy Story (1995)|01-Jan-1995\n"
            "2|GoldenEye (1995)|01-Jan-1995\n"
            "3|Four Rooms (1995)|01-Jan-1995\n"
            "4|Get Shorty (1995)|01-Jan-1995\n",
            encoding="latin-1",
        )

        catalog = load_movielens(ratings_path, str(items_path))
        assert catalog.items[1].name == "Toy Story (1995)"
        assert catalog.rating_count == 11


class TestEvaluation:
    """Test cases for evaluate and split_ratings"""

    def setup_method(self):
        self.catalog = catalog_from_dataframe(ratings_frame())
        self.engine = ItemBasedCollaborativeFiltering()
        self.engine.set_data(self.catalog)
        self.engine.precompute()

    def test_split_ratings(self):
        train_df, test_df = split_ratings(ratings_frame(), test_size=0.25, random_state=1)

        assert len(train_df) + len(test_df) == 11
        assert len(test_df) == 3

    def test_evaluate(self):
        """Unknown users are skipped and lower the coverage"""
        test_df = ratings_frame([(1, 4, 4), (4, 1, 3), (99, 1, 5)])
        metrics = evaluate(self.engine, self.catalog, test_df)

        assert metrics['n_predictions'] == 2
        assert metrics['coverage'] == pytest.approx(200 / 3)
        expected_rmse = math.sqrt(((4 - 3.44604) ** 2 + (3 - 3.25) ** 2) / 2)
        assert metrics['rmse'] == pytest.approx(expected_rmse, abs=1e-3)
        assert metrics['mae'] > 0

    def test_evaluate_without_predictions(self):
        metrics = evaluate(self.engine, self.catalog, ratings_frame([(99, 1, 5)]))

        assert metrics['n_predictions'] == 0
        assert metrics['coverage'] == 0.0
        assert math.isnan(metrics['rmse'])


class TestCli:
    """Test cases for the benchmark command"""

    def test_benchmark(self, tmp_path, capsys):
        train_path = write_ratings_file(tmp_path / "ua.base")
        test_path = write_ratings_file(tmp_path / "ua.test", [(1, 4, 4), (4, 1, 3)])
        model_path = str(tmp_path / "items.txt")

        exit_code = main(['--method-type', 'memory_based', '--algorithm', 'item_based',
                          '--ratings', train_path, '--test-ratings', test_path,
                          '--model-file', model_path, '--log-level', 'WARNING'])

        assert exit_code == 0
        assert os.path.exists(model_path)
        assert "RMSE" in capsys.readouterr().out

    def test_environment_configuration(self, tmp_path, monkeypatch):
        """CF_* variables apply when the matching flags are not given"""
        train_path = write_ratings_file(tmp_path / "ua.base")
        model_path = str(tmp_path / "env_items.txt")
        monkeypatch.setenv("CF_SIMILAR_OBJECTS_COUNT", "1")
        monkeypatch.setenv("CF_MODEL_FILE", model_path)

        configs = []

        def recording_get_engine(method_type, algorithm, config=None, **kwargs):
            configs.append(config)
            return get_engine(method_type, algorithm, config, **kwargs)

        monkeypatch.setattr(cli, "get_engine", recording_get_engine)

        exit_code = main(['--method-type', 'memory_based', '--algorithm', 'item_based',
                          '--ratings', train_path, '--log-level', 'WARNING'])

        assert exit_code == 0
        assert configs[0].similar_objects_count == 1
        assert configs[0].file_path == model_path
        assert os.path.exists(model_path)

    def test_flags_override_environment(self, tmp_path, monkeypatch):
        """Command line flags win over CF_* variables"""
        train_path = write_ratings_file(tmp_path / "ua.base")
        monkeypatch.setenv("CF_SIMILAR_OBJECTS_COUNT", "1")

        configs = []

        def recording_get_engine(method_type, algorithm, config=None, **kwargs):
            configs.append(config)
            return get_engine(method_type, algorithm, config, **kwargs)

        monkeypatch.setattr(cli, "get_engine", recording_get_engine)

        main(['--method-type', 'memory_based', '--algorithm', 'item_based',
              '--ratings', train_path, '--top-k', '3', '--log-level', 'WARNING'])

        assert configs[0].similar_objects_count == 3

    def test_unsupported_combination(self, tmp_path):
        train_path = write_ratings_file(tmp_path / "ua.base")

        exit_code = main(['--method-type', 'memory_based', '--algorithm', 'svd_incremental',
                          '--ratings', train_path, '--log-level', 'WARNING'])
        assert exit_code == 2
