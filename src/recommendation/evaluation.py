"""
Engine evaluation
Hold-out split and rating prediction error metrics
"""
from datetime import datetime
from typing import Dict, Tuple

import numpy as np
import pandas as pd
import structlog
from sklearn.metrics import mean_absolute_error, mean_squared_error
from sklearn.model_selection import train_test_split

from .algorithms.base import RecommendationEngine
from .models.catalog import RatingCatalog

logger = structlog.get_logger()


def split_ratings(ratings_df: pd.DataFrame, test_size: float = 0.2,
                  random_state: int = 42) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Split rating triples into train and test frames"""
    train_df, test_df = train_test_split(ratings_df, test_size=test_size, random_state=random_state)
    return train_df.reset_index(drop=True), test_df.reset_index(drop=True)


def evaluate(engine: RecommendationEngine, catalog: RatingCatalog,
             test_df: pd.DataFrame) -> Dict[str, float]:
    """
    Evaluate rating predictions on held-out ratings

    Test rows whose user or item is unknown to the catalog, or for which the
    engine has no estimate, are skipped and lower the coverage.

    Args:
        engine: Precomputed engine
        catalog: Catalog the engine was trained on
        test_df: DataFrame with columns ['user_id', 'item_id', 'rating']

    Returns:
        Evaluation metrics
    """
    start_time = datetime.now()
    predictions = []
    actuals = []

    for row in test_df.itertuples(index=False):
        user = catalog.users.get(int(row.user_id))
        item = catalog.items.get(int(row.item_id))
        if user is None or item is None:
            continue

        prediction = engine.predict_rating(user, item)
        if prediction is None:
            continue

        predictions.append(prediction)
        actuals.append(float(row.rating))

    if not predictions:
        logger.warning("No predictions generated", n_test=len(test_df))
        return {"rmse": float('nan'), "mae": float('nan'), "n_predictions": 0, "coverage": 0.0}

    metrics = {
        "rmse": float(np.sqrt(mean_squared_error(actuals, predictions))),
        "mae": float(mean_absolute_error(actuals, predictions)),
        "n_predictions": len(predictions),
        "coverage": len(predictions) / len(test_df) * 100,
    }
    logger.info("Evaluation completed",
                duration_seconds=(datetime.now() - start_time).total_seconds(),
                **metrics)
    return metrics
