"""
Data Loader for Recommendation Engine
Builds a RatingCatalog from rating DataFrames or MovieLens style files

Ratings frames use the columns ['user_id', 'item_id', 'rating']; item frames
use ['item_id', 'name'].
"""

from typing import Optional

import pandas as pd
import structlog

from .models.catalog import RATING_MAX, RATING_MIN, RatingCatalog

logger = structlog.get_logger(__name__)

RATING_COLUMNS = ['user_id', 'item_id', 'rating']


def catalog_from_dataframe(ratings_df: pd.DataFrame,
                           items_df: Optional[pd.DataFrame] = None) -> RatingCatalog:
    """
    Build a catalog from rating triples

    Rows with a zero or missing id or rating are skipped. When items_df is
    given, ratings for items missing from it are skipped too; otherwise every
    rated item is added without a name.

    Args:
        ratings_df: DataFrame with columns ['user_id', 'item_id', 'rating']
        items_df: Optional DataFrame with columns ['item_id', 'name']

    Returns:
        Populated RatingCatalog
    """
    missing = set(RATING_COLUMNS) - set(ratings_df.columns)
    if missing:
        raise ValueError(f"ratings missing required columns: {sorted(missing)}")

    df = ratings_df[RATING_COLUMNS].dropna()
    df = df[(df['user_id'] != 0) & (df['item_id'] != 0) & (df['rating'] != 0)]

    catalog = RatingCatalog()
    if items_df is not None:
        for row in items_df.itertuples(index=False):
            catalog.add_item(int(row.item_id), str(row.name))
    else:
        for item_id in sorted(df['item_id'].astype(int).unique()):
            catalog.add_item(int(item_id))

    skipped = 0
    for row in df.itertuples(index=False):
        item_id = int(row.item_id)
        rating = float(row.rating)
        if item_id not in catalog.items or not RATING_MIN <= rating <= RATING_MAX:
            skipped += 1
            continue
        catalog.add_rating(int(row.user_id), item_id, rating)

    logger.info("Rating catalog built",
                n_users=len(catalog.users),
                n_items=len(catalog.items),
                n_ratings=catalog.rating_count,
                skipped=skipped)
    return catalog


def read_ratings(ratings_path: str, sep: str = "\t") -> pd.DataFrame:
    """Read a MovieLens ratings file (user, item, rating[, timestamp])"""
    df = pd.read_csv(ratings_path, sep=sep, header=None, engine="python")
    df = df.iloc[:, :3]
    df.columns = RATING_COLUMNS
    return df


def read_items(items_path: str, sep: str = "|", encoding: str = "latin-1") -> pd.DataFrame:
    """Read a MovieLens item file (id, title, ...)"""
    df = pd.read_csv(items_path, sep=sep, header=None, usecols=[0, 1],
                     encoding=encoding, engine="python")
    df.columns = ['item_id', 'name']
    return df


def load_movielens(ratings_path: str, items_path: Optional[str] = None,
                   sep: str = "\t", item_sep: str = "|") -> RatingCatalog:
    """
    Load a MovieLens dataset into a catalog

    Args:
        ratings_path: Ratings file, e.g. ml-100k/u.data or ua.base
        items_path: Optional item file, e.g. ml-100k/u.item
        sep: Ratings field separator ("\\t" for 100K, "::" for 1M)
        item_sep: Item file field separator

    Returns:
        Populated RatingCatalog
    """
    logger.info("Loading MovieLens data", ratings_path=ratings_path, items_path=items_path)
    ratings_df = read_ratings(ratings_path, sep=sep)
    items_df = read_items(items_path, sep=item_sep) if items_path else None
    return catalog_from_dataframe(ratings_df, items_df)
