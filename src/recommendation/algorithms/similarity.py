"""
Similarity Metrics
Symmetric similarity between two rating vectors over their common support
"""
import math
from typing import List, Mapping

from ..models.catalog import RATING_MAX, RATING_MIN
from ..models.recommendation import SimilarityMethod

SIMILARITY_PRECISION = 5


def common_support(a: Mapping, b: Mapping) -> List:
    """Keys rated in both vectors"""
    if len(b) < len(a):
        return [key for key in b if key in a]
    return [key for key in a if key in b]


def euclidean(a: Mapping, b: Mapping) -> float:
    """
    Euclidean distance based similarity, 1 / (1 + sum of squared differences)

    Returns:
        Similarity in (0, 1], or 0 when the vectors share no key
    """
    common = common_support(a, b)
    if not common:
        return 0.0

    squared_sum = sum((a[key] - b[key]) ** 2 for key in common)
    return round(1 / (1 + squared_sum), SIMILARITY_PRECISION)


def pearson(a: Mapping, b: Mapping) -> float:
    """
    Pearson correlation coefficient over the common support

    Returns:
        Similarity in [-1, 1], or 0 when undefined
    """
    common = common_support(a, b)
    size = len(common)
    if size < 1:
        return 0.0

    a_sum = b_sum = a_sq_sum = b_sq_sum = product_sum = 0.0
    for key in common:
        a_rating = a[key]
        b_rating = b[key]
        a_sum += a_rating
        b_sum += b_rating
        a_sq_sum += a_rating ** 2
        b_sq_sum += b_rating ** 2
        product_sum += a_rating * b_rating

    numerator = product_sum - (a_sum * b_sum) / size
    variance = (a_sq_sum - a_sum ** 2 / size) * (b_sq_sum - b_sum ** 2 / size)
    # float error can leave a tiny negative variance for constant vectors
    if variance <= 0:
        return 0.0

    result = numerator / math.sqrt(variance)
    result = max(-1.0, min(1.0, result))
    return round(result, SIMILARITY_PRECISION)


def jaccard(a: Mapping, b: Mapping) -> float:
    """
    Jaccard index of two users' rated items minus a rating difference penalty

    The penalty is the mean absolute rating difference over the common items
    expressed as a fraction of the rating range. The result is floored at 0.
    """
    common = common_support(a, b)
    size = len(common)
    if size < 1:
        return 0.0

    total_diff = sum(abs(a[key] - b[key]) for key in common)
    diff_penalty = total_diff / (size * (RATING_MAX - RATING_MIN))

    similarity = size / (len(a) + len(b) - size) - diff_penalty
    if similarity <= 0:
        return 0.0
    return round(similarity, SIMILARITY_PRECISION)


_METRICS = {
    SimilarityMethod.EUCLIDEAN: euclidean,
    SimilarityMethod.PEARSON: pearson,
    SimilarityMethod.JACCARD: jaccard,
}


def compute_similarity(method: SimilarityMethod, a: Mapping, b: Mapping) -> float:
    """Dispatch to the metric selected by method"""
    return _METRICS[SimilarityMethod(method)](a, b)
