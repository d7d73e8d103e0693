"""
Neighborhood aggregation
Weighted rating estimates over a similarity matrix, shared by the memory
based and SVD based engines
"""
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from ..models.catalog import RATING_MAX, RATING_MIN, User
from ..models.recommendation import Neighbor, ScoredItem, SimilarityMatrix


def clamp_rating(value: float) -> float:
    return max(RATING_MIN, min(RATING_MAX, value))


def estimate_from_neighbors(neighbors: Iterable[Neighbor],
                            rating_lookup: Callable[[int], Optional[float]]) -> Optional[float]:
    """
    Similarity weighted mean of the known neighbor ratings

    Args:
        neighbors: Neighbors to aggregate over
        rating_lookup: Returns the rating associated with a neighbor id, or None

    Returns:
        Estimate clamped to the rating range, None if either sum is zero
    """
    weighted_sum = similarity_sum = 0.0
    for neighbor in neighbors:
        rating = rating_lookup(neighbor.id)
        if rating is None:
            continue
        weight = abs(neighbor.similarity)
        weighted_sum += rating * weight
        similarity_sum += weight

    if weighted_sum == 0 or similarity_sum == 0:
        return None
    return clamp_rating(weighted_sum / similarity_sum)


def item_based_rating(matrix: SimilarityMatrix, user: User, item_id: int) -> Optional[float]:
    """Estimate from the user's ratings of the item's neighbors"""
    neighbors = matrix.get(item_id)
    if not neighbors:
        return None
    return estimate_from_neighbors(neighbors, user.rating_for)


def user_based_rating(matrix: SimilarityMatrix, users: Mapping[int, User],
                      user: User, item_id: int) -> Optional[float]:
    """Estimate from the ratings the user's neighbors gave the item"""
    neighbors = matrix.get(user.id)
    if not neighbors:
        return None

    def _neighbor_rating(neighbor_id: int) -> Optional[float]:
        neighbor = users.get(neighbor_id)
        return neighbor.rating_for(item_id) if neighbor is not None else None

    return estimate_from_neighbors(neighbors, _neighbor_rating)


def item_based_recommendations(matrix: SimilarityMatrix, user: User,
                               top_n: Optional[int] = None) -> List[ScoredItem]:
    """Rank unrated neighbors of every item the user rated"""
    weighted_sums: Dict[int, float] = defaultdict(float)
    similarity_sums: Dict[int, float] = defaultdict(float)

    for rating in user.ratings:
        for neighbor in matrix.get(rating.item_id) or []:
            if user.has_item(neighbor.id):
                continue
            weight = abs(neighbor.similarity)
            weighted_sums[neighbor.id] += rating.value * weight
            similarity_sums[neighbor.id] += weight

    return rank_candidates(weighted_sums, similarity_sums, top_n)


def user_based_recommendations(matrix: SimilarityMatrix, users: Mapping[int, User],
                               user: User, top_n: Optional[int] = None) -> List[ScoredItem]:
    """Rank the unrated items of the user's most similar users"""
    weighted_sums: Dict[int, float] = defaultdict(float)
    similarity_sums: Dict[int, float] = defaultdict(float)

    for neighbor in matrix.get(user.id) or []:
        other = users.get(neighbor.id)
        if other is None:
            continue
        weight = abs(neighbor.similarity)
        for rating in other.ratings:
            if user.has_item(rating.item_id):
                continue
            weighted_sums[rating.item_id] += rating.value * weight
            similarity_sums[rating.item_id] += weight

    return rank_candidates(weighted_sums, similarity_sums, top_n)


def rank_candidates(weighted_sums: Mapping[int, float], similarity_sums: Mapping[int, float],
                    top_n: Optional[int] = None) -> List[ScoredItem]:
    """Sort candidates by estimate descending; equal estimates keep item id order"""
    recommendations = []
    for item_id in sorted(weighted_sums):
        weighted_sum = weighted_sums[item_id]
        similarity_sum = similarity_sums.get(item_id, 0.0)
        if weighted_sum == 0 or similarity_sum == 0:
            continue
        recommendations.append(ScoredItem(item_id, clamp_rating(weighted_sum / similarity_sum)))

    recommendations.sort(key=lambda rec: (-rec.estimate, rec.item_id))
    return recommendations[:top_n] if top_n is not None else recommendations
