"""
Rating catalog models
Users, items and the ratings each user gave; pure data, no algorithm
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

RATING_MIN = 1.0
RATING_MAX = 5.0


@dataclass(frozen=True)
class Item:
    """Rated item"""
    id: int
    name: str = ""

    def __str__(self):
        return f"{self.id}-{self.name}"


@dataclass(frozen=True)
class Rating:
    """Rating a user gave for a specific item"""
    item_id: int
    value: float


class RatingList:
    """Ratings of a single user keyed by item id"""

    def __init__(self, ratings: Optional[Dict[int, Rating]] = None):
        self.items: Dict[int, Rating] = dict(ratings or {})

    def add(self, rating: Rating):
        """Add or replace the rating for rating.item_id"""
        self.items[rating.item_id] = rating

    def find(self, item_id: int) -> Optional[Rating]:
        return self.items.get(item_id)

    def has_item(self, item_id: int) -> bool:
        return item_id in self.items

    def __contains__(self, item_id) -> bool:
        return item_id in self.items

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Rating]:
        return iter(self.items.values())

    def __repr__(self):
        return f"RatingList({list(self.items.values())!r})"


@dataclass(frozen=True)
class User:
    """User identity plus the list of items the user rated"""
    id: int
    name: str = ""
    ratings: RatingList = field(default_factory=RatingList, compare=False, hash=False)

    def has_item(self, item_id: int) -> bool:
        return self.ratings.has_item(item_id)

    def rating_for(self, item_id: int) -> Optional[float]:
        """Returns the user's rating of the item, or None if the user did not rate it"""
        rating = self.ratings.find(item_id)
        return rating.value if rating is not None else None

    def rating_vector(self) -> Dict[int, float]:
        """Ratings as an item id -> value mapping"""
        return {rating.item_id: rating.value for rating in self.ratings}

    def __str__(self):
        return f"User({self.id}): {self.name}"


class RatingCatalog:
    """Users and items of one dataset, treated as read-only by every engine"""

    def __init__(self, users: Optional[Dict[int, User]] = None,
                 items: Optional[Dict[int, Item]] = None):
        self.users: Dict[int, User] = dict(users or {})
        self.items: Dict[int, Item] = dict(items or {})

    def add_item(self, item_id: int, name: str = "") -> Item:
        item = Item(item_id, name)
        self.items[item_id] = item
        return item

    def add_user(self, user_id: int, name: str = "") -> User:
        user = User(user_id, name or f"U-{user_id}")
        self.users[user_id] = user
        return user

    def add_rating(self, user_id: int, item_id: int, value: float) -> Rating:
        """
        Record a rating, creating the user when unknown

        Args:
            user_id: Rating user
            item_id: Rated item, must already exist in the catalog
            value: Rating value in [1, 5]

        Returns:
            The stored Rating
        """
        if item_id not in self.items:
            raise KeyError(f"Unknown item id: {item_id}")
        if not RATING_MIN <= value <= RATING_MAX:
            raise ValueError(f"Rating {value} outside [{RATING_MIN}, {RATING_MAX}]")
        user = self.users.get(user_id) or self.add_user(user_id)
        rating = Rating(item_id, float(value))
        user.ratings.add(rating)
        return rating

    @property
    def rating_count(self) -> int:
        return sum(len(user.ratings) for user in self.users.values())

    def iter_ratings(self) -> Iterator[Tuple[User, Rating]]:
        """Yields every (user, rating) pair in catalog order"""
        for user in self.users.values():
            for rating in user.ratings:
                yield user, rating

    def item_vectors(self) -> Dict[int, Dict[int, float]]:
        """Ratings per item as item id -> (user id -> value)"""
        vectors: Dict[int, Dict[int, float]] = {item_id: {} for item_id in self.items}
        for user, rating in self.iter_ratings():
            vectors.setdefault(rating.item_id, {})[user.id] = rating.value
        return vectors

    def __repr__(self):
        return (f"RatingCatalog(users={len(self.users)}, items={len(self.items)}, "
                f"ratings={self.rating_count})")
