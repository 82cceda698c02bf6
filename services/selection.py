import random
from typing import Callable, List, Sequence

from models.entities import User


MAX_REVIEWERS = 2

# Picks one element of a non-empty sequence; tests swap in a deterministic one
Selector = Callable[[Sequence[User]], User]


def random_selector(candidates: Sequence[User]) -> User:
    return random.choice(candidates)


def choose_reviewers(candidates: List[User], limit: int = MAX_REVIEWERS) -> List[User]:
    """First ``limit`` candidates of the list, which the store orders by user_id"""
    return candidates[:limit]


def pick_replacement(candidates: Sequence[User], selector: Selector) -> User:
    if len(candidates) == 1:
        return candidates[0]
    return selector(candidates)
