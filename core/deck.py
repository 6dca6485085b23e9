"""Standard deck construction and shuffling."""

from random import Random
from typing import Sequence

from core.cards import Card, Rank, Suit


def standard_deck() -> tuple[Card, ...]:
    """
    Build an ordered 52-card deck.

    Order is suit-major: A..K of hearts, then diamonds, clubs and spades.
    """
    return tuple(Card(rank, suit) for suit in Suit for rank in Rank)


def shuffle(deck: Sequence[Card], rng: Random | None = None) -> tuple[Card, ...]:
    """
    Return a uniformly shuffled copy of ``deck`` (Fisher-Yates).

    Args:
        deck: Cards to shuffle; not modified
        rng: Random number generator for reproducible shuffles
    """
    rng = rng or Random()
    cards = list(deck)
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return tuple(cards)


def shuffled_standard_deck(rng: Random | None = None) -> tuple[Card, ...]:
    """Build and shuffle a standard deck."""
    return shuffle(standard_deck(), rng)
