"""Core blackjack hand calculator - 100% UI-agnostic."""

from core.cards import Card, Rank, Suit, format_card, normalize
from core.deck import shuffle, standard_deck
from core.hand import HandResult, score
from core.parser import parse_deck_description

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "format_card",
    "normalize",
    "shuffle",
    "standard_deck",
    "HandResult",
    "score",
    "parse_deck_description",
]
