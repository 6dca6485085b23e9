"""Card representation and the card token codec."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from core.errors import MalformedCardError


class Suit(Enum):
    """Card suits, in standard deck order."""

    HEARTS = "H"
    DIAMONDS = "D"
    CLUBS = "C"
    SPADES = "S"

    def __str__(self) -> str:
        return self.value

    @property
    def glyph(self) -> str:
        """Return the display symbol for this suit."""
        return SUIT_GLYPHS[self.value]


class Rank(Enum):
    """Card ranks, in standard deck order."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    def __str__(self) -> str:
        return self.value

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


SUIT_GLYPHS: dict[str, str] = {
    "H": "♥",
    "D": "♦",
    "C": "♣",
    "S": "♠",
}

_RANKS = {rank.value: rank for rank in Rank}
_SUITS = {suit.value: suit for suit in Suit}
_QUOTES = "\"'"


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return self.token

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def token(self) -> str:
        """Return the canonical ``rank,suit`` token."""
        return f"{self.rank.value},{self.suit.value}"

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like 'A,H', 'AH' or '10d'."""
        return normalize(s)


def normalize(token: str) -> Card:
    """
    Parse a card token into a Card.

    Accepts the canonical ``"<rank>,<suit>"`` form and the compact
    ``"<rank><suit>"`` form. Surrounding whitespace and one layer of quotes
    are ignored, and letters are case-insensitive.

    Raises:
        MalformedCardError: If the rank or suit is not recognized.
    """
    cleaned = token.strip()
    if len(cleaned) >= 2 and cleaned[0] in _QUOTES and cleaned[-1] == cleaned[0]:
        cleaned = cleaned[1:-1].strip()
    cleaned = cleaned.upper()

    if "," in cleaned:
        rank_str, _, suit_str = cleaned.partition(",")
        rank_str = rank_str.strip()
        suit_str = suit_str.strip()
    else:
        rank_str, suit_str = cleaned[:-1], cleaned[-1:]

    if not rank_str:
        raise MalformedCardError(token, "missing rank")
    if rank_str not in _RANKS:
        raise MalformedCardError(token, f"unknown rank {rank_str!r}")
    if suit_str not in _SUITS:
        raise MalformedCardError(token, f"unknown suit {suit_str!r}")

    return Card(_RANKS[rank_str], _SUITS[suit_str])


def format_card(card: Card) -> str:
    """Render a card for display, e.g. ``A♥``."""
    return f"{card.rank.value}{card.suit.glyph}"


def format_cards(cards: Iterable[Card]) -> list[str]:
    """Render several cards for display."""
    return [format_card(card) for card in cards]


def parse_hand(text: str) -> tuple[Card, ...]:
    """Parse whitespace-separated card tokens, ignoring empty fragments."""
    return tuple(normalize(token) for token in text.split())


def join_tokens(cards: Iterable[Card]) -> str:
    """Render cards as space-joined canonical tokens."""
    return " ".join(card.token for card in cards)
