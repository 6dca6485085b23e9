"""Hand evaluation for blackjack."""

from dataclasses import dataclass
from typing import Iterable

from core.cards import Card


@dataclass(frozen=True, slots=True)
class HandResult:
    """Total and bust status of a scored hand."""

    total: int
    bust: bool

    def __str__(self) -> str:
        if self.bust:
            return f"{self.total} (BUST)"
        return str(self.total)


def score(hand: Iterable[Card]) -> HandResult:
    """
    Score a blackjack hand.

    Non-ace cards are summed first. Aces are then resolved one at a time in
    draw order: each counts 11 unless that would push the running total past
    21, in which case it counts 1. This greedy resolution is not a search
    for the best total, so ``10, A, A`` scores 22 (bust) rather than 12.

    The total is never clamped; ``bust`` is set when it exceeds 21.
    """
    total = 0
    aces = 0

    for card in hand:
        if card.is_ace:
            aces += 1
        else:
            total += card.value

    for _ in range(aces):
        if total + 11 > 21:
            total += 1
        else:
            total += 11

    return HandResult(total=total, bust=total > 21)
