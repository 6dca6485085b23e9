"""Table records and the table collection."""

from dataclasses import dataclass, field
from random import Random

from core.cards import Card
from core.deck import shuffled_standard_deck
from core.hand import HandResult


@dataclass(frozen=True)
class Table:
    """
    Immutable snapshot of one blackjack table.

    The player draws from ``deck`` into ``drawn_cards``; the dealer draws
    from ``dealer_deck`` into ``dealer_hand``. ``result`` and ``dealer`` are
    the scores of those hands as of the last transition.
    """

    id: str
    name: str
    deck: tuple[Card, ...] = ()
    drawn_cards: tuple[Card, ...] = ()
    dealer_deck: tuple[Card, ...] = ()
    dealer_hand: tuple[Card, ...] = ()
    input: str = ""
    result: HandResult | None = None
    dealer: HandResult | None = None
    is_loading: bool = False
    load_error: str | None = field(default=None)

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards left in the player deck."""
        return len(self.deck)

    @property
    def dealer_cards_remaining(self) -> int:
        """Return the number of cards left in the dealer deck."""
        return len(self.dealer_deck)


# Ordered, id-unique sequence of tables
Tables = tuple[Table, ...]


def create_table(
    table_id: str,
    name: str,
    with_player_deck: bool = False,
    rng: Random | None = None,
) -> Table:
    """
    Create a table with empty hands and a shuffled dealer deck.

    Args:
        table_id: Unique, stable id for the table
        name: Display name
        with_player_deck: Also give the player a shuffled standard deck
        rng: Random number generator for reproducible shuffles
    """
    rng = rng or Random()
    return Table(
        id=table_id,
        name=name,
        deck=shuffled_standard_deck(rng) if with_player_deck else (),
        dealer_deck=shuffled_standard_deck(rng),
    )
