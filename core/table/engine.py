"""
Pure state transitions over a collection of tables.

Every transition takes the current collection and returns a new one; tables
are never modified in place. Transitions addressed to an id that is not in
the collection return the collection unchanged.
"""

import logging
from dataclasses import replace
from random import Random
from typing import Callable

from core.cards import join_tokens, parse_hand
from core.deck import shuffle, shuffled_standard_deck, standard_deck
from core.errors import DeckExhaustedError, DeckParseError, DuplicateTableError
from core.hand import score
from core.parser import parse_deck_description
from core.table.state import Table, Tables

logger = logging.getLogger(__name__)

LOAD_ERROR_PREFIX = "Error loading deck: "


def get_table(tables: Tables, table_id: str) -> Table | None:
    """Return the table with ``table_id``, or None."""
    for table in tables:
        if table.id == table_id:
            return table
    return None


def _apply(
    tables: Tables,
    table_id: str,
    transition: Callable[[Table], Table],
) -> Tables:
    """Apply ``transition`` to the matching table, identity elsewhere."""
    if get_table(tables, table_id) is None:
        return tables
    return tuple(
        transition(table) if table.id == table_id else table
        for table in tables
    )


def add_table(tables: Tables, table: Table) -> Tables:
    """Append a table to the collection."""
    if get_table(tables, table.id) is not None:
        raise DuplicateTableError(table.id)
    logger.debug("Added table %s (%s)", table.id, table.name)
    return (*tables, table)


def remove_table(tables: Tables, table_id: str) -> Tables:
    """Remove the table with ``table_id``."""
    if get_table(tables, table_id) is None:
        return tables
    logger.debug("Removed table %s", table_id)
    return tuple(table for table in tables if table.id != table_id)


def update_input(tables: Tables, table_id: str, text: str) -> Tables:
    """Replace the free-text hand input."""
    return _apply(tables, table_id, lambda table: replace(table, input=text))


def begin_load(tables: Tables, table_id: str) -> Tables:
    """Mark a table as loading a deck description."""
    return _apply(
        tables,
        table_id,
        lambda table: replace(table, is_loading=True, load_error=None),
    )


def complete_load(
    tables: Tables,
    table_id: str,
    source_text: str,
    rng: Random | None = None,
) -> Tables:
    """
    Finish a deck load with the acquired description text.

    On success the parsed deck is shuffled into the player deck and the
    player's drawn cards are cleared. On a parse failure the deck is left
    alone and ``load_error`` describes the problem. ``is_loading`` is
    cleared either way.
    """
    if get_table(tables, table_id) is None:
        return tables

    try:
        cards = parse_deck_description(source_text)
    except DeckParseError as e:
        return fail_load(tables, table_id, str(e))

    deck = shuffle(cards, rng)
    logger.info("Loaded %d cards into table %s", len(deck), table_id)
    return _apply(
        tables,
        table_id,
        lambda table: replace(
            table,
            deck=deck,
            drawn_cards=(),
            is_loading=False,
            load_error=None,
        ),
    )


def fail_load(tables: Tables, table_id: str, message: str) -> Tables:
    """Finish a deck load that failed, keeping the current deck."""
    if get_table(tables, table_id) is not None:
        logger.warning("Deck load failed for table %s: %s", table_id, message)
    return _apply(
        tables,
        table_id,
        lambda table: replace(
            table,
            is_loading=False,
            load_error=f"{LOAD_ERROR_PREFIX}{message}",
        ),
    )


def load_deck(
    tables: Tables,
    table_id: str,
    source_text: str,
    rng: Random | None = None,
) -> Tables:
    """Load a deck description that is already in hand."""
    return complete_load(begin_load(tables, table_id), table_id, source_text, rng)


def load_standard_deck(
    tables: Tables,
    table_id: str,
    rng: Random | None = None,
) -> Tables:
    """Give the player a freshly shuffled standard deck."""
    if get_table(tables, table_id) is None:
        return tables
    deck = shuffle(standard_deck(), rng)
    return _apply(
        tables,
        table_id,
        lambda table: replace(table, deck=deck, drawn_cards=(), load_error=None),
    )


def reset_dealer_deck(
    tables: Tables,
    table_id: str,
    rng: Random | None = None,
) -> Tables:
    """Give the dealer a freshly shuffled standard deck and an empty hand."""
    if get_table(tables, table_id) is None:
        return tables
    deck = shuffled_standard_deck(rng)
    return _apply(
        tables,
        table_id,
        lambda table: replace(
            table, dealer_deck=deck, dealer_hand=(), dealer=None, load_error=None
        ),
    )


def _player_draw(table: Table) -> Table:
    if not table.deck:
        logger.info("Player deck exhausted at table %s", table.id)
        raise DeckExhaustedError(table.id)

    card, deck = table.deck[0], table.deck[1:]
    drawn = (*table.drawn_cards, card)
    return replace(
        table,
        deck=deck,
        drawn_cards=drawn,
        input=join_tokens(drawn),
        result=score(drawn),
    )


def _dealer_draw(table: Table, rng: Random | None) -> Table:
    dealer_deck = table.dealer_deck
    if not dealer_deck:
        logger.info("Dealer deck empty at table %s, adding a new deck", table.id)
        dealer_deck = shuffled_standard_deck(rng)

    card = dealer_deck[0]
    hand = (*table.dealer_hand, card)
    return replace(
        table,
        dealer_deck=dealer_deck[1:],
        dealer_hand=hand,
        dealer=score(hand),
    )


def draw_player_card(tables: Tables, table_id: str) -> Tables:
    """
    Draw the front card of the player deck into the player's hand.

    Raises:
        DeckExhaustedError: If the player deck is empty; nothing changes
    """
    return _apply(tables, table_id, _player_draw)


def draw_dealer_card(
    tables: Tables,
    table_id: str,
    rng: Random | None = None,
) -> Tables:
    """Draw a dealer card, refilling an empty dealer deck first."""
    return _apply(tables, table_id, lambda table: _dealer_draw(table, rng))


def draw_both(
    tables: Tables,
    table_id: str,
    rng: Random | None = None,
) -> Tables:
    """
    Draw one player card and one dealer card as a single transition.

    Raises:
        DeckExhaustedError: If the player deck is empty; neither side draws
    """
    return _apply(
        tables,
        table_id,
        lambda table: _dealer_draw(_player_draw(table), rng),
    )


def check(tables: Tables, table_id: str, text: str) -> Tables:
    """
    Score a manually entered hand.

    The text is stored as the table input and its score as the result.
    Decks and drawn cards are left alone.

    Raises:
        MalformedCardError: If a token cannot be parsed; nothing changes
    """
    if get_table(tables, table_id) is None:
        return tables
    result = score(parse_hand(text))
    return _apply(
        tables,
        table_id,
        lambda table: replace(table, input=text, result=result),
    )


def clear(tables: Tables, table_id: str) -> Tables:
    """Empty both hands and the input, keeping the decks."""
    return _apply(
        tables,
        table_id,
        lambda table: replace(
            table,
            drawn_cards=(),
            dealer_hand=(),
            input="",
            result=None,
            dealer=None,
        ),
    )


def reset_table(tables: Tables, table_id: str) -> Tables:
    """Return a table to its just-created state, keeping the dealer deck."""
    return _apply(
        tables,
        table_id,
        lambda table: replace(
            table,
            deck=(),
            drawn_cards=(),
            dealer_hand=(),
            input="",
            result=None,
            dealer=None,
            load_error=None,
        ),
    )
