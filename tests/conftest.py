"""Pytest fixtures for blackjack table tests."""

import pytest
from random import Random

from core.cards import Card, Rank, Suit
from core.deck import standard_deck
from core.table import Table, create_table


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def full_deck():
    """An unshuffled standard deck."""
    return standard_deck()


@pytest.fixture
def empty_table(rng):
    """A fresh table with no player deck and a full dealer deck."""
    return create_table("t1", "Table 1", rng=rng)


@pytest.fixture
def stacked_table():
    """A table whose decks are in a known order."""
    return Table(
        id="t1",
        name="Table 1",
        deck=(
            Card(Rank.ACE, Suit.HEARTS),
            Card(Rank.KING, Suit.SPADES),
            Card(Rank.FIVE, Suit.CLUBS),
        ),
        dealer_deck=(
            Card(Rank.TEN, Suit.DIAMONDS),
            Card(Rank.SIX, Suit.CLUBS),
        ),
    )


@pytest.fixture
def tables(stacked_table, rng):
    """A collection of two tables; the first is stacked."""
    return (stacked_table, create_table("t2", "Table 2", rng=rng))


@pytest.fixture
def memory_store():
    """Install a fresh in-memory session store and drop cached table sessions."""
    import api.session as session_module
    import api.tables as tables_module

    store = session_module.InMemorySessionStore()
    session_module._session_store = store
    tables_module._table_sessions.clear()
    yield store
    session_module._session_store = None
    tables_module._table_sessions.clear()
