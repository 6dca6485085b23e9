"""Table sessions: serialized transitions over one table collection."""

import asyncio
import logging
import time
from random import Random
from typing import Any, Callable
from uuid import uuid4

from api.session import get_session_store
from api.sources import DeckSource
from config import config
from core.cards import Card, normalize
from core.errors import AcquisitionError, DeckExhaustedError
from core.hand import HandResult
from core.table import EventEmitter, EventType, Table, TableEvent, Tables, create_table
from core.table import engine

logger = logging.getLogger(__name__)

# Session data keys
SESSION_KEY_TABLES = "tables"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


class TableSession:
    """
    One user's table collection.

    Transitions on the same table run one at a time under a per-table lock;
    transitions on different tables do not wait for each other. After every
    transition the whole collection snapshot is replaced at once, so
    observers never see a half-applied update.
    """

    def __init__(
        self,
        tables: Tables = (),
        rng: Random | None = None,
    ) -> None:
        self._tables: Tables = tables
        self._rng = rng or Random()
        self._locks: dict[str, asyncio.Lock] = {}
        self.events = EventEmitter()

    @property
    def tables(self) -> Tables:
        """Return the current collection snapshot."""
        return self._tables

    def get(self, table_id: str) -> Table | None:
        """Return one table from the current snapshot."""
        return engine.get_table(self._tables, table_id)

    def subscribe(
        self,
        handler: Callable[[TableEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to table events."""
        self.events.subscribe(handler, event_type)

    def _lock(self, table_id: str) -> asyncio.Lock:
        return self._locks.setdefault(table_id, asyncio.Lock())

    async def _run(
        self,
        table_id: str,
        transition: Callable[[Tables], Tables],
        event_type: EventType,
        **data: Any,
    ) -> Tables:
        """Apply a transition under the table's lock and announce it."""
        if self.get(table_id) is None:
            return self._tables
        async with self._lock(table_id):
            if self.get(table_id) is None:
                return self._tables
            self._tables = transition(self._tables)
        self.events.emit_new(event_type, table_id, **data)
        return self._tables

    async def create_table(
        self,
        name: str | None = None,
        with_player_deck: bool = False,
    ) -> Table:
        """Create a table and add it to the collection."""
        table = create_table(
            uuid4().hex[:8],
            name or f"{config.default_table_name} {len(self._tables) + 1}",
            with_player_deck=with_player_deck,
            rng=self._rng,
        )
        self._tables = engine.add_table(self._tables, table)
        logger.info("Created table %s (%s)", table.id, table.name)
        self.events.emit_new(EventType.TABLE_CREATED, table.id, name=table.name)
        return table

    async def remove_table(self, table_id: str) -> Tables:
        """
        Remove a table.

        Does not wait for an in-flight deck load on the same table; that
        load finishes as a no-op.
        """
        if self.get(table_id) is None:
            return self._tables
        self._tables = engine.remove_table(self._tables, table_id)
        self._locks.pop(table_id, None)
        logger.info("Removed table %s", table_id)
        self.events.emit_new(EventType.TABLE_REMOVED, table_id)
        return self._tables

    async def load_deck(self, table_id: str, source: DeckSource) -> Tables:
        """
        Fetch a deck description and load it into the player deck.

        The table stops loading however the fetch ends. A cancelled load is
        recorded as a failure before the cancellation propagates.
        """
        if self.get(table_id) is None:
            return self._tables

        async with self._lock(table_id):
            if self.get(table_id) is None:
                return self._tables

            self._tables = engine.begin_load(self._tables, table_id)
            self.events.emit_new(EventType.DECK_LOAD_STARTED, table_id)

            try:
                text = await source.fetch()
            except asyncio.CancelledError:
                self._tables = engine.fail_load(self._tables, table_id, "load cancelled")
                raise
            except AcquisitionError as e:
                self._tables = engine.fail_load(self._tables, table_id, str(e))
            except Exception as e:
                logger.exception("Deck source %r failed", source)
                self._tables = engine.fail_load(self._tables, table_id, str(e))
            else:
                self._tables = engine.complete_load(
                    self._tables, table_id, text, self._rng
                )

            table = self.get(table_id)
            if table is None:
                logger.debug("Table %s removed while loading", table_id)
                return self._tables

        if table.load_error:
            self.events.emit_new(
                EventType.DECK_LOAD_FAILED, table_id, error=table.load_error
            )
        else:
            self.events.emit_new(
                EventType.DECK_LOADED, table_id, cards=table.cards_remaining
            )
        return self._tables

    async def load_standard_deck(self, table_id: str) -> Tables:
        """Give the player a shuffled standard deck."""
        return await self._run(
            table_id,
            lambda tables: engine.load_standard_deck(tables, table_id, self._rng),
            EventType.DECK_LOADED,
            cards=52,
        )

    async def reset_dealer_deck(self, table_id: str) -> Tables:
        """Give the dealer a shuffled standard deck."""
        return await self._run(
            table_id,
            lambda tables: engine.reset_dealer_deck(tables, table_id, self._rng),
            EventType.DEALER_DECK_RESET,
        )

    async def _draw(
        self,
        table_id: str,
        transition: Callable[[Tables], Tables],
        event_type: EventType,
    ) -> Tables:
        try:
            return await self._run(table_id, transition, event_type)
        except DeckExhaustedError:
            self.events.emit_new(EventType.DECK_EXHAUSTED, table_id)
            raise

    async def draw_player_card(self, table_id: str) -> Tables:
        """
        Draw a player card.

        Raises:
            DeckExhaustedError: If the player deck is empty
        """
        return await self._draw(
            table_id,
            lambda tables: engine.draw_player_card(tables, table_id),
            EventType.PLAYER_DREW,
        )

    async def draw_dealer_card(self, table_id: str) -> Tables:
        """Draw a dealer card; the dealer deck never runs out."""
        return await self._run(
            table_id,
            lambda tables: engine.draw_dealer_card(tables, table_id, self._rng),
            EventType.DEALER_DREW,
        )

    async def draw_both(self, table_id: str) -> Tables:
        """
        Draw a player card and a dealer card together.

        Raises:
            DeckExhaustedError: If the player deck is empty
        """
        return await self._draw(
            table_id,
            lambda tables: engine.draw_both(tables, table_id, self._rng),
            EventType.BOTH_DREW,
        )

    async def check(self, table_id: str, text: str | None = None) -> Tables:
        """
        Score manual input, or the stored input when ``text`` is None.

        Raises:
            MalformedCardError: If a token cannot be parsed
        """
        def transition(tables: Tables) -> Tables:
            table = engine.get_table(tables, table_id)
            value = text if text is not None else table.input
            return engine.check(tables, table_id, value)

        return await self._run(table_id, transition, EventType.HAND_CHECKED)

    async def clear(self, table_id: str) -> Tables:
        """Empty both hands."""
        return await self._run(
            table_id,
            lambda tables: engine.clear(tables, table_id),
            EventType.HAND_CLEARED,
        )

    async def reset_table(self, table_id: str) -> Tables:
        """Return a table to its just-created state."""
        return await self._run(
            table_id,
            lambda tables: engine.reset_table(tables, table_id),
            EventType.TABLE_RESET,
        )

    async def update_input(self, table_id: str, text: str) -> Tables:
        """Replace the free-text hand input."""
        return await self._run(
            table_id,
            lambda tables: engine.update_input(tables, table_id, text),
            EventType.INPUT_UPDATED,
        )


def _serialize_cards(cards: tuple[Card, ...]) -> list[str]:
    """Serialize cards as canonical tokens."""
    return [card.token for card in cards]


def _deserialize_cards(tokens: list[str]) -> tuple[Card, ...]:
    """Deserialize canonical tokens."""
    return tuple(normalize(token) for token in tokens)


def _serialize_result(result: HandResult | None) -> dict[str, Any] | None:
    if result is None:
        return None
    return {"total": result.total, "bust": result.bust}


def _deserialize_result(data: dict[str, Any] | None) -> HandResult | None:
    if data is None:
        return None
    return HandResult(total=data["total"], bust=data["bust"])


def _serialize_table(table: Table) -> dict[str, Any]:
    """Serialize a table for session storage."""
    return {
        "id": table.id,
        "name": table.name,
        "deck": _serialize_cards(table.deck),
        "drawn_cards": _serialize_cards(table.drawn_cards),
        "dealer_deck": _serialize_cards(table.dealer_deck),
        "dealer_hand": _serialize_cards(table.dealer_hand),
        "input": table.input,
        "result": _serialize_result(table.result),
        "dealer": _serialize_result(table.dealer),
        "load_error": table.load_error,
    }


def _deserialize_table(data: dict[str, Any]) -> Table:
    """
    Restore a table from session storage.

    ``is_loading`` is not stored: a load cannot outlive the process that
    started it.
    """
    return Table(
        id=data["id"],
        name=data["name"],
        deck=_deserialize_cards(data["deck"]),
        drawn_cards=_deserialize_cards(data["drawn_cards"]),
        dealer_deck=_deserialize_cards(data["dealer_deck"]),
        dealer_hand=_deserialize_cards(data["dealer_hand"]),
        input=data["input"],
        result=_deserialize_result(data["result"]),
        dealer=_deserialize_result(data["dealer"]),
        load_error=data["load_error"],
    )


# In-memory session cache (backed by session store)
_table_sessions: dict[str, TableSession] = {}


async def evict_expired_sessions() -> int:
    """Drop expired store entries and the cached sessions they backed."""
    store = await get_session_store()
    await store.cleanup_expired()
    expired = [sid for sid in _table_sessions if not await store.exists(sid)]
    for sid in expired:
        del _table_sessions[sid]
    if expired:
        logger.info("Evicted %d expired table sessions", len(expired))
    return len(expired)


async def new_table_session(session_id: str) -> TableSession:
    """Start a fresh table session with one table."""
    await evict_expired_sessions()
    table_session = TableSession()
    await table_session.create_table()
    _table_sessions[session_id] = table_session
    await save_table_session(session_id, table_session)
    return table_session


async def save_table_session(session_id: str, table_session: TableSession) -> None:
    """Save a table session's collection to the session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_TABLES] = [
        _serialize_table(t) for t in table_session.tables
    ]
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    if SESSION_KEY_CREATED_AT not in session_data:
        session_data[SESSION_KEY_CREATED_AT] = int(time.time())
    await store.set(session_id, session_data)


async def get_table_session(session_id: str) -> TableSession | None:
    """
    Get a cached table session or restore it from the session store.

    A cached session whose store entry has expired is evicted.
    """
    store = await get_session_store()
    session_data = await store.get(session_id)
    if not session_data or SESSION_KEY_TABLES not in session_data:
        _table_sessions.pop(session_id, None)
        return None

    if session_id in _table_sessions:
        return _table_sessions[session_id]

    tables = tuple(_deserialize_table(t) for t in session_data[SESSION_KEY_TABLES])
    table_session = TableSession(tables)
    _table_sessions[session_id] = table_session
    return table_session


def drop_table_session(session_id: str) -> None:
    """Forget a cached table session."""
    _table_sessions.pop(session_id, None)
