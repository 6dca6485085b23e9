"""Table API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException

from api.schemas import (
    CheckRequest,
    CreateTableRequest,
    InputRequest,
    SessionResponse,
    TableResponse,
    TablesResponse,
)
from api.session import create_session, delete_session, extract_session_id
from api.sources import DeckSource, deck_source_from_config
from api.tables import (
    TableSession,
    drop_table_session,
    get_table_session,
    new_table_session,
    save_table_session,
)
from core.errors import DeckExhaustedError, MalformedCardError
from core.table import Tables

router = APIRouter()


def get_deck_source() -> DeckSource:
    """Deck source dependency; overridden in tests."""
    return deck_source_from_config()


async def _get_table_session(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableSession:
    """Resolve the session header to its table session."""
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=404, detail="Unknown session")

    table_session = await get_table_session(session_id)
    if table_session is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return table_session


SessionID = Annotated[str, Header(alias="X-Session-ID")]
CurrentSession = Annotated[TableSession, Depends(_get_table_session)]


async def _respond(
    session_id: str,
    table_session: TableSession,
    tables: Tables,
) -> TablesResponse:
    """Persist the session and render the collection."""
    await save_table_session(session_id, table_session)
    return TablesResponse(tables=[TableResponse.from_table(t) for t in tables])


@router.post("/new")
async def new_session() -> SessionResponse:
    """Create a new session with one empty table."""
    session_id = await create_session()
    await new_table_session(session_id)
    return SessionResponse(session_id=session_id)


@router.delete("/session", status_code=204)
async def end_session(session_id: SessionID, table_session: CurrentSession) -> None:
    """Forget the session and all of its tables."""
    await delete_session(session_id)
    drop_table_session(session_id)


@router.get("/")
async def list_tables(table_session: CurrentSession) -> TablesResponse:
    """Get all tables."""
    return TablesResponse(
        tables=[TableResponse.from_table(t) for t in table_session.tables]
    )


@router.post("/")
async def create_table(
    request: CreateTableRequest,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TableResponse:
    """Create a table."""
    table = await table_session.create_table(
        request.name, with_player_deck=request.with_player_deck
    )
    await save_table_session(session_id, table_session)
    return TableResponse.from_table(table)


@router.delete("/{table_id}")
async def remove_table(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Remove a table."""
    tables = await table_session.remove_table(table_id)
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/deck/load")
async def load_deck(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
    source: Annotated[DeckSource, Depends(get_deck_source)],
) -> TablesResponse:
    """Load the configured deck description into the player deck."""
    tables = await table_session.load_deck(table_id, source)
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/deck/standard")
async def load_standard_deck(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Give the player a shuffled standard deck."""
    tables = await table_session.load_standard_deck(table_id)
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/dealer-deck/reset")
async def reset_dealer_deck(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Give the dealer a shuffled standard deck and an empty hand."""
    tables = await table_session.reset_dealer_deck(table_id)
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/draw")
async def draw_player_card(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Draw a player card."""
    try:
        tables = await table_session.draw_player_card(table_id)
    except DeckExhaustedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/dealer-draw")
async def draw_dealer_card(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Draw a dealer card."""
    tables = await table_session.draw_dealer_card(table_id)
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/draw-both")
async def draw_both(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Draw a player card and a dealer card together."""
    try:
        tables = await table_session.draw_both(table_id)
    except DeckExhaustedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return await _respond(session_id, table_session, tables)


@router.put("/{table_id}/input")
async def update_input(
    table_id: str,
    request: InputRequest,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Replace a table's hand input."""
    tables = await table_session.update_input(table_id, request.input)
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/check")
async def check(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
    request: CheckRequest | None = None,
) -> TablesResponse:
    """Score manual input, or the stored input when none is sent."""
    text = request.input if request is not None else None
    try:
        tables = await table_session.check(table_id, text)
    except MalformedCardError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/clear")
async def clear(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Empty both hands."""
    tables = await table_session.clear(table_id)
    return await _respond(session_id, table_session, tables)


@router.post("/{table_id}/reset")
async def reset_table(
    table_id: str,
    session_id: SessionID,
    table_session: CurrentSession,
) -> TablesResponse:
    """Return a table to its just-created state."""
    tables = await table_session.reset_table(table_id)
    return await _respond(session_id, table_session, tables)
