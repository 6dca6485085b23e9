"""WebSocket snapshot push for table sessions."""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from api.schemas import CheckRequest, CreateTableRequest, InputRequest, TableResponse
from api.session import extract_session_id
from api.tables import TableSession, get_table_session, save_table_session
from core.errors import DeckExhaustedError, MalformedCardError
from core.table import TableEvent

logger = logging.getLogger(__name__)

router = APIRouter()


def _snapshot(table_session: TableSession) -> list[dict[str, Any]]:
    """Render the collection for JSON serialization."""
    return [
        TableResponse.from_table(t).model_dump(mode="json")
        for t in table_session.tables
    ]


def _event_to_message(event: TableEvent, table_session: TableSession) -> dict[str, Any]:
    """Convert a table event to a WebSocket message."""
    return {
        "type": "event",
        "event_type": event.event_type.name,
        "table_id": event.table_id,
        "data": event.data,
        "tables": _snapshot(table_session),
    }


def _invalid(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return f"Invalid {field}: {first['msg']}"


def _table_actions(
    table_session: TableSession,
    message: dict[str, Any],
) -> dict[str, Callable[[str], Awaitable[Any]]]:
    """Table actions a client may request, keyed by message type."""
    return {
        "draw": table_session.draw_player_card,
        "dealer_draw": table_session.draw_dealer_card,
        "draw_both": table_session.draw_both,
        "clear": table_session.clear,
        "reset": table_session.reset_table,
        "standard_deck": table_session.load_standard_deck,
        "reset_dealer_deck": table_session.reset_dealer_deck,
        "remove_table": table_session.remove_table,
        "check": lambda table_id: table_session.check(
            table_id, CheckRequest.model_validate({"input": message.get("input")}).input
        ),
        "update_input": lambda table_id: table_session.update_input(
            table_id, InputRequest.model_validate({"input": message.get("input", "")}).input
        ),
    }


@router.websocket("/tables/{session_id}")
async def tables_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for live table snapshots.

    Messages from client:
    - {"type": "get_state"}
    - {"type": "create_table", "name": "...", "with_player_deck": false}
    - {"type": "draw"|"dealer_draw"|"draw_both"|"clear"|"reset"|
       "standard_deck"|"reset_dealer_deck"|"remove_table", "table_id": "..."}
    - {"type": "check"|"update_input", "table_id": "...", "input": "..."}

    Messages to client:
    - {"type": "state_update", "tables": [...]}
    - {"type": "event", "event_type": "...", "table_id": "...", "data": {...}, "tables": [...]}
    - {"type": "error", "message": "..."}
    """
    table_session = None
    if extract_session_id(session_id) is not None:
        table_session = await get_table_session(session_id)
    if table_session is None:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    queue: asyncio.Queue[TableEvent] = asyncio.Queue()
    table_session.subscribe(queue.put_nowait)

    async def process_events() -> None:
        """Forward table events to the client."""
        while True:
            event = await queue.get()
            await websocket.send_json(_event_to_message(event, table_session))

    event_task = asyncio.create_task(process_events())

    await websocket.send_json({"type": "state_update", "tables": _snapshot(table_session)})

    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "message": "Expected an object"})
                continue

            msg_type = message.get("type")

            if msg_type == "get_state":
                await websocket.send_json(
                    {"type": "state_update", "tables": _snapshot(table_session)}
                )
                continue

            if msg_type == "create_table":
                try:
                    request = CreateTableRequest.model_validate(
                        {k: v for k, v in message.items() if k != "type"}
                    )
                except ValidationError as e:
                    await websocket.send_json({"type": "error", "message": _invalid(e)})
                    continue
                await table_session.create_table(
                    request.name, with_player_deck=request.with_player_deck
                )
                await save_table_session(session_id, table_session)
                continue

            action = _table_actions(table_session, message).get(msg_type)
            if action is None:
                await websocket.send_json(
                    {"type": "error", "message": f"Unknown message type: {msg_type}"}
                )
                continue

            try:
                await action(str(message.get("table_id", "")))
            except ValidationError as e:
                await websocket.send_json({"type": "error", "message": _invalid(e)})
                continue
            except (DeckExhaustedError, MalformedCardError) as e:
                await websocket.send_json({"type": "error", "message": str(e)})
                continue
            await save_table_session(session_id, table_session)

    except WebSocketDisconnect:
        logger.debug("WebSocket for session closed")
    finally:
        table_session.events.unsubscribe(queue.put_nowait)
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
