"""Table state and transitions."""

from core.table.events import EventEmitter, EventType, TableEvent
from core.table.state import Table, Tables, create_table
from core.table import engine

__all__ = [
    "EventEmitter",
    "EventType",
    "TableEvent",
    "Table",
    "Tables",
    "create_table",
    "engine",
]
