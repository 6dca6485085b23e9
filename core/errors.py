"""Error taxonomy for deck loading, parsing and drawing."""


class TableError(Exception):
    """Base class for all table engine errors."""


class AcquisitionError(TableError):
    """The external deck description could not be fetched."""


class DeckParseError(TableError):
    """A deck description could not be turned into cards."""


class EmptyDeckError(DeckParseError):
    """The deck description produced zero cards."""

    def __init__(self, message: str = "No cards found in deck description") -> None:
        super().__init__(message)


class MalformedCardError(DeckParseError, ValueError):
    """A card token could not be parsed."""

    def __init__(self, token: str, reason: str = "") -> None:
        self.token = token
        message = f"Invalid card token: {token!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class DeckExhaustedError(TableError):
    """A player draw was attempted with no cards left in the deck."""

    def __init__(self, table_id: str) -> None:
        self.table_id = table_id
        super().__init__(
            "No cards left in player deck! Load a deck or use the standard deck."
        )


class DuplicateTableError(TableError):
    """A table with the same id already exists in the collection."""

    def __init__(self, table_id: str) -> None:
        self.table_id = table_id
        super().__init__(f"Table {table_id!r} already exists")
