"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field

from core.cards import Card, format_card
from core.hand import HandResult
from core.table import Table


# Request schemas
class CreateTableRequest(BaseModel):
    """Request to create a table."""

    name: str | None = Field(default=None, max_length=64)
    with_player_deck: bool = False


class InputRequest(BaseModel):
    """Request to replace a table's hand input."""

    input: str = Field(..., max_length=1024)


class CheckRequest(BaseModel):
    """Request to score manual input; omit to score the stored input."""

    input: str | None = Field(default=None, max_length=1024)


# Response schemas
class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    token: str
    display: str

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        return cls(
            rank=card.rank.value,
            suit=card.suit.value,
            token=card.token,
            display=format_card(card),
        )


class HandResultResponse(BaseModel):
    """Hand total and bust status."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    bust: bool


class TableResponse(BaseModel):
    """Table snapshot. Deck contents are hidden; only their sizes are shown."""

    id: str
    name: str
    cards_remaining: int
    dealer_cards_remaining: int
    drawn_cards: list[CardResponse]
    dealer_hand: list[CardResponse]
    input: str
    result: HandResultResponse | None
    dealer: HandResultResponse | None
    is_loading: bool
    load_error: str | None

    @classmethod
    def from_table(cls, table: Table) -> "TableResponse":
        return cls(
            id=table.id,
            name=table.name,
            cards_remaining=table.cards_remaining,
            dealer_cards_remaining=table.dealer_cards_remaining,
            drawn_cards=[CardResponse.from_card(c) for c in table.drawn_cards],
            dealer_hand=[CardResponse.from_card(c) for c in table.dealer_hand],
            input=table.input,
            result=_result_response(table.result),
            dealer=_result_response(table.dealer),
            is_loading=table.is_loading,
            load_error=table.load_error,
        )


class TablesResponse(BaseModel):
    """The whole table collection."""

    tables: list[TableResponse]


class SessionResponse(BaseModel):
    """A newly created session."""

    session_id: str


def _result_response(result: HandResult | None) -> HandResultResponse | None:
    if result is None:
        return None
    return HandResultResponse.model_validate(result)
