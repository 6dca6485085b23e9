"""Tests for Card and the card token codec."""

import pytest

from core.cards import (
    SUIT_GLYPHS,
    Card,
    Rank,
    Suit,
    format_card,
    format_cards,
    join_tokens,
    normalize,
    parse_hand,
)
from core.errors import MalformedCardError


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
        """Test creating a card."""
        card = Card(Rank.ACE, Suit.SPADES)
        assert card.rank == Rank.ACE
        assert card.suit == Suit.SPADES

    def test_card_immutability(self):
        """Test that cards are immutable."""
        card = Card(Rank.ACE, Suit.SPADES)
        with pytest.raises(AttributeError):
            card.rank = Rank.KING

    def test_card_value(self):
        """Test card blackjack values."""
        assert Card(Rank.TWO, Suit.HEARTS).value == 2
        assert Card(Rank.TEN, Suit.HEARTS).value == 10
        assert Card(Rank.JACK, Suit.HEARTS).value == 10
        assert Card(Rank.QUEEN, Suit.HEARTS).value == 10
        assert Card(Rank.KING, Suit.HEARTS).value == 10
        assert Card(Rank.ACE, Suit.HEARTS).value == 11

    def test_card_token(self):
        """Test the canonical token form."""
        assert Card(Rank.ACE, Suit.HEARTS).token == "A,H"
        assert Card(Rank.TEN, Suit.CLUBS).token == "10,C"
        assert str(Card(Rank.KING, Suit.SPADES)) == "K,S"

    def test_card_equality(self):
        """Test structural equality."""
        assert Card(Rank.ACE, Suit.SPADES) == Card(Rank.ACE, Suit.SPADES)
        assert Card(Rank.ACE, Suit.SPADES) != Card(Rank.KING, Suit.SPADES)

    def test_card_hash(self):
        """Test that cards can be used in sets/dicts."""
        cards = {Card(Rank.ACE, Suit.SPADES), Card(Rank.ACE, Suit.SPADES)}
        assert len(cards) == 1

    def test_from_string(self):
        """Test the classmethod constructor."""
        assert Card.from_string("QD") == Card(Rank.QUEEN, Suit.DIAMONDS)


class TestNormalize:
    """Tests for parsing card tokens."""

    def test_canonical_form(self):
        """Test rank,suit tokens."""
        assert normalize("A,H") == Card(Rank.ACE, Suit.HEARTS)
        assert normalize("10,S") == Card(Rank.TEN, Suit.SPADES)
        assert normalize("7 , D") == Card(Rank.SEVEN, Suit.DIAMONDS)

    def test_compact_form(self):
        """Test rank-then-suit tokens."""
        assert normalize("AH") == Card(Rank.ACE, Suit.HEARTS)
        assert normalize("10D") == Card(Rank.TEN, Suit.DIAMONDS)
        assert normalize("KC") == Card(Rank.KING, Suit.CLUBS)

    def test_quotes_whitespace_and_case(self):
        """Test that quotes, padding and case are ignored."""
        assert normalize('  "qs" ') == Card(Rank.QUEEN, Suit.SPADES)
        assert normalize("'2,h'") == Card(Rank.TWO, Suit.HEARTS)

    @pytest.mark.parametrize("token", ["", "H", ",H", "1H", "11H", "ZH", "AX", "A,", "A,HH", "TH"])
    def test_malformed_tokens(self, token):
        """Test that bad tokens raise MalformedCardError."""
        with pytest.raises(MalformedCardError):
            normalize(token)

    def test_error_includes_token(self):
        """Test that the offending token appears in the message."""
        with pytest.raises(MalformedCardError) as exc_info:
            normalize("XQ")
        assert "XQ" in str(exc_info.value)
        assert exc_info.value.token == "XQ"

    def test_malformed_is_value_error(self):
        """Test that malformed tokens are also ValueErrors."""
        with pytest.raises(ValueError):
            normalize("??")


class TestFormatting:
    """Tests for display formatting."""

    def test_glyph_table(self):
        """Test the suit glyph mapping."""
        assert SUIT_GLYPHS == {"H": "♥", "D": "♦", "C": "♣", "S": "♠"}

    def test_format_card(self):
        """Test single card display."""
        assert format_card(Card(Rank.ACE, Suit.HEARTS)) == "A♥"
        assert format_card(Card(Rank.TEN, Suit.SPADES)) == "10♠"

    def test_format_cards(self):
        """Test multiple card display."""
        cards = [Card(Rank.TWO, Suit.CLUBS), Card(Rank.JACK, Suit.DIAMONDS)]
        assert format_cards(cards) == ["2♣", "J♦"]


class TestHandText:
    """Tests for whitespace-separated hand text."""

    def test_parse_hand(self):
        """Test splitting on whitespace and dropping empty fragments."""
        cards = parse_hand("  A,H   10,S\tK,D ")
        assert cards == (
            Card(Rank.ACE, Suit.HEARTS),
            Card(Rank.TEN, Suit.SPADES),
            Card(Rank.KING, Suit.DIAMONDS),
        )

    def test_parse_empty_hand(self):
        """Test that blank text is an empty hand."""
        assert parse_hand("   ") == ()

    def test_join_tokens(self):
        """Test rendering cards back to hand text."""
        cards = (Card(Rank.ACE, Suit.HEARTS), Card(Rank.TWO, Suit.SPADES))
        assert join_tokens(cards) == "A,H 2,S"
        assert parse_hand(join_tokens(cards)) == cards
