"""
Deck description parser.

Two shapes are accepted. The inline shape puts the whole list on the
``deck:`` line::

    deck: ["AH,2H,3H", "KS"]

The block shape lists one card per line below ``deck:``::

    deck:
      - "A,H"
      - "2,H"

Parsing runs in two passes: the ``deck:`` markers are located first, then a
shape-specific tokenizer produces the cards. The first inline list wins over
any block list; without one, the first ``deck:`` marker starts a block list.
A block list ends at the first line that is not a ``- card`` entry; a bare
``-`` or an empty quoted entry counts as such a line.
"""

import re
from typing import Iterator

from core.cards import Card, normalize
from core.errors import EmptyDeckError

_DECK_MARKER = "deck:"
_INLINE_LIST = re.compile(r"^deck:\s*\[(?P<body>.*)\]\s*$")
_BLOCK_ENTRY = re.compile(r"^-\s*(?P<token>.*?[^\s\"'].*?)\s*$")
_CANONICAL = re.compile(r"^(A|[2-9]|10|J|Q|K)\s*,\s*[HDCS]$", re.IGNORECASE)
_QUOTES = "\"'"


def parse_deck_description(text: str) -> tuple[Card, ...]:
    """
    Extract an ordered card list from a deck description.

    Duplicates are kept and no 52-card validation is done.

    Raises:
        EmptyDeckError: If no cards were found
        MalformedCardError: If any token cannot be parsed
    """
    lines = text.splitlines()
    markers = [
        index for index, line in enumerate(lines)
        if line.strip().startswith(_DECK_MARKER)
    ]
    cards: list[Card] = []

    for index in markers:
        inline = _INLINE_LIST.match(lines[index].strip())
        if inline:
            cards.extend(_parse_inline(inline.group("body")))
            break
    else:
        if markers:
            cards.extend(_parse_block(lines[markers[0] + 1:]))

    if not cards:
        raise EmptyDeckError()
    return tuple(cards)


def _parse_inline(body: str) -> Iterator[Card]:
    """Tokenize the body of an inline ``[...]`` list."""
    for element in _split_elements(body):
        if _CANONICAL.match(element):
            yield normalize(element)
        elif "," in element:
            for fragment in element.split(","):
                fragment = fragment.strip()
                if fragment:
                    yield normalize(fragment)
        else:
            yield normalize(element)


def _split_elements(body: str) -> Iterator[str]:
    """
    Split a list body into its elements.

    Commas inside a quoted element belong to that element; commas outside
    quotes separate elements.
    """
    current: list[str] = []
    quote: str | None = None

    for char in body:
        if quote:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in _QUOTES:
            quote = char
        elif char == ",":
            yield from _flush(current)
            current = []
        else:
            current.append(char)

    yield from _flush(current)


def _flush(chars: list[str]) -> Iterator[str]:
    element = "".join(chars).strip()
    if element:
        yield element


def _parse_block(lines: list[str]) -> Iterator[Card]:
    """Tokenize ``- token`` lines until the first non-entry, non-comment line."""
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        entry = _BLOCK_ENTRY.match(stripped)
        if entry is None:
            return
        yield normalize(_unquote(entry.group("token")))


def _unquote(token: str) -> str:
    if len(token) >= 2 and token[0] in _QUOTES and token[-1] == token[0]:
        return token[1:-1]
    return token
