"""Opening book interface and the persistent memoizing cache in front of it."""

import json
import logging
import zlib
from typing import BinaryIO, Protocol

from errors import CacheFormatError
from models import BookMove
from position import canonical_key

logger = logging.getLogger(__name__)


class OpeningBook(Protocol):
    def moves(self, fen: str) -> list[BookMove]:
        """Opponent replies in `fen` with their empirical frequencies."""
        ...


def _decode_moves(moves: list) -> list[BookMove]:
    decoded = []
    for uci, frequency in moves:
        if not isinstance(uci, str):
            raise TypeError(f"move code must be a string, got {uci!r}")
        decoded.append(BookMove(uci=uci, frequency=float(frequency)))
    return decoded


class BookCache:
    """
    Answers each canonical position from memory, asking the wrapped book at most
    once per position. `has_changed` is set when a new position was fetched and
    cleared by `load` and `save`.
    """

    def __init__(self, book: OpeningBook):
        self.book = book
        self.cache: dict[str, list[BookMove]] = {}
        self.has_changed = False

    def moves(self, fen: str) -> list[BookMove]:
        key = canonical_key(fen)
        if key not in self.cache:
            self.cache[key] = list(self.book.moves(fen))
            self.has_changed = True
        return list(self.cache[key])

    def load(self, source: BinaryIO) -> None:
        """Replace the whole cache with the contents of a saved blob."""
        try:
            data = json.loads(zlib.decompress(source.read()))
            self.cache = {str(key): _decode_moves(moves) for key, moves in data.items()}
        except (zlib.error, AttributeError, TypeError, ValueError) as e:
            raise CacheFormatError(f"Cache data could not be decoded: {e}") from e
        self.has_changed = False
        logger.debug("Loaded %d cached positions", len(self.cache))

    def save(self, destination: BinaryIO) -> None:
        data = {key: [(m.uci, m.frequency) for m in moves] for key, moves in self.cache.items()}
        destination.write(zlib.compress(json.dumps(data).encode("utf-8")))
        self.has_changed = False
        logger.debug("Saved %d cached positions", len(self.cache))

    def __len__(self) -> int:
        return len(self.cache)

    def __contains__(self, fen: str) -> bool:
        return canonical_key(fen) in self.cache
