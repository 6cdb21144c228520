"""Pytest configuration and shared helpers."""

import sys
from pathlib import Path

import chess
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from models import BookMove, RecordedMove, RepertoireGame
from position import canonical_key


def fen_after(*sans: str) -> str:
    """Full FEN after playing `sans` from the starting position."""
    board = chess.Board()
    for san in sans:
        board.push_san(san)
    return board.fen()


def make_game(*sans: str) -> RepertoireGame:
    return RepertoireGame(moves=[RecordedMove.from_san(san) for san in sans], label="test")


class FakeBook:
    """Opening book double. Unconfigured positions have no book moves."""

    def __init__(self, configuration: dict[str, list[tuple[str, float]]] | None = None):
        self.configuration = {
            canonical_key(fen): [BookMove(uci, frequency) for uci, frequency in moves]
            for fen, moves in (configuration or {}).items()
        }
        self.calls: list[str] = []

    def moves(self, fen: str) -> list[BookMove]:
        self.calls.append(fen)
        return list(self.configuration.get(canonical_key(fen), []))


@pytest.fixture
def make_book():
    return FakeBook
