"""Transposition-merging position graph.

Positions are keyed by the FEN without its halfmove clock and fullmove number,
so every move order that reaches the same placement, side to move, castling
rights and en passant square ends up in the same node.
"""

from typing import Iterator

import chess

from models import MoveDescriptor, MoveSequence, Transition

STARTING_FEN = chess.STARTING_FEN


def canonical_key(fen: str) -> str:
    """Drop the two move counters from a FEN. Never fails."""
    return fen.rsplit(" ", 2)[0]


class Position:
    """Node of the graph: one canonical position and its outgoing transitions."""

    def __init__(self, fen: str):
        self.fen = fen
        self.key = canonical_key(fen)
        self.turn: chess.Color = chess.Board(fen).turn
        self.frequency = 0.0
        self.transitions: dict[str, Transition] = {}
        self.sequence = MoveSequence()

    def board(self) -> chess.Board:
        return chess.Board(self.fen)

    @property
    def transition_count(self) -> int:
        return len(self.transitions)

    def increase_frequency(self, delta: float) -> None:
        self.frequency += delta

    def apply(self, move: MoveDescriptor, frequency: float = 0.0) -> str:
        """
        Play `move` here and record (or overwrite) the transition to the result.
        Returns the full FEN of the resulting position.
        """
        board = self.board()
        board.push(move.to_move(board))
        new_fen = board.fen()
        self.transitions[canonical_key(new_fen)] = Transition(new_fen, move, frequency)
        return new_fen

    def __repr__(self) -> str:
        return f"Position({self.key!r}, frequency={self.frequency}, transitions={self.transition_count})"


class PositionGraph:
    """Owns every position reachable in one repertoire. Nodes are never removed."""

    def __init__(self):
        self._positions: dict[str, Position] = {}

    def position(self, fen: str) -> Position:
        """Return the node for `fen`, creating an empty one on first reference."""
        key = canonical_key(fen)
        position = self._positions.get(key)
        if position is None:
            position = Position(fen)
            self._positions[key] = position
        return position

    def get(self, key: str) -> Position | None:
        return self._positions.get(key)

    def all_positions(self) -> Iterator[Position]:
        return iter(self._positions.values())

    def all_positions_mut(self) -> Iterator[Position]:
        # Snapshot: callers may create positions while iterating.
        return iter(list(self._positions.values()))

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, fen: str) -> bool:
        return canonical_key(fen) in self._positions
