"""
Repertoire optimization

Turns prepared lines plus opponent statistics into per-position encounter
probabilities, and ranks the owner's positions for additions, removals and
narrowing. One optimizer exists per side; the phases run in order:

  add_game_to_repertoire -> add_opponents_moves_from_book
  -> set_own_move_frequencies -> update_position_frequencies -> recommend_*
"""

import logging
import math
from dataclasses import dataclass

import chess

from errors import NonFiniteFrequencyError
from models import BookMoveCode, MoveDescriptor, MoveSequence, RepertoireGame
from opening_book import OpeningBook
from position import STARTING_FEN, Position, PositionGraph

logger = logging.getLogger(__name__)


@dataclass
class FrequencyDelta:
    """Probability mass on its way to a position along one path."""

    fen: str
    delta: float
    ply: int
    moves: tuple[MoveDescriptor, ...]
    visited: frozenset[str]


class RepertoireOptimizer:
    def __init__(self, owner: chess.Color):
        self.owner = owner
        self.tree = PositionGraph()
        # Expected number of full moves the owner stays in book per game.
        self.average_book_length = 0.0
        # Mass that ran into a repetition of a position already on its path.
        self.truncated_mass = 0.0

    def add_game_to_repertoire(self, game: RepertoireGame) -> None:
        """
        Replay one game from the starting position, adding an edge per move.
        Raises IllegalMoveError / AmbiguousMoveError; edges added before the bad
        move stay in the graph.
        """
        position = self.tree.position(STARTING_FEN)
        for move in game.moves:
            fen = position.apply(move)
            position = self.tree.position(fen)

    def add_opponents_moves_from_book(self, book: OpeningBook) -> int:
        """Attach the book's replies to every position where the opponent moves. Returns edges set."""
        opponent_positions = [pos for pos in self.tree.all_positions_mut() if pos.turn != self.owner]
        edges = 0
        for position in opponent_positions:
            for book_move in book.moves(position.fen):
                fen = position.apply(BookMoveCode(book_move.uci), book_move.frequency)
                self.tree.position(fen)
                edges += 1
        logger.info(
            "Added %d book moves in %d opponent positions", edges, len(opponent_positions)
        )
        return edges

    def set_own_move_frequencies(self) -> None:
        """
        Spread the owner's choice uniformly over the prepared replies. This is a
        modelling assumption: three prepared moves get exactly 1/3 each.
        """
        for position in self.tree.all_positions_mut():
            if position.turn != self.owner or position.transition_count == 0:
                continue
            frequency = 1.0 / position.transition_count
            for transition in position.transitions.values():
                transition.frequency = frequency

    def update_position_frequencies(self) -> None:
        """
        Push probability mass from the starting position through the graph.

        Mass arriving over different paths adds up. A path never re-enters a
        position it already visited; that mass is counted in `truncated_mass`
        instead, so repetition cycles terminate.
        """
        pending = [FrequencyDelta(STARTING_FEN, 1.0, 0, (), frozenset())]
        while pending:
            item = pending.pop()
            if item.delta == 0.0:
                continue
            position = self.tree.position(item.fen)
            position.increase_frequency(item.delta)
            if position.turn == self.owner and position.transition_count == 0:
                self.average_book_length += (item.ply // 2) * item.delta
            if item.delta > position.sequence.probability:
                position.sequence = MoveSequence(item.moves, item.delta)

            visited = item.visited | {position.key}
            for key, transition in position.transitions.items():
                delta = item.delta * transition.frequency
                if key in visited:
                    logger.debug("Repetition of %s; dropping mass %g", key, delta)
                    self.truncated_mass += delta
                    continue
                pending.append(
                    FrequencyDelta(
                        fen=transition.fen,
                        delta=delta,
                        ply=item.ply + 1,
                        moves=item.moves + (transition.move,),
                        visited=visited,
                    )
                )

    def own_positions(self) -> list[Position]:
        return [pos for pos in self.tree.all_positions() if pos.turn == self.owner]


def _check_finite(positions: list[Position]) -> None:
    for position in positions:
        if not math.isfinite(position.frequency):
            raise NonFiniteFrequencyError(position.fen, position.frequency)


def narrowing_score(position: Position) -> float:
    """Chance that any single prepared move here gets played."""
    return position.frequency / position.transition_count


def reduction_score(position: Position) -> float:
    return position.frequency * position.transition_count


def recommend_for_addition(positions: list[Position], count: int) -> list[Position]:
    """Most frequent unprepared positions."""
    candidates = [pos for pos in positions if pos.transition_count == 0]
    _check_finite(candidates)
    return sorted(candidates, key=lambda pos: pos.frequency, reverse=True)[:count]


def recommend_for_removal(positions: list[Position], count: int) -> list[Position]:
    """Least frequent prepared positions."""
    candidates = [pos for pos in positions if pos.transition_count > 0]
    _check_finite(candidates)
    return sorted(candidates, key=lambda pos: pos.frequency)[:count]


def recommend_for_narrowing(positions: list[Position], count: int) -> list[Position]:
    """Positions with several prepared moves, each of which is rarely used."""
    candidates = [pos for pos in positions if pos.transition_count > 1]
    _check_finite(candidates)
    return sorted(candidates, key=narrowing_score)[:count]


def recommend_for_reduction(positions: list[Position], count: int) -> list[Position]:
    """Frequent positions where keeping several options costs the most work."""
    candidates = [pos for pos in positions if pos.transition_count > 1]
    _check_finite(candidates)
    return sorted(candidates, key=reduction_score, reverse=True)[:count]
