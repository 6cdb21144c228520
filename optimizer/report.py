"""Console report: repertoire statistics and the four recommendation lists."""

from dataclasses import dataclass

import chess

from models import MoveSequence
from position import Position
from repertoire_optimizer import (
    recommend_for_addition,
    recommend_for_narrowing,
    recommend_for_reduction,
    recommend_for_removal,
)


@dataclass
class RepertoireStatistics:
    average_book_length: float
    prepared_positions: int
    unprepared_positions: int

    @property
    def impact(self) -> float:
        """Average in-book moves per prepared position, in thousandths."""
        if not self.prepared_positions:
            return 0.0
        return self.average_book_length * 1000.0 / self.prepared_positions


def repertoire_statistics(positions: list[Position], average_book_length: float) -> RepertoireStatistics:
    prepared = sum(1 for pos in positions if pos.transition_count > 0)
    return RepertoireStatistics(
        average_book_length=average_book_length,
        prepared_positions=prepared,
        unprepared_positions=len(positions) - prepared,
    )


def format_sequence(sequence: MoveSequence) -> str:
    """Numbered SAN for a sequence played from the starting position."""
    if not sequence.moves:
        return "(starting position)"
    board = chess.Board()
    moves = []
    for descriptor in sequence.moves:
        move = descriptor.to_move(board)
        board.push(move)
        moves.append(move)
    return chess.Board().variation_san(moves)


def render_position(position: Position) -> str:
    board = position.board()
    side = chess.COLOR_NAMES[position.turn].capitalize()
    frequency = position.frequency
    prepared = position.transition_count

    lines = [board.unicode(invert_color=True, orientation=position.turn)]
    if frequency > 0:
        lines.append(f"Encountered once in ~{1.0 / frequency:.0f} {side} games ({100.0 * frequency:.6f}%)")
    else:
        lines.append(f"Never encountered in {side} games")
    lines.append(f"You have prepared {prepared} moves here.")
    if prepared > 0:
        lines.append(
            f"Likelihood for any single prepared move to be useful: {100.0 * frequency / prepared:.6f}%"
        )
    lines.append(f"Most likely reached by: {format_sequence(position.sequence)}")
    return "\n".join(lines) + "\n"


SECTIONS = [
    (
        "best",
        recommend_for_addition,
        "## Positions you are most likely to encounter where you are out-of-book ##",
        "Consider adding these to your repertoire, as it will improve it the most",
    ),
    (
        "worst",
        recommend_for_removal,
        "## Positions you are least likely to encounter where you have a line prepared ##",
        "Consider removing these from your repertoire, as it will have the least impact",
    ),
    (
        "most",
        recommend_for_narrowing,
        "## Positions where your prepared moves are least likely to be used ##",
        "Consider reducing the number of different moves you play here",
    ),
    (
        "costly",
        recommend_for_reduction,
        "## Most frequent positions where you have more than one move prepared ##",
        "Reducing your options here would reduce your workload the most, "
        "while still keeping you prepared",
    ),
]


def render_statistics(stats: RepertoireStatistics) -> str:
    return "\n".join([
        "## Repertoire Statistics ##",
        f"Average moves you stay in book per game: {stats.average_book_length:.5f} (higher is better)",
        f"Your repertoire spans {stats.prepared_positions} positions (lower is better)",
        f"=> Average impact of each move in your repertoire: m{stats.impact:.5f} (higher is better)",
        f"You have {stats.unprepared_positions} unprepared positions (lower is better)",
    ])


def render_report(
    positions: list[Position],
    average_book_length: float,
    best: int = 10,
    worst: int = 0,
    most: int = 0,
    costly: int = 0,
) -> str:
    """Statistics block followed by every recommendation list with a non-zero count."""
    counts = {"best": best, "worst": worst, "most": most, "costly": costly}
    out = ["", render_statistics(repertoire_statistics(positions, average_book_length))]
    for name, recommend, title, advice in SECTIONS:
        count = counts[name]
        if count <= 0:
            continue
        out.extend(["", title, advice, ""])
        out.extend(render_position(pos) for pos in recommend(positions, count))
    return "\n".join(out)
