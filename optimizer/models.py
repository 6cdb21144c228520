"""Data models for the repertoire optimizer."""

from dataclasses import dataclass, field
from typing import ClassVar, Literal

import chess

from errors import AmbiguousMoveError, IllegalMoveError

CASTLING_SAN = {
    "O-O": "kingside",
    "0-0": "kingside",
    "O-O-O": "queenside",
    "0-0-0": "queenside",
}


@dataclass(frozen=True)
class RecordedMove:
    """Structured move as written in a repertoire game (parsed from SAN)."""

    kind: ClassVar[str] = "recorded"

    san: str
    piece_type: chess.PieceType = chess.PAWN
    to_square: chess.Square | None = None
    from_file: int | None = None
    from_rank: int | None = None
    is_capture: bool = False
    promotion: chess.PieceType | None = None
    castling: Literal["kingside", "queenside"] | None = None

    @classmethod
    def from_san(cls, san: str) -> "RecordedMove":
        """
        Split a SAN token into the constraints a matching legal move must meet.
        Tokens that are not a board move (null moves, drops) keep no destination
        and never resolve, so replaying them raises IllegalMoveError.
        """
        text = san.strip().rstrip("+#!?")
        if text in CASTLING_SAN:
            return cls(san=san, piece_type=chess.KING, castling=CASTLING_SAN[text])

        match = chess.SAN_REGEX.match(text)
        if not match:
            return cls(san=san)
        piece, file_name, rank_name, destination, promotion = match.groups()
        return cls(
            san=san,
            piece_type=chess.Piece.from_symbol(piece).piece_type if piece else chess.PAWN,
            to_square=chess.parse_square(destination),
            from_file=chess.FILE_NAMES.index(file_name) if file_name else None,
            from_rank=int(rank_name) - 1 if rank_name else None,
            is_capture="x" in text,
            promotion=chess.Piece.from_symbol(promotion[-1]).piece_type if promotion else None,
        )

    def matches(self, board: chess.Board, move: chess.Move) -> bool:
        if self.castling == "kingside":
            return board.is_kingside_castling(move)
        if self.castling == "queenside":
            return board.is_queenside_castling(move)
        return (
            move.to_square == self.to_square
            and board.piece_type_at(move.from_square) == self.piece_type
            and (self.from_file is None or chess.square_file(move.from_square) == self.from_file)
            and (self.from_rank is None or chess.square_rank(move.from_square) == self.from_rank)
            and board.is_capture(move) == self.is_capture
            and move.promotion == self.promotion
        )

    def to_move(self, board: chess.Board) -> chess.Move:
        """Resolve against the legal moves of `board`; exactly one must match."""
        if self.to_square is None and self.castling is None:
            raise IllegalMoveError(board.fen(), self.san)
        candidates = [move for move in board.legal_moves if self.matches(board, move)]
        if not candidates:
            raise IllegalMoveError(board.fen(), self.san)
        if len(candidates) > 1:
            raise AmbiguousMoveError(board.fen(), self.san)
        return candidates[0]

    def __str__(self) -> str:
        return self.san


@dataclass(frozen=True)
class BookMoveCode:
    """Raw UCI move code as delivered by an opening book."""

    kind: ClassVar[str] = "book"

    uci: str

    def to_move(self, board: chess.Board) -> chess.Move:
        try:
            return board.parse_uci(self.uci)
        except ValueError as e:
            raise IllegalMoveError(board.fen(), self.uci) from e

    def __str__(self) -> str:
        return self.uci


MoveDescriptor = RecordedMove | BookMoveCode


@dataclass(frozen=True)
class BookMove:
    """One opponent reply from the book with its empirical frequency."""

    uci: str
    frequency: float


@dataclass
class Transition:
    """Edge to another position. `fen` is the full description of the destination."""

    fen: str
    move: MoveDescriptor
    frequency: float = 0.0


@dataclass(frozen=True)
class MoveSequence:
    """Moves from the starting position together with the probability of that path."""

    moves: tuple[MoveDescriptor, ...] = ()
    probability: float = 0.0

    def __len__(self) -> int:
        return len(self.moves)


@dataclass
class RepertoireGame:
    """Mainline of one repertoire game."""

    moves: list[RecordedMove] = field(default_factory=list)
    label: str = ""
