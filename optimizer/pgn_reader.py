"""Reads repertoire games from PGN files."""

import logging
from pathlib import Path

import chess
import chess.pgn

from errors import PgnParseError
from models import RecordedMove, RepertoireGame

logger = logging.getLogger(__name__)


def resolve_to_files(paths: list[Path]) -> list[Path]:
    """Expand directories (recursively) into the files they contain."""
    files = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            logger.info("'%s' is a directory; importing all files from within...", path)
            files.extend(resolve_to_files(sorted(path.iterdir())))
        else:
            files.append(path)
    return files


def game_label(headers: chess.pgn.Headers) -> str:
    players = f"{headers.get('White', '?')} - {headers.get('Black', '?')}"
    event = headers.get("Event", "?")
    return players if event == "?" else f"{event}: {players}"


class MainlineCollector(chess.pgn.BaseVisitor["MainlineCollector"]):
    """
    Collects the mainline SAN tokens of one game without judging their legality.

    Move resolution belongs to the repertoire builder, which rejects a bad game
    on its own. Only errors outside the movetext (a broken FEN or Variant
    header) are collected in `errors`.
    """

    def begin_game(self) -> None:
        self.headers = chess.pgn.Headers()
        self.tokens: list[str] = []
        self.errors: list[Exception] = []

    def begin_headers(self) -> chess.pgn.Headers:
        return self.headers

    def visit_header(self, tagname: str, tagvalue: str) -> None:
        self.headers[tagname] = tagvalue

    def begin_variation(self):
        return chess.pgn.SKIP

    def begin_parse_san(self, board: chess.Board, san: str) -> None:
        self.tokens.append(san)

    def parse_san(self, board: chess.Board, san: str) -> chess.Move:
        # The board only has to keep a move stack so variations are recognised.
        try:
            return board.parse_san(san)
        except ValueError:
            return chess.Move.null()

    def handle_error(self, error: Exception) -> None:
        self.errors.append(error)

    def result(self) -> "MainlineCollector":
        return self

    def game(self) -> RepertoireGame:
        return RepertoireGame(
            moves=[RecordedMove.from_san(san) for san in self.tokens],
            label=game_label(self.headers),
        )


def read_games(pgn_path: Path) -> list[RepertoireGame]:
    """
    Read the mainline of every game in a PGN file. A game with an illegal or
    ambiguous move is still returned; it fails later, on its own, when it is
    replayed. A broken game header rejects the whole file.
    """
    games = []
    with open(pgn_path, encoding="utf-8", errors="replace") as f:
        while True:
            collector = chess.pgn.read_game(f, Visitor=MainlineCollector)
            if collector is None:
                break
            if collector.errors:
                raise PgnParseError(pgn_path, str(collector.errors[0]))
            games.append(collector.game())
    return games
