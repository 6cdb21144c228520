#!/usr/bin/env python3
"""
Repertoire Optimizer CLI

Cover the most ground with the least amount of lines prepared. Reads White and
Black repertoires from PGN, weighs opponent replies with Lichess statistics and
prints which positions to add, drop or narrow.

Usage:
  python optimize.py -w white/ -b black.pgn -c book.cache --best 10 --worst 5
  LICHESS_TOKEN=xxx python optimize.py -w white.pgn -v
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import chess

sys.path.insert(0, str(Path(__file__).resolve().parent))
from errors import MoveResolutionError, PgnParseError, RepertoireError
from lichess_book import LichessBook
from opening_book import BookCache
from pgn_reader import read_games, resolve_to_files
from repertoire_optimizer import RepertoireOptimizer
from report import render_report

logger = logging.getLogger(__name__)


def setup_logging(verbosity: int) -> None:
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s - %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="optimize-repertoire",
        description="Cover the most ground with the least amount of lines prepared!",
    )
    parser.add_argument("-w", "--white-repertoire", type=Path, nargs="+", action="extend", default=[],
                        help="PGN files or directories containing your White repertoire")
    parser.add_argument("-b", "--black-repertoire", type=Path, nargs="+", action="extend", default=[],
                        help="PGN files or directories containing your Black repertoire")
    parser.add_argument("-c", "--cache-file", type=Path, default=None,
                        help="Local file for caching opening book moves")
    parser.add_argument("--best", type=int, default=10,
                        help="How many frequent positions to recommend for addition")
    parser.add_argument("--worst", type=int, default=0,
                        help="How many infrequent positions to recommend for removal")
    parser.add_argument("--most", type=int, default=0,
                        help="How many positions with many candidates to show")
    parser.add_argument("--costly", type=int, default=0,
                        help="How many expensive choices to show")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Print more information (repeat for debug output)")
    return parser


def import_repertoire(optimizer: RepertoireOptimizer, paths: list[Path]) -> int:
    """Add every readable game; bad files and bad games are skipped with a warning."""
    imported = 0
    for path in resolve_to_files(paths):
        try:
            games = read_games(path)
        except (OSError, PgnParseError) as e:
            logger.warning("Import of '%s' failed: %s", path, e)
            continue
        logger.info("Import of '%s': Found %d games", path, len(games))
        for game in games:
            try:
                optimizer.add_game_to_repertoire(game)
            except MoveResolutionError as e:
                logger.warning("'%s' (%s) contains bad move: %s", path, game.label, e)
                continue
            imported += 1
    return imported


def load_cache(book: BookCache, path: Path | None) -> None:
    if path is None:
        return
    if not path.exists():
        logger.info("Cache file '%s' not found; will be created...", path)
        return
    with open(path, "rb") as f:
        book.load(f)
    logger.info("Cache file '%s' loaded successfully...", path)


def save_cache(book: BookCache, path: Path | None) -> None:
    if path is None or not book.has_changed:
        return
    with open(path, "wb") as f:
        book.save(f)
    logger.info("Cache file '%s' written (%d positions)", path, len(book))


def optimize(args: argparse.Namespace, book: BookCache) -> str:
    """Run every phase for both colours and return the report text."""
    white = RepertoireOptimizer(chess.WHITE)
    black = RepertoireOptimizer(chess.BLACK)

    logger.info("Importing lines...")
    import_repertoire(white, args.white_repertoire)
    import_repertoire(black, args.black_repertoire)

    logger.info("Checking book moves...")
    white.add_opponents_moves_from_book(book)
    black.add_opponents_moves_from_book(book)
    logger.info("Setting own move frequencies...")
    white.set_own_move_frequencies()
    black.set_own_move_frequencies()
    logger.info("Updating position frequencies...")
    white.update_position_frequencies()
    black.update_position_frequencies()

    for optimizer in (white, black):
        if optimizer.truncated_mass:
            logger.warning(
                "%s repertoire: %.6f probability mass ends in repeated positions",
                chess.COLOR_NAMES[optimizer.owner].capitalize(),
                optimizer.truncated_mass,
            )

    average_book_length = (white.average_book_length + black.average_book_length) / 2.0
    positions = white.own_positions() + black.own_positions()
    return render_report(
        positions,
        average_book_length,
        best=args.best,
        worst=args.worst,
        most=args.most,
        costly=args.costly,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    started = time.perf_counter()

    try:
        with LichessBook() as lichess:
            book = BookCache(lichess)
            load_cache(book, args.cache_file)
            report = optimize(args, book)
            print(report)
            save_cache(book, args.cache_file)
    except (RepertoireError, OSError) as e:
        logger.error("%s", e)
        return 1

    logger.info("Total runtime: %.2f s", time.perf_counter() - started)
    return 0


if __name__ == "__main__":
    sys.exit(main())
