"""
Opening book backed by the Lichess Opening Explorer.

Opponent move frequencies come from the Lichess games database (standard
chess, blitz/rapid/classical, rated 1600+).

Usage:
  LICHESS_TOKEN=xxx optimize-repertoire -w white.pgn   # token raises the rate limit
"""

import logging
import os
import time

import httpx

from errors import HttpError, RequestError
from models import BookMove

LICHESS_API = os.environ.get("LICHESS_EXPLORER_URL", "https://explorer.lichess.ovh/lichess")
RETRY_DELAY = float(os.environ.get("LICHESS_RETRY_DELAY", "10"))
MOVE_COUNT = 20
SPEEDS = "blitz,rapid,classical"
RATINGS = "1600,1800,2000,2200,2500"

logger = logging.getLogger(__name__)


def normalize_castling(uci: str, san: str) -> str:
    """Lichess writes castling as king-takes-rook (e1h1); play it as e1g1."""
    if san.startswith("O-O"):
        return uci.replace("a", "c").replace("h", "g")
    return uci


def book_moves_from_response(data: dict) -> list[BookMove]:
    """Frequency of a move = games with that move / games in the position."""
    total = data.get("white", 0) + data.get("draws", 0) + data.get("black", 0)
    if not total:
        return []
    moves = []
    for move_data in data.get("moves", []):
        games = move_data.get("white", 0) + move_data.get("draws", 0) + move_data.get("black", 0)
        uci = normalize_castling(move_data["uci"], move_data.get("san", ""))
        moves.append(BookMove(uci=uci, frequency=games / total))
    return moves


class LichessBook:
    """Synchronous explorer client. Waits and retries for as long as it is rate limited."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        token: str | None = None,
        retry_delay: float = RETRY_DELAY,
        url: str = LICHESS_API,
    ):
        self.client = client or httpx.Client(timeout=30.0)
        self.token = token if token is not None else os.environ.get("LICHESS_TOKEN")
        self.retry_delay = retry_delay
        self.url = url

    def params(self, fen: str) -> dict:
        return {
            "fen": fen,
            "variant": "standard",
            "moves": MOVE_COUNT,
            "speeds": SPEEDS,
            "ratings": RATINGS,
        }

    def fetch(self, fen: str) -> dict:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        while True:
            try:
                resp = self.client.get(self.url, params=self.params(fen), headers=headers)
            except httpx.HTTPError as e:
                logger.error("Error accessing Lichess API: %s", e)
                raise RequestError(self.url, str(e)) from e
            if resp.status_code == 429:
                logger.info("Rate limited by Lichess; retrying in %.0f s", self.retry_delay)
                time.sleep(self.retry_delay)
                continue
            if resp.status_code != 200:
                logger.error("Error accessing Lichess API: HTTP %s", resp.status_code)
                raise HttpError(resp.status_code, self.url)
            return resp.json()

    def moves(self, fen: str) -> list[BookMove]:
        logger.debug("Querying Lichess for %s", fen)
        return book_moves_from_response(self.fetch(fen))

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
