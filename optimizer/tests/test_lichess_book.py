"""Tests for lichess_book.py"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from errors import HttpError, RepertoireError, RequestError
from lichess_book import LichessBook, book_moves_from_response, normalize_castling
from models import BookMove
from position import STARTING_FEN


def make_response(status_code: int, data: dict | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data or {}
    return resp


def make_move(uci: str, san: str, white: int, draws: int, black: int) -> dict:
    return {"uci": uci, "san": san, "white": white, "draws": draws, "black": black}


def make_explorer_response(moves: list[dict], white: int, draws: int, black: int) -> dict:
    return {"white": white, "draws": draws, "black": black, "moves": moves}


def mock_client(*responses) -> MagicMock:
    client = MagicMock(spec=httpx.Client)
    client.get.side_effect = list(responses)
    return client


def test_frequencies_are_share_of_all_games():
    data = make_explorer_response(
        [make_move("e2e4", "e4", 300, 200, 100), make_move("d2d4", "d4", 150, 100, 50)],
        white=500, draws=350, black=150,
    )
    assert book_moves_from_response(data) == [BookMove("e2e4", 0.6), BookMove("d2d4", 0.3)]


def test_frequencies_sum_to_at_most_one():
    # The explorer lists only the top moves; the rest of the games are missing
    data = make_explorer_response([make_move("e2e4", "e4", 10, 10, 10)], white=40, draws=40, black=20)
    assert sum(m.frequency for m in book_moves_from_response(data)) <= 1.0


def test_position_without_games_has_no_moves():
    assert book_moves_from_response(make_explorer_response([], 0, 0, 0)) == []


@pytest.mark.parametrize("uci,san,expected", [
    ("e1h1", "O-O", "e1g1"),
    ("e8a8", "O-O-O", "e8c8"),
    ("e1g1", "O-O", "e1g1"),
    ("h2h4", "h4", "h2h4"),
])
def test_normalize_castling(uci, san, expected):
    assert normalize_castling(uci, san) == expected


def test_moves_queries_explorer_with_fen():
    data = make_explorer_response([make_move("e2e4", "e4", 1, 1, 2)], white=1, draws=1, black=2)
    client = mock_client(make_response(200, data))
    book = LichessBook(client=client, token="")

    assert book.moves(STARTING_FEN) == [BookMove("e2e4", 1.0)]
    _, kwargs = client.get.call_args
    assert kwargs["params"]["fen"] == STARTING_FEN
    assert kwargs["params"]["variant"] == "standard"
    assert kwargs["headers"] is None


def test_token_is_sent_as_bearer():
    client = mock_client(make_response(200, make_explorer_response([], 0, 0, 0)))
    LichessBook(client=client, token="secret").moves(STARTING_FEN)
    _, kwargs = client.get.call_args
    assert kwargs["headers"] == {"Authorization": "Bearer secret"}


def test_retries_after_429_until_success():
    data = make_explorer_response([make_move("d2d4", "d4", 2, 1, 1)], white=2, draws=1, black=1)
    client = mock_client(make_response(429), make_response(429), make_response(200, data))
    book = LichessBook(client=client, token="", retry_delay=10)

    with patch("lichess_book.time.sleep") as sleep:
        moves = book.moves(STARTING_FEN)

    assert moves == [BookMove("d2d4", 1.0)]
    assert client.get.call_count == 3
    assert sleep.call_count == 2
    sleep.assert_called_with(10)


def test_other_status_codes_raise_http_error():
    client = mock_client(make_response(500))
    book = LichessBook(client=client, token="")
    with pytest.raises(HttpError) as excinfo:
        book.moves(STARTING_FEN)
    assert excinfo.value.status_code == 500
    assert client.get.call_count == 1


@pytest.mark.parametrize("failure", [
    httpx.ConnectError("connection refused"),
    httpx.ReadTimeout("timed out"),
])
def test_transport_failures_raise_request_error(failure):
    client = MagicMock(spec=httpx.Client)
    client.get.side_effect = failure
    book = LichessBook(client=client, token="")

    with pytest.raises(RequestError) as excinfo:
        book.moves(STARTING_FEN)

    assert isinstance(excinfo.value, RepertoireError)
    assert excinfo.value.url == book.url
    assert excinfo.value.__cause__ is failure


def test_context_manager_closes_client():
    client = MagicMock(spec=httpx.Client)
    with LichessBook(client=client, token=""):
        pass
    client.close.assert_called_once()
