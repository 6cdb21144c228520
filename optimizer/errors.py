"""Exception types raised by the repertoire optimizer."""


class RepertoireError(Exception):
    """Base exception for all repertoire optimizer errors."""


class MoveResolutionError(RepertoireError):
    """A recorded or book move could not be resolved to a single legal move."""

    verb = "unresolvable"

    def __init__(self, fen: str, move: str):
        self.fen = fen
        self.move = move
        super().__init__(f"Move '{move}' is {self.verb} in position '{fen}'")


class IllegalMoveError(MoveResolutionError):
    verb = "illegal"


class AmbiguousMoveError(MoveResolutionError):
    verb = "ambiguous"


class HttpError(RepertoireError):
    """The opening explorer answered with a non-retryable status code."""

    def __init__(self, status_code: int, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Received unexpected HTTP status {status_code} from {url}")


class RequestError(RepertoireError):
    """The opening explorer could not be reached or did not answer in time."""

    def __init__(self, url: str, detail: str):
        self.url = url
        self.detail = detail
        super().__init__(f"Request to {url} failed: {detail}")


class PgnParseError(RepertoireError):
    """Reading a PGN file failed; the whole file is rejected."""

    def __init__(self, path, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Reading PGN file '{path}' failed: {detail}")


class CacheFormatError(RepertoireError):
    """A book cache blob could not be decoded."""


class NonFiniteFrequencyError(RepertoireError):
    """A position reached the ranking step with a NaN or infinite frequency."""

    def __init__(self, fen: str, frequency: float):
        self.fen = fen
        self.frequency = frequency
        super().__init__(f"Position '{fen}' has non-finite frequency {frequency}")
