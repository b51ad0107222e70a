"""
Exception hierarchy. Each exception maps onto one ErrorKind so that any
failure can be turned into a structured ErrorInfo for the game state.
"""
from __future__ import annotations

from tictactoe.types import ErrorInfo, ErrorKind


class TicTacToeError(Exception):
    """Base class for recoverable game and protocol errors."""

    kind: ErrorKind = ErrorKind.GAME_LOGIC
    recoverable: bool = True

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(message=str(self), kind=self.kind, recoverable=self.recoverable)


class InvalidMoveError(TicTacToeError):
    kind = ErrorKind.INVALID_MOVE


class GameLogicError(TicTacToeError):
    kind = ErrorKind.GAME_LOGIC


class ProtocolError(TicTacToeError):
    kind = ErrorKind.PROTOCOL


class SerializationError(TicTacToeError):
    kind = ErrorKind.SERIALIZATION


class SearchTimeoutError(TicTacToeError):
    kind = ErrorKind.TIMEOUT


class WorkerCommunicationError(TicTacToeError):
    kind = ErrorKind.WORKER_COMMUNICATION


class ConcurrentRequestError(RuntimeError):
    """A second search was submitted while one is still outstanding.

    This is a programming error, not a game error, and is never converted
    into a game state.
    """


__all__ = [
    "TicTacToeError",
    "InvalidMoveError",
    "GameLogicError",
    "ProtocolError",
    "SerializationError",
    "SearchTimeoutError",
    "WorkerCommunicationError",
    "ConcurrentRequestError",
]
