"""
Type definitions for the tic-tac-toe engine.

This module provides:
- Player and Position value types
- Board type alias and validation helpers
- The GameState variants driven by the game controller
- Error descriptors carried by Error states and GameError messages
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


class Player(str, enum.Enum):
    """The two symmetric roles. Values double as wire tags."""
    X = "X"
    O = "O"

    @property
    def other(self) -> "Player":
        return Player.O if self is Player.X else Player.X

    def __str__(self) -> str:
        return self.value


def other_player(player: Player) -> Player:
    return player.other


@dataclass(frozen=True, order=True)
class Position:
    """A cell coordinate, zero-based."""
    row: int
    col: int

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


# Basic type aliases
Cell = Optional[Player]  # None == empty
Row = Tuple[Cell, ...]
Board = Tuple[Row, ...]  # rows of cells, square, immutable


@dataclass(frozen=True)
class WindowSize:
    width: int
    height: int


class ErrorKind(str, enum.Enum):
    """Error tags. Values are the wire names."""
    INVALID_MOVE = "InvalidMove"
    GAME_LOGIC = "GameLogicError"
    PROTOCOL = "ProtocolError"
    SERIALIZATION = "SerializationError"
    TIMEOUT = "TimeoutError"
    WORKER_COMMUNICATION = "WorkerCommunicationError"


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    kind: ErrorKind
    recoverable: bool = True


# ----------------
# Game state
# ----------------
@dataclass(frozen=True)
class Waiting:
    """A human player is to move."""
    player: Player


@dataclass(frozen=True)
class Thinking:
    """The AI is computing a move for `player`."""
    player: Player


@dataclass(frozen=True)
class Winner:
    player: Player


@dataclass(frozen=True)
class Draw:
    pass


@dataclass(frozen=True)
class Error:
    info: ErrorInfo


GameState = Union[Waiting, Thinking, Winner, Draw, Error]


def active_player(state: GameState) -> Optional[Player]:
    """Player to move for Waiting/Thinking states, else None."""
    if isinstance(state, (Waiting, Thinking)):
        return state.player
    return None


def is_game_over(state: GameState) -> bool:
    return isinstance(state, (Winner, Draw))


# Utility functions for type checking
def is_valid_board(board: Any) -> bool:
    """Check if an object is a square board of Player/None cells."""
    if not isinstance(board, tuple) or not board:
        return False
    size = len(board)
    return all(
        isinstance(row, tuple) and len(row) == size
        and all(cell is None or isinstance(cell, Player) for cell in row)
        for row in board
    )


def is_valid_player(player: Any) -> bool:
    return isinstance(player, Player)


# Constants
DEFAULT_BOARD_SIZE = 3
MIN_BOARD_SIZE = 3
MAX_BOARD_SIZE = 5
