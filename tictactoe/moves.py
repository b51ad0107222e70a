from __future__ import annotations

from typing import List, Optional

from tictactoe.engine import get_moves, in_bounds, winner, is_full
from tictactoe.errors import InvalidMoveError
from tictactoe.types import Board, Player, Position


class MoveValidator:
    """Validates a move before it reaches the board or the search.

    All checks raise InvalidMoveError so the controller can roll back to the
    state the move was attempted from.
    """

    @staticmethod
    def check_game_open(board: Board) -> None:
        w = winner(board)
        if w is not None:
            raise InvalidMoveError(f"the game is over: {w} has won")
        if is_full(board):
            raise InvalidMoveError("the game is over: the board is full")

    @staticmethod
    def check_turn(player: Player, expected: Optional[Player]) -> None:
        if expected is None:
            raise InvalidMoveError("no player is to move")
        if player is not expected:
            raise InvalidMoveError(f"it is {expected}'s turn, not {player}'s")

    @staticmethod
    def check_position(board: Board, position: Position) -> None:
        if not in_bounds(board, position):
            raise InvalidMoveError(f"position {position} is outside the {len(board)}x{len(board)} board")
        if board[position.row][position.col] is not None:
            raise InvalidMoveError(f"position {position} is already occupied")

    @classmethod
    def validate(cls, board: Board, player: Player, position: Position,
                 expected: Optional[Player] = None) -> None:
        """Run every check; `expected` defaults to `player` (no turn check)."""
        cls.check_game_open(board)
        cls.check_turn(player, player if expected is None else expected)
        cls.check_position(board, position)

    @classmethod
    def is_valid(cls, board: Board, player: Player, position: Position) -> bool:
        try:
            cls.validate(board, player, position)
        except InvalidMoveError:
            return False
        return True


# Convenience functional API

def legal_moves(board: Board) -> List[Position]:
    """Empty cells of an open game; empty once the game is decided."""
    if winner(board) is not None:
        return []
    return get_moves(board)
