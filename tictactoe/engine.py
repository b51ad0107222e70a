"""
Tic-tac-toe rules adapter: move generation, move application, terminal
test and position scoring, plus `find_best_move` wrapping the alpha-beta
negamax search.

Boards are square tuples of rows; a line is a full row, column or diagonal.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from config import get_engine_settings
from tictactoe.errors import InvalidMoveError
from tictactoe.search import SearchStats, negamax_alpha_beta
from tictactoe.types import (
    Board,
    Cell,
    DEFAULT_BOARD_SIZE,
    MAX_BOARD_SIZE,
    MIN_BOARD_SIZE,
    Player,
    Position,
    other_player,
)

logger = logging.getLogger(__name__)

Line = Tuple[Tuple[int, int], ...]

# Terminal scores dominate any positional score on supported board sizes.
WIN_SCORE: int = 100_000
DRAW_SCORE: int = 0
LINE_WEIGHT: int = 10

# Deepest search per board size that answers well inside the default watchdog.
DEPTH_LIMITS = {3: 9, 4: 4, 5: 3}
# Searches on the caller's thread (timeout fallback, idle moves) block input.
FOREGROUND_DEPTH_LIMITS = {3: 9, 4: 2, 5: 2}


# ============================
# Board tables
# ============================
@lru_cache(maxsize=None)
def lines_for(size: int) -> Tuple[Line, ...]:
    """All winning lines of a `size` x `size` board as (row, col) tuples."""
    grid = np.arange(size * size).reshape(size, size)
    index_lines = [*grid, *grid.T, grid.diagonal(), np.fliplr(grid).diagonal()]
    return tuple(
        tuple((int(i) // size, int(i) % size) for i in line)
        for line in index_lines
    )


@lru_cache(maxsize=None)
def cell_weights(size: int) -> Tuple[Tuple[int, ...], ...]:
    """Number of lines passing through each cell (center > corner > edge on 3x3)."""
    weights = np.zeros((size, size), dtype=np.int64)
    for line in lines_for(size):
        rows, cols = zip(*line)
        np.add.at(weights, (np.array(rows), np.array(cols)), 1)
    return tuple(tuple(int(w) for w in row) for row in weights)


# ============================
# Board setup and utilities
# ============================
def empty_board(size: int = DEFAULT_BOARD_SIZE) -> Board:
    if not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
        raise ValueError(f"board size must be in [{MIN_BOARD_SIZE}, {MAX_BOARD_SIZE}], got {size}")
    return tuple((None,) * size for _ in range(size))


def board_from_rows(rows: Iterable[Iterable[Optional[str]]]) -> Board:
    """Build a board from rows of 'X' / 'O' / None (or '' / '_' / ' ' for empty)."""
    def cell(v: Optional[str]) -> Cell:
        if v is None or v in ("", "_", " ", "."):
            return None
        return Player(v)

    board = tuple(tuple(cell(v) for v in row) for row in rows)
    if not board or any(len(row) != len(board) for row in board):
        raise ValueError("board must be square")
    return board


def board_to_rows(board: Board) -> List[List[Optional[str]]]:
    return [[cell.value if cell is not None else None for cell in row] for row in board]


def render_board(board: Board) -> str:
    """Plain text rendering, one row per line."""
    return "\n".join(" ".join(cell.value if cell is not None else "." for cell in row) for row in board)


def count_empty(board: Board) -> int:
    return sum(1 for row in board for cell in row if cell is None)


def in_bounds(board: Board, position: Position) -> bool:
    size = len(board)
    return 0 <= position.row < size and 0 <= position.col < size


# ============================
# Rules
# ============================
def get_moves(board: Board) -> List[Position]:
    """Every empty cell in row-major order."""
    return [
        Position(r, c)
        for r, row in enumerate(board)
        for c, cell in enumerate(row)
        if cell is None
    ]


def place(player: Player, board: Board, position: Position) -> Board:
    """Put `player` on `position` without validation (search hot path)."""
    row = board[position.row]
    new_row = row[:position.col] + (player,) + row[position.col + 1:]
    return board[:position.row] + (new_row,) + board[position.row + 1:]


def apply_move(player: Player, board: Board, position: Position) -> Board:
    """Validated move application. Raises InvalidMoveError."""
    if not in_bounds(board, position):
        raise InvalidMoveError(f"position {position} is outside the {len(board)}x{len(board)} board")
    if board[position.row][position.col] is not None:
        raise InvalidMoveError(f"position {position} is already occupied")
    return place(player, board, position)


@lru_cache(maxsize=65536)
def winner(board: Board) -> Optional[Player]:
    """The player owning a complete line, if any."""
    for line in lines_for(len(board)):
        r, c = line[0]
        first = board[r][c]
        if first is not None and all(board[rr][cc] is first for rr, cc in line[1:]):
            return first
    return None


def is_full(board: Board) -> bool:
    return all(cell is not None for row in board for cell in row)


def is_terminal(board: Board) -> bool:
    return winner(board) is not None or is_full(board)


@lru_cache(maxsize=200_000)
def score_node(player: Player, board: Board) -> int:
    """Score `board` from `player`'s point of view.

    Terminal boards score WIN_SCORE plus the number of empty cells for a win
    (so faster wins rank higher), the negation of that for a loss, and
    DRAW_SCORE for a full board. Other boards combine cell weights with
    open-line counts; the result is antisymmetric in the two players.
    """
    empties = count_empty(board)
    w = winner(board)
    if w is not None:
        return WIN_SCORE + empties if w is player else -(WIN_SCORE + empties)
    if empties == 0:
        return DRAW_SCORE

    size = len(board)
    weights = cell_weights(size)
    score = 0
    for r in range(size):
        for c in range(size):
            cell = board[r][c]
            if cell is player:
                score += weights[r][c]
            elif cell is not None:
                score -= weights[r][c]

    for line in lines_for(size):
        own = opp = 0
        for r, c in line:
            cell = board[r][c]
            if cell is player:
                own += 1
            elif cell is not None:
                opp += 1
        if own and not opp:
            score += LINE_WEIGHT * own * own
        elif opp and not own:
            score -= LINE_WEIGHT * opp * opp
    return score


# ============================
# Search entry point
# ============================
def capped_depth(board: Board, configured: int, foreground: bool = False) -> int:
    """`configured` limited by the empty cells and by the per-size depth limit."""
    limits = FOREGROUND_DEPTH_LIMITS if foreground else DEPTH_LIMITS
    return min(count_empty(board), configured, limits[len(board)])


def default_depth(board: Board) -> int:
    """Empty cells, capped by the configured search depth and the board size."""
    return capped_depth(board, get_engine_settings().search_depth)


def find_best_move(player: Player, board: Board, depth: Optional[int] = None,
                   *, order_moves: bool = True,
                   stats: Optional[SearchStats] = None) -> Optional[Position]:
    """Best move for `player` by alpha-beta negamax, or None if the game is over.

    With the default depth a 3x3 board is searched to the end of the game;
    larger boards stop at `DEPTH_LIMITS`.
    """
    if depth is None:
        depth = default_depth(board)
    st = stats if stats is not None else SearchStats()
    move = negamax_alpha_beta(
        get_moves, place, score_node, is_terminal, other_player,
        depth, player, board, order_moves=order_moves, stats=st,
    )
    logger.debug("find_best_move %s depth=%d -> %s %s", player, depth, move, st.as_dict())
    return move


def cache_info() -> Sequence[Tuple[str, object]]:
    return (("score_node", score_node.cache_info()), ("winner", winner.cache_info()))


def clear_caches() -> None:
    score_node.cache_clear()
    winner.cache_clear()


__all__ = [
    "WIN_SCORE",
    "DRAW_SCORE",
    "lines_for",
    "cell_weights",
    "empty_board",
    "board_from_rows",
    "board_to_rows",
    "render_board",
    "count_empty",
    "in_bounds",
    "get_moves",
    "place",
    "apply_move",
    "winner",
    "is_full",
    "is_terminal",
    "score_node",
    "DEPTH_LIMITS",
    "FOREGROUND_DEPTH_LIMITS",
    "capped_depth",
    "default_depth",
    "find_best_move",
    "cache_info",
    "clear_caches",
]
