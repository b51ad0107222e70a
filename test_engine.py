import pytest

from config import EngineSettings
from tictactoe.engine import (
    DEPTH_LIMITS,
    FOREGROUND_DEPTH_LIMITS,
    WIN_SCORE,
    apply_move,
    board_from_rows,
    board_to_rows,
    capped_depth,
    cell_weights,
    count_empty,
    default_depth,
    empty_board,
    find_best_move,
    get_moves,
    is_full,
    is_terminal,
    lines_for,
    render_board,
    score_node,
    winner,
)
from tictactoe.errors import InvalidMoveError
from tictactoe.moves import MoveValidator, legal_moves
from tictactoe.search import SearchStats
from tictactoe.strategy import STRATEGIES, get_search_strategy
from tictactoe.types import Player, Position

X, O = "X", "O"

# Full board, no three in a row
DRAWN = [[X, O, X],
         [X, O, O],
         [O, X, X]]


def test_empty_board_and_moves_order():
    board = empty_board()
    assert count_empty(board) == 9
    moves = get_moves(board)
    assert moves[0] == Position(0, 0)
    assert moves == sorted(moves)
    assert len(moves) == 9


@pytest.mark.parametrize("size", [2, 6])
def test_empty_board_rejects_unsupported_sizes(size):
    with pytest.raises(ValueError):
        empty_board(size)


def test_lines_and_weights():
    assert len(lines_for(3)) == 8
    assert len(lines_for(4)) == 10
    weights = cell_weights(3)
    assert weights[1][1] == 4
    assert weights[0][0] == 3
    assert weights[0][1] == 2


def test_winner_detection():
    assert winner(board_from_rows([[X, X, X], [O, O, None], [None] * 3])) is Player.X
    assert winner(board_from_rows([[O, X, X], [None, O, X], [None, None, O]])) is Player.O
    assert winner(board_from_rows([[X, O, None], [X, O, None], [None, O, X]])) is Player.O
    assert winner(board_from_rows(DRAWN)) is None


def test_board_rows_round_trip_and_render():
    rows = [[X, None, O], [None, X, None], [O, None, None]]
    board = board_from_rows(rows)
    assert board_to_rows(board) == rows
    assert render_board(board).splitlines()[0] == "X . O"


def test_board_from_rows_requires_square():
    with pytest.raises(ValueError):
        board_from_rows([[X, O], [None, None], [None, None]])


def test_apply_move_validates():
    board = apply_move(Player.X, empty_board(), Position(1, 1))
    assert board[1][1] is Player.X
    with pytest.raises(InvalidMoveError):
        apply_move(Player.O, board, Position(1, 1))
    with pytest.raises(InvalidMoveError):
        apply_move(Player.O, board, Position(3, 0))


def test_score_node_is_antisymmetric():
    board = board_from_rows([[X, None, None], [None, O, None], [None, None, X]])
    assert score_node(Player.X, board) == -score_node(Player.O, board)
    assert score_node(Player.X, empty_board()) == 0


def test_faster_wins_score_higher():
    quick = board_from_rows([[X, X, X], [O, O, None], [None] * 3])
    slow = board_from_rows([[X, X, X], [O, O, X], [O, X, O]])
    assert score_node(Player.X, quick) == WIN_SCORE + 4
    assert score_node(Player.X, slow) == WIN_SCORE
    assert score_node(Player.O, quick) == -(WIN_SCORE + 4)
    assert score_node(Player.X, board_from_rows(DRAWN)) == 0


# End-to-end scenarios

def test_empty_board_best_move_is_corner_or_center():
    move = find_best_move(Player.X, empty_board(), 9)
    assert move is not None
    assert move in {Position(0, 0), Position(0, 2), Position(2, 0), Position(2, 2), Position(1, 1)}


def test_takes_the_open_line():
    board = board_from_rows([[X, X, None], [O, O, None], [None] * 3])
    assert find_best_move(Player.O, board) == Position(1, 2)


def test_blocks_the_opponent():
    board = board_from_rows([[X, X, None], [None, O, None], [None] * 3])
    assert find_best_move(Player.O, board) == Position(0, 2)


def test_full_board_has_no_move():
    board = board_from_rows(DRAWN)
    assert get_moves(board) == []
    assert is_full(board) and is_terminal(board)
    assert find_best_move(Player.X, board) is None
    assert find_best_move(Player.O, board, 9) is None


def test_find_best_move_is_deterministic():
    board = board_from_rows([[X, None, None], [None, O, None], [None, None, None]])
    first = find_best_move(Player.X, board)
    for _ in range(3):
        assert find_best_move(Player.X, board) == first


def test_find_best_move_fills_stats():
    stats = SearchStats()
    find_best_move(Player.X, board_from_rows([[X, O, None], [None, O, None], [None, None, X]]), stats=stats)
    assert stats.nodes > 0 and stats.leaves > 0
    assert stats.fallbacks == 0


@pytest.mark.parametrize("rows,player", [
    ([[X, O, X], [None, O, None], [None, None, None]], Player.X),
    ([[X, None, None], [None, O, None], [None, None, X]], Player.O),
    ([[X, X, None], [O, O, None], [X, O, None]], Player.X),
    ([[O, X, None], [None, X, None], [None, None, None]], Player.O),
])
def test_all_strategies_agree(rows, player):
    board = board_from_rows(rows)
    depth = count_empty(board)
    moves = {name: get_search_strategy(name).search(board, player, depth) for name in STRATEGIES}
    assert len(set(moves.values())) == 1, moves


def test_unknown_strategy():
    with pytest.raises(ValueError):
        get_search_strategy("expectimax")


def test_ai_vs_ai_is_a_draw():
    board = empty_board()
    player = Player.X
    while not is_terminal(board):
        move = find_best_move(player, board)
        board = apply_move(player, board, move)
        player = player.other
    assert winner(board) is None


# Move validation

def test_move_validator():
    board = board_from_rows([[X, None, None], [None, None, None], [None, None, None]])
    assert MoveValidator.is_valid(board, Player.O, Position(1, 1))
    assert not MoveValidator.is_valid(board, Player.O, Position(0, 0))
    assert not MoveValidator.is_valid(board, Player.O, Position(-1, 0))
    with pytest.raises(InvalidMoveError):
        MoveValidator.validate(board, Player.X, Position(1, 1), expected=Player.O)


def test_no_moves_after_a_win():
    board = board_from_rows([[X, X, X], [O, O, None], [None] * 3])
    assert legal_moves(board) == []
    assert not MoveValidator.is_valid(board, Player.O, Position(1, 2))


# Depth limits

def test_default_depth_is_capped_by_board_size():
    assert default_depth(empty_board(3)) == 9
    assert default_depth(empty_board(4)) == DEPTH_LIMITS[4]
    assert default_depth(empty_board(5)) == DEPTH_LIMITS[5]
    assert capped_depth(empty_board(4), 25) == DEPTH_LIMITS[4]
    assert capped_depth(empty_board(4), 25, foreground=True) == FOREGROUND_DEPTH_LIMITS[4]
    assert capped_depth(board_from_rows(DRAWN), 9) == 0


@pytest.mark.parametrize("size", [4, 5])
def test_large_board_search_finishes_inside_the_watchdog(size):
    board = apply_move(Player.X, empty_board(size), Position(0, 0))
    stats = SearchStats()
    move = find_best_move(Player.O, board, stats=stats)
    assert move is not None
    assert stats.elapsed < EngineSettings().worker_timeout_seconds / 2
