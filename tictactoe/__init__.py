"""Tic-tac-toe package: search engine, rules adapter and background search protocol.

Usage examples:
    from tictactoe import empty_board, find_best_move, Player
    from tictactoe import GameController
    from tictactoe import negamax_alpha_beta, minimax
"""
from __future__ import annotations

# Ordering domain
from .order import Extended, NEGATIVE_INFINITY, POSITIVE_INFINITY, value

# Generic search
from .search import (
    SearchStats,
    minimax,
    minimax_alpha_beta,
    negamax,
    negamax_alpha_beta,
)

# Rules
from .types import Player, Position, Board, Waiting, Thinking, Winner, Draw, Error, ErrorInfo, ErrorKind
from .engine import (
    empty_board,
    board_from_rows,
    render_board,
    get_moves,
    apply_move,
    winner,
    is_terminal,
    score_node,
    find_best_move,
)
from .strategy import SearchStrategy, get_search_strategy

# Background search
from .wire import GameSnapshot, MoveMade, NoMove, GameError, encode_snapshot, decode_message
from .protocol import ComputationProtocol, ProtocolState
from .worker import SearchWorker, handle_request
from .game import GameController
