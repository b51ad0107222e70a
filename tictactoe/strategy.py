"""
Search strategy interface and adapters binding the generic search
functions to the tic-tac-toe rules.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Type

from tictactoe.engine import find_best_move, get_moves, is_terminal, place, score_node
from tictactoe.search import (
    SearchStats,
    best_move_minimax,
    best_move_minimax_alpha_beta,
    negamax,
)
from tictactoe.types import Board, Player, Position, other_player

# Minimax works on nodes that carry the side to move.
MinimaxNode = Tuple[Board, Player]


def _node_moves(node: MinimaxNode) -> List[Position]:
    board, _ = node
    if is_terminal(board):
        return []
    return get_moves(board)


def _node_apply(node: MinimaxNode, position: Position) -> MinimaxNode:
    board, side = node
    return place(side, board, position), side.other


class SearchStrategy(ABC):
    """Abstract interface for search strategies."""

    name: str = ""

    @abstractmethod
    def search(self, board: Board, player: Player, depth: int,
               stats: Optional[SearchStats] = None) -> Optional[Position]:  # pragma: no cover
        raise NotImplementedError


class NegamaxAlphaBetaStrategy(SearchStrategy):
    name = "negamax_alpha_beta"

    def __init__(self, order_moves: bool = True) -> None:
        self.order_moves = order_moves

    def search(self, board: Board, player: Player, depth: int,
               stats: Optional[SearchStats] = None) -> Optional[Position]:
        return find_best_move(player, board, depth, order_moves=self.order_moves, stats=stats)


class NegamaxStrategy(SearchStrategy):
    name = "negamax"

    def search(self, board: Board, player: Player, depth: int,
               stats: Optional[SearchStats] = None) -> Optional[Position]:
        return negamax(get_moves, place, score_node, is_terminal, other_player,
                       depth, player, board, stats=stats)


class MinimaxStrategy(SearchStrategy):
    """Minimax with `player` as the maximizer."""
    name = "minimax"

    def search(self, board: Board, player: Player, depth: int,
               stats: Optional[SearchStats] = None) -> Optional[Position]:
        return best_move_minimax(lambda n: score_node(player, n[0]), _node_moves, _node_apply,
                                 depth, True, (board, player), stats=stats)


class MinimaxAlphaBetaStrategy(SearchStrategy):
    name = "minimax_alpha_beta"

    def search(self, board: Board, player: Player, depth: int,
               stats: Optional[SearchStats] = None) -> Optional[Position]:
        return best_move_minimax_alpha_beta(lambda n: score_node(player, n[0]), _node_moves, _node_apply,
                                            depth, True, (board, player), stats=stats)


STRATEGIES: Dict[str, Type[SearchStrategy]] = {
    cls.name: cls
    for cls in (NegamaxAlphaBetaStrategy, NegamaxStrategy, MinimaxStrategy, MinimaxAlphaBetaStrategy)
}


def get_search_strategy(name: str = NegamaxAlphaBetaStrategy.name) -> SearchStrategy:
    """Factory for a search strategy by name (default: alpha-beta negamax)."""
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"unknown search algorithm {name!r}; expected one of {sorted(STRATEGIES)}") from None


__all__ = [
    "SearchStrategy",
    "NegamaxAlphaBetaStrategy",
    "NegamaxStrategy",
    "MinimaxStrategy",
    "MinimaxAlphaBetaStrategy",
    "STRATEGIES",
    "get_search_strategy",
]
