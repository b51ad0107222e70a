"""
Generic adversarial search: minimax and negamax, each with and without
alpha-beta pruning.

Every function is parametric over the node, move and player types; game
rules are passed in as plain callables. Values are accumulated in the
extended order domain (see `tictactoe.order`) so empty folds and open
bounds never need sentinel integers.

Move-selecting entry points return None when the root has no legal move.
Ties between equally valued moves go to the move generated first.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, TypeVar, Union

from tictactoe.order import (
    NEGATIVE_INFINITY,
    POSITIVE_INFINITY,
    Extended,
    lift,
    maximum,
    minimum,
    negate,
    value,
)

logger = logging.getLogger(__name__)

Node = TypeVar('Node')
Move = TypeVar('Move')
P = TypeVar('P')

Score = Union[int, float]
Window = Union[Extended[Score], Score]


@dataclass
class SearchStats:
    """Instrumentation counters, filled in when passed as `stats=`.

    `fallbacks` counts non-terminal nodes at positive depth that produced no
    children. That only happens when move generation and the terminal test
    disagree, which points at a bug in the rules adapter.
    """
    nodes: int = 0
    leaves: int = 0
    cutoffs: int = 0
    fallbacks: int = 0
    started_at: float = field(default_factory=time.perf_counter)

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started_at

    def reset(self) -> None:
        self.nodes = self.leaves = self.cutoffs = self.fallbacks = 0
        self.started_at = time.perf_counter()

    def as_dict(self) -> Dict[str, Score]:
        return {
            "nodes": self.nodes,
            "leaves": self.leaves,
            "cutoffs": self.cutoffs,
            "fallbacks": self.fallbacks,
            "elapsed": self.elapsed,
        }


# ============================
# Minimax
# ============================
def minimax(heuristic: Callable[[Node], Score],
            get_children: Callable[[Node], Sequence[Node]],
            depth: int,
            maximizing: bool,
            node: Node,
            *,
            stats: Optional[SearchStats] = None) -> Extended[Score]:
    """Exhaustive minimax value of `node`.

    Descends to `depth == 0` or a childless node and returns the heuristic
    there. Maximizing layers take the max over children, minimizing layers
    the min.
    """
    st = stats if stats is not None else SearchStats()

    def mm(pos: Node, d: int, maxing: bool) -> Extended[Score]:
        st.nodes += 1
        if d <= 0:
            st.leaves += 1
            return value(heuristic(pos))
        children = get_children(pos)
        if not children:
            st.leaves += 1
            return value(heuristic(pos))
        if maxing:
            best: Extended[Score] = NEGATIVE_INFINITY
            for child in children:
                best = maximum(best, mm(child, d - 1, False))
            return best
        best = POSITIVE_INFINITY
        for child in children:
            best = minimum(best, mm(child, d - 1, True))
        return best

    return mm(node, depth, maximizing)


def minimax_alpha_beta(heuristic: Callable[[Node], Score],
                       get_children: Callable[[Node], Sequence[Node]],
                       depth: int,
                       alpha: Window,
                       beta: Window,
                       maximizing: bool,
                       node: Node,
                       *,
                       stats: Optional[SearchStats] = None) -> Extended[Score]:
    """Minimax with alpha-beta pruning (fail-soft).

    Alpha is what the maximizer can already guarantee, beta what the
    minimizer can. Maximizing nodes stop at a beta cutoff, minimizing nodes
    at an alpha cutoff, both as soon as alpha >= beta. Called with the
    open window (-inf, +inf) it returns exactly `minimax`'s value.
    """
    st = stats if stats is not None else SearchStats()

    def ab(pos: Node, d: int, a: Extended[Score], b: Extended[Score],
           maxing: bool) -> Extended[Score]:
        st.nodes += 1
        if d <= 0:
            st.leaves += 1
            return value(heuristic(pos))
        children = get_children(pos)
        if not children:
            st.leaves += 1
            return value(heuristic(pos))
        if maxing:
            val: Extended[Score] = NEGATIVE_INFINITY
            for child in children:
                val = maximum(val, ab(child, d - 1, a, b, False))
                a = maximum(a, val)
                if a >= b:
                    st.cutoffs += 1
                    break
            return val
        val = POSITIVE_INFINITY
        for child in children:
            val = minimum(val, ab(child, d - 1, a, b, True))
            b = minimum(b, val)
            if a >= b:
                st.cutoffs += 1
                break
        return val

    return ab(node, depth, lift(alpha), lift(beta), maximizing)


def _select_minimax_move(evaluate_child: Callable[[Node, Extended[Score], Extended[Score]], Extended[Score]],
                         get_moves: Callable[[Node], Sequence[Move]],
                         apply_move: Callable[[Node, Move], Node],
                         maximizing: bool,
                         node: Node,
                         narrow: bool) -> Optional[Move]:
    moves = get_moves(node)
    best_move: Optional[Move] = None
    best: Extended[Score] = NEGATIVE_INFINITY if maximizing else POSITIVE_INFINITY
    alpha: Extended[Score] = NEGATIVE_INFINITY
    beta: Extended[Score] = POSITIVE_INFINITY
    for move in moves:
        score = evaluate_child(apply_move(node, move), alpha, beta)
        better = score > best if maximizing else score < best
        if best_move is None or better:
            best, best_move = score, move
        if narrow:
            if maximizing:
                alpha = maximum(alpha, best)
            else:
                beta = minimum(beta, best)
    return best_move


def best_move_minimax(heuristic: Callable[[Node], Score],
                      get_moves: Callable[[Node], Sequence[Move]],
                      apply_move: Callable[[Node, Move], Node],
                      depth: int,
                      maximizing: bool,
                      node: Node,
                      *,
                      stats: Optional[SearchStats] = None) -> Optional[Move]:
    """Root move selection on top of `minimax`.

    `heuristic` scores from the maximizer's point of view; a maximizing
    root picks the highest child, a minimizing root the lowest.
    """
    def children(pos: Node) -> List[Node]:
        return [apply_move(pos, m) for m in get_moves(pos)]

    def evaluate_child(child: Node, a: Extended[Score], b: Extended[Score]) -> Extended[Score]:
        return minimax(heuristic, children, depth - 1, not maximizing, child, stats=stats)

    return _select_minimax_move(evaluate_child, get_moves, apply_move, maximizing, node, narrow=False)


def best_move_minimax_alpha_beta(heuristic: Callable[[Node], Score],
                                 get_moves: Callable[[Node], Sequence[Move]],
                                 apply_move: Callable[[Node, Move], Node],
                                 depth: int,
                                 maximizing: bool,
                                 node: Node,
                                 *,
                                 stats: Optional[SearchStats] = None) -> Optional[Move]:
    """Root move selection on top of `minimax_alpha_beta`.

    The root window narrows with the best value so far; a child that only
    ties it fails low and so never displaces the earlier move.
    """
    def children(pos: Node) -> List[Node]:
        return [apply_move(pos, m) for m in get_moves(pos)]

    def evaluate_child(child: Node, a: Extended[Score], b: Extended[Score]) -> Extended[Score]:
        return minimax_alpha_beta(heuristic, children, depth - 1, a, b, not maximizing, child, stats=stats)

    return _select_minimax_move(evaluate_child, get_moves, apply_move, maximizing, node, narrow=True)


# ============================
# Negamax
# ============================
def negamax_value(get_moves: Callable[[Node], Sequence[Move]],
                  apply_move: Callable[[P, Node, Move], Node],
                  score_node: Callable[[P, Node], Score],
                  is_terminal: Callable[[Node], bool],
                  other_player: Callable[[P], P],
                  depth: int,
                  player: P,
                  node: Node,
                  *,
                  stats: Optional[SearchStats] = None) -> Extended[Score]:
    """Negamax value of `node` from `player`'s point of view.

    Leaves (depth 0 or terminal) return `score_node(player, node)` as is;
    the negation happens one level up.
    """
    st = stats if stats is not None else SearchStats()

    def nm(pos: Node, side: P, d: int) -> Extended[Score]:
        st.nodes += 1
        if d <= 0 or is_terminal(pos):
            st.leaves += 1
            return value(score_node(side, pos))
        opponent = other_player(side)
        best: Extended[Score] = NEGATIVE_INFINITY
        for move in get_moves(pos):
            best = maximum(best, negate(nm(apply_move(side, pos, move), opponent, d - 1)))
        if best.is_negative_infinity:
            st.fallbacks += 1
            st.leaves += 1
            logger.warning("Non-terminal node produced no moves at depth %d; scoring it as a leaf", d)
            return value(score_node(side, pos))
        return best

    return nm(node, player, depth)


def negamax(get_moves: Callable[[Node], Sequence[Move]],
            apply_move: Callable[[P, Node, Move], Node],
            score_node: Callable[[P, Node], Score],
            is_terminal: Callable[[Node], bool],
            other_player: Callable[[P], P],
            depth: int,
            player: P,
            node: Node,
            *,
            stats: Optional[SearchStats] = None) -> Optional[Move]:
    """Best move for `player` by plain negamax, or None if there is none."""
    st = stats if stats is not None else SearchStats()
    st.nodes += 1
    if is_terminal(node):
        return None
    opponent = other_player(player)
    best_move: Optional[Move] = None
    best: Extended[Score] = NEGATIVE_INFINITY
    for move in get_moves(node):
        child = apply_move(player, node, move)
        score = negate(negamax_value(get_moves, apply_move, score_node, is_terminal,
                                     other_player, depth - 1, opponent, child, stats=st))
        if best_move is None or score > best:
            best, best_move = score, move
    return best_move


def negamax_alpha_beta_value(get_moves: Callable[[Node], Sequence[Move]],
                             apply_move: Callable[[P, Node, Move], Node],
                             score_node: Callable[[P, Node], Score],
                             is_terminal: Callable[[Node], bool],
                             other_player: Callable[[P], P],
                             depth: int,
                             alpha: Window,
                             beta: Window,
                             player: P,
                             node: Node,
                             *,
                             order_moves: bool = True,
                             stats: Optional[SearchStats] = None) -> Extended[Score]:
    """Negamax with alpha-beta window narrowing (fail-soft).

    Children are searched with the window (-beta, -alpha). With
    `order_moves`, each node's children are first sorted best-first by a
    one-ply look at `score_node`; the sort is stable so equal scores keep
    generation order.
    """
    st = stats if stats is not None else SearchStats()

    def nab(pos: Node, side: P, d: int, a: Extended[Score], b: Extended[Score]) -> Extended[Score]:
        st.nodes += 1
        if d <= 0 or is_terminal(pos):
            st.leaves += 1
            return value(score_node(side, pos))
        opponent = other_player(side)
        children = [apply_move(side, pos, move) for move in get_moves(pos)]
        if not children:
            st.fallbacks += 1
            st.leaves += 1
            logger.warning("Non-terminal node produced no moves at depth %d; scoring it as a leaf", d)
            return value(score_node(side, pos))
        if order_moves and len(children) > 1:
            children.sort(key=lambda c: score_node(opponent, c))
        val: Extended[Score] = NEGATIVE_INFINITY
        for child in children:
            val = maximum(val, negate(nab(child, opponent, d - 1, negate(b), negate(a))))
            a = maximum(a, val)
            if a >= b:
                st.cutoffs += 1
                break
        return val

    return nab(node, player, depth, lift(alpha), lift(beta))


def negamax_alpha_beta(get_moves: Callable[[Node], Sequence[Move]],
                       apply_move: Callable[[P, Node, Move], Node],
                       score_node: Callable[[P, Node], Score],
                       is_terminal: Callable[[Node], bool],
                       other_player: Callable[[P], P],
                       depth: int,
                       player: P,
                       node: Node,
                       *,
                       order_moves: bool = True,
                       stats: Optional[SearchStats] = None) -> Optional[Move]:
    """Best move for `player` by negamax with alpha-beta pruning.

    The root walks moves in generation order and only replaces the best
    move on a strictly greater value, so the result is the same move plain
    `negamax` picks. Interior nodes use move ordering.
    """
    st = stats if stats is not None else SearchStats()
    st.nodes += 1
    if is_terminal(node):
        return None
    opponent = other_player(player)
    best_move: Optional[Move] = None
    best: Extended[Score] = NEGATIVE_INFINITY
    alpha: Extended[Score] = NEGATIVE_INFINITY
    beta: Extended[Score] = POSITIVE_INFINITY
    for move in get_moves(node):
        child = apply_move(player, node, move)
        score = negate(negamax_alpha_beta_value(
            get_moves, apply_move, score_node, is_terminal, other_player,
            depth - 1, negate(beta), negate(alpha), opponent, child,
            order_moves=order_moves, stats=st,
        ))
        if best_move is None or score > best:
            best, best_move = score, move
        alpha = maximum(alpha, best)
    return best_move


__all__ = [
    "SearchStats",
    "minimax",
    "minimax_alpha_beta",
    "best_move_minimax",
    "best_move_minimax_alpha_beta",
    "negamax_value",
    "negamax",
    "negamax_alpha_beta_value",
    "negamax_alpha_beta",
]
