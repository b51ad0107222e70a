"""
Game controller: the state machine that decides when search runs.

The controller owns the board and the GameState. Human moves are applied
directly; AI turns put the game into Thinking and hand a snapshot to the
background worker through the ComputationProtocol. Responses are picked up
by `poll()` (or `wait()`) on the foreground thread.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, NamedTuple, Optional

from config import TicTacToeConfig, get_config
from tictactoe.engine import capped_depth, empty_board, find_best_move, is_full, is_terminal, place, winner
from tictactoe.errors import GameLogicError, InvalidMoveError, SearchTimeoutError
from tictactoe.moves import MoveValidator, legal_moves
from tictactoe.protocol import ComputationProtocol, ProtocolState
from tictactoe.types import (
    Board,
    Draw,
    Error,
    ErrorInfo,
    ErrorKind,
    GameState,
    Player,
    Position,
    Thinking,
    Waiting,
    WindowSize,
    Winner,
    active_player,
)
from tictactoe.wire import (
    ColorSchemeChanged,
    GameError,
    GameSnapshot,
    Message,
    NoMove,
    Resize,
    Tick,
)
from tictactoe.worker import SearchWorker

logger = logging.getLogger(__name__)


class HistoryEntry(NamedTuple):
    board: Board
    state: GameState
    last_move: Optional[Position]
    last_move_at: Optional[float]


class GameController:
    """Manages one game instance: board, turns, AI dispatch, history and recovery."""

    def __init__(self, config: Optional[TicTacToeConfig] = None,
                 worker: Optional[SearchWorker] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.config = config or get_config()
        rules = self.config.rules
        self.size: int = rules.board_size
        self.first_player = Player(rules.first_player)
        self.human_player: Optional[Player] = Player(rules.human_player) if rules.human_player else None

        # Passthrough UI state
        self.color_scheme: str = self.config.ui.color_scheme
        self.window_size = WindowSize(self.config.ui.window_width, self.config.ui.window_height)

        self.clock = clock
        self.worker = worker or SearchWorker(self.config.engine.worker_backend)
        self.protocol = ComputationProtocol(self.worker.send, clock=clock)

        self.board: Board = empty_board(self.size)
        self.state: GameState = Waiting(self.first_player)
        self.last_move: Optional[Position] = None
        self.history: List[HistoryEntry] = []
        self.created_at: Optional[float] = None
        self.last_move_at: Optional[float] = None
        self._rollback: Optional[GameState] = None
        self._timed_out: Optional[Player] = None
        self.new_game()

    # -------- Queries --------

    @property
    def current_player(self) -> Optional[Player]:
        return active_player(self.state)

    @property
    def moves_played(self) -> int:
        return len(self.history)

    def is_ai(self, player: Player) -> bool:
        return self.human_player is None or player is not self.human_player

    def legal_moves(self) -> List[Position]:
        return legal_moves(self.board)

    def search_depth(self, foreground: bool = False) -> int:
        """Configured depth capped for this board; `foreground` for searches that block input."""
        return capped_depth(self.board, self.config.engine.search_depth, foreground)

    def snapshot(self) -> GameSnapshot:
        """Self-contained copy of everything the worker (and the UI) needs."""
        engine = self.config.engine
        return GameSnapshot(
            board=self.board,
            game_state=self.state,
            search_depth=self.search_depth(),
            algorithm=engine.algorithm,
            human_player=self.human_player,
            last_move=self.last_move,
            moves_played=self.moves_played,
            color_scheme=self.color_scheme,
            window_size=self.window_size,
            created_at=self.created_at,
            last_move_at=self.last_move_at,
        )

    # -------- Lifecycle --------

    def new_game(self) -> GameState:
        """Fresh board; passthrough UI state is kept. Any in-flight search becomes stale."""
        self.protocol.invalidate()
        self.board = empty_board(self.size)
        self.history.clear()
        self.last_move = None
        self.created_at = self.last_move_at = self.clock()
        self._rollback = None
        self._timed_out = None
        logger.info("New game: %s opens, human plays %s", self.first_player,
                    self.human_player if self.human_player else "nobody")
        self._begin_turn(self.first_player)
        return self.state

    def close(self) -> None:
        self.worker.close()

    def __enter__(self) -> "GameController":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -------- Moves --------

    def play(self, position: Position) -> bool:
        """Apply a human move. Invalid moves put the game in an InvalidMove error state."""
        state = self.state
        if isinstance(state, Thinking):
            logger.debug("Ignoring input while %s is thinking", state.player)
            return False
        if isinstance(state, Error):
            logger.debug("Ignoring input in error state: %s", state.info.message)
            return False

        player = active_player(state)
        try:
            MoveValidator.check_game_open(self.board)
            if player is None:
                raise InvalidMoveError("the game is over")
            MoveValidator.check_position(self.board, position)
        except InvalidMoveError as exc:
            self._raise_error(exc.to_info(), rollback=state)
            return False

        self._apply(player, position)
        return True

    def undo(self) -> bool:
        """Take back moves up to the previous human turn."""
        if not self.config.rules.allow_undo:
            return False
        if isinstance(self.state, Thinking) or self.protocol.busy:
            return False
        # Nothing to take back before the first human move.
        if not any(isinstance(entry.state, Waiting) for entry in self.history):
            return False

        entry = self.history.pop()
        while not isinstance(entry.state, Waiting):
            entry = self.history.pop()

        self.protocol.invalidate()
        self.board = entry.board
        self.last_move = entry.last_move
        self.last_move_at = entry.last_move_at
        self._rollback = None
        self._timed_out = None
        self.state = entry.state
        return True

    def _apply(self, player: Player, position: Position) -> None:
        self.history.append(HistoryEntry(self.board, self.state, self.last_move, self.last_move_at))
        self.board = place(player, self.board, position)
        self.last_move = position
        self.last_move_at = self.clock()
        logger.debug("%s plays %s", player, position)

        if is_terminal(self.board):
            self._settle()
        else:
            self._begin_turn(player.other)

    def _begin_turn(self, player: Player) -> None:
        if not self.is_ai(player):
            self.state = Waiting(player)
            return
        self.state = Thinking(player)
        self.protocol.submit(self.snapshot())
        if self.protocol.state is ProtocolState.FAILED:
            outcome = self.protocol.consume()
            self._raise_error(outcome.info if isinstance(outcome, GameError)
                              else GameLogicError("dispatch failed").to_info())

    def _settle(self) -> None:
        w = winner(self.board)
        if w is not None:
            self.state = Winner(w)
            logger.info("%s wins after %d moves", w, self.moves_played)
        elif is_full(self.board):
            self.state = Draw()
            logger.info("Draw after %d moves", self.moves_played)
        else:
            self._raise_error(GameLogicError("game settled on an undecided board").to_info())

    def _raise_error(self, info: ErrorInfo, rollback: Optional[GameState] = None) -> None:
        self._rollback = rollback
        self.state = Error(info)
        log = logger.info if info.kind is ErrorKind.INVALID_MOVE else logger.warning
        log("%s: %s", info.kind.value, info.message)

    # -------- Worker responses --------

    def poll(self) -> GameState:
        """Apply every response the worker has produced so far."""
        for generation, payload in self.worker.poll():
            self.receive(generation, payload)
        return self.state

    def wait(self, timeout: Optional[float] = None) -> GameState:
        """Block until no AI is thinking (or `timeout` seconds pass)."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while isinstance(self.state, Thinking):
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                break
            result = self.worker.wait(remaining)
            if result is None:
                break
            self.receive(*result)
        return self.state

    def receive(self, generation: int, payload: str) -> None:
        """Feed one raw worker response through the protocol and apply the outcome."""
        if self.protocol.receive(generation, payload) is None:
            return
        outcome = self.protocol.consume()
        if isinstance(outcome, GameError):
            self._raise_error(outcome.info)
            return

        state = self.state
        if not isinstance(state, Thinking):
            logger.warning("Dropping %s received in state %s", type(outcome).__name__, type(state).__name__)
            return
        if isinstance(outcome, NoMove):
            if is_terminal(self.board):
                self._settle()
            else:
                self._raise_error(GameLogicError("search found no move on a non-terminal board").to_info())
            return

        try:
            MoveValidator.check_position(self.board, outcome.position)
        except InvalidMoveError as exc:
            self._raise_error(GameLogicError(f"worker returned an illegal move: {exc}").to_info())
            return
        self._apply(state.player, outcome.position)

    # -------- Timers and passthrough messages --------

    def tick(self, now: Optional[float] = None) -> GameState:
        """Run the worker watchdog and the idle-move policy."""
        now = self.clock() if now is None else now
        engine = self.config.engine

        if isinstance(self.state, Thinking) and self.protocol.busy and engine.worker_timeout_seconds > 0:
            started = self.protocol.submitted_at
            if started is not None and now - started >= engine.worker_timeout_seconds:
                player = self.state.player
                logger.warning("Search for %s exceeded %.1fs", player, engine.worker_timeout_seconds)
                self.protocol.expire(SearchTimeoutError(
                    f"no response from the search worker within {engine.worker_timeout_seconds:g}s"
                ).to_info())
                outcome = self.protocol.consume()
                self._timed_out = player
                if isinstance(outcome, GameError):
                    self._raise_error(outcome.info)
                return self.state

        if (isinstance(self.state, Waiting) and engine.idle_move_seconds > 0
                and self.last_move_at is not None and now - self.last_move_at >= engine.idle_move_seconds):
            player = self.state.player
            move = find_best_move(player, self.board, self.search_depth(foreground=True))
            if move is not None:
                logger.info("%s idle for %.1fs; playing %s", player, now - self.last_move_at, move)
                self._apply(player, move)
        return self.state

    def handle_message(self, msg: Message) -> GameState:
        """Route a passthrough message from the UI channel."""
        if isinstance(msg, Resize):
            self.window_size = WindowSize(msg.width, msg.height)
        elif isinstance(msg, ColorSchemeChanged):
            self.color_scheme = msg.color_scheme
        elif isinstance(msg, Tick):
            self.tick(msg.now)
        else:
            logger.warning("Ignoring %s on the UI channel", type(msg).__name__)
        return self.state

    # -------- Recovery --------

    def recover(self) -> GameState:
        """Leave an Error state.

        InvalidMove rolls back to the state the move was tried from; a
        timeout falls back to a synchronous search for the stalled player;
        anything else starts a fresh game.
        """
        state = self.state
        if not isinstance(state, Error):
            return state
        kind = state.info.kind

        if kind is ErrorKind.INVALID_MOVE and self._rollback is not None:
            self.state = self._rollback
            self._rollback = None
        elif kind is ErrorKind.TIMEOUT and self._timed_out is not None:
            player = self._timed_out
            self._timed_out = None
            self.state = Thinking(player)
            move = find_best_move(player, self.board, self.search_depth(foreground=True))
            if move is None:
                self._settle()
            else:
                logger.info("Synchronous fallback move for %s: %s", player, move)
                self._apply(player, move)
        else:
            logger.info("Resetting game after %s", kind.value)
            self.new_game()
        return self.state


__all__ = ["GameController", "HistoryEntry"]
