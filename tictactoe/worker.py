"""
Background search unit.

`handle_request` is a pure function from a serialized snapshot to a
serialized response: it keeps no state between calls and never raises.
`SearchWorker` runs it off the foreground thread, either on a daemon
thread per request or in a single-process multiprocessing pool, and posts
`(generation, response)` pairs into a queue the foreground drains.
"""
from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import threading
from typing import Any, Callable, List, Optional, Tuple

from tictactoe.engine import capped_depth, is_terminal
from tictactoe.errors import (
    GameLogicError,
    ProtocolError,
    TicTacToeError,
    WorkerCommunicationError,
)
from tictactoe.strategy import get_search_strategy
from tictactoe.types import Thinking, Waiting, is_game_over
from tictactoe.wire import (
    GameError,
    GameSnapshot,
    Message,
    MoveMade,
    NoMove,
    decode_snapshot,
    encode_message,
)

logger = logging.getLogger(__name__)

Result = Tuple[int, str]
Handler = Callable[[str], str]


def compute_response(snapshot: GameSnapshot) -> Message:
    """Search the snapshot's position. Raises TicTacToeError subclasses."""
    state = snapshot.game_state
    if is_game_over(state):
        return NoMove()
    if not isinstance(state, (Waiting, Thinking)):
        raise ProtocolError(f"snapshot in state {type(state).__name__} does not ask for a move")
    if is_terminal(snapshot.board):
        return NoMove()

    try:
        strategy = get_search_strategy(snapshot.algorithm)
    except ValueError as exc:
        raise ProtocolError(str(exc)) from exc
    depth = capped_depth(snapshot.board, snapshot.search_depth)
    move = strategy.search(snapshot.board, state.player, depth)
    if move is None:
        raise GameLogicError("search found no move on a non-terminal board")
    return MoveMade(move)


def handle_request(payload: str) -> str:
    """Serialized snapshot in, serialized MoveMade/NoMove/GameError out."""
    try:
        response = compute_response(decode_snapshot(payload))
    except TicTacToeError as exc:
        logger.warning("Search request failed: %s", exc)
        response = GameError(exc.to_info())
    except Exception as exc:
        logger.exception("Unexpected failure in search worker")
        response = GameError(GameLogicError(f"search failed: {exc}").to_info())
    return encode_message(response)


def _communication_error(exc: BaseException) -> str:
    return encode_message(GameError(WorkerCommunicationError(f"search worker failed: {exc}").to_info()))


class SearchWorker:
    """Runs search requests off the foreground thread.

    Backends:
        thread  - one daemon thread per request
        process - a single spawned worker process
        inline  - runs in the caller's thread (tests, scripted play)

    `handler` must be a module-level function for the process backend.
    """

    def __init__(self, backend: str = "thread", handler: Handler = handle_request) -> None:
        if backend not in ("thread", "process", "inline"):
            raise ValueError(f"unknown worker backend {backend!r}")
        self.backend = backend
        self.handler = handler
        self.results: "queue.Queue[Result]" = queue.Queue()
        self._pool: Optional[Any] = None

    def start(self) -> None:
        if self.backend == "process" and self._pool is None:
            ctx = mp.get_context("spawn")
            self._pool = ctx.Pool(processes=1)
            logger.debug("Started search worker process")

    def send(self, payload: str, generation: int) -> None:
        """Dispatch one request; the response is queued with `generation`."""
        if self.backend == "inline":
            self.results.put((generation, self.handler(payload)))
        elif self.backend == "process":
            self.start()
            self._pool.apply_async(
                self.handler, (payload,),
                callback=lambda response: self.results.put((generation, response)),
                error_callback=lambda exc: self.results.put((generation, _communication_error(exc))),
            )
        else:
            def worker() -> None:
                try:
                    response = self.handler(payload)
                except Exception as exc:
                    logger.exception("Search thread failed")
                    response = _communication_error(exc)
                self.results.put((generation, response))

            threading.Thread(target=worker, daemon=True).start()

    def poll(self) -> List[Result]:
        """Drain every queued response without blocking."""
        out: List[Result] = []
        while True:
            try:
                out.append(self.results.get_nowait())
            except queue.Empty:
                return out

    def wait(self, timeout: Optional[float] = None) -> Optional[Result]:
        """Block for the next response, or None after `timeout` seconds."""
        try:
            return self.results.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        if self._pool is not None:
            self._pool.terminate()
            self._pool.join()
            self._pool = None

    def __enter__(self) -> "SearchWorker":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
