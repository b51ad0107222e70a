"""
Request/response state machine between the foreground and the background
search unit.

    IDLE --submit--> DISPATCHING --encoded--> AWAITING_RESULT
    DISPATCHING --encode failed--> FAILED(SerializationError)
    AWAITING_RESULT --MoveMade/NoMove--> APPLYING
    AWAITING_RESULT --GameError--> FAILED(error)
    AWAITING_RESULT --malformed--> FAILED(ProtocolError)
    APPLYING / FAILED --consume--> IDLE

Only one request may be outstanding. Every submission gets a new
generation number; a response tagged with an older generation is stale and
is dropped.
"""
from __future__ import annotations

import enum
import logging
import time
from typing import Callable, Optional

from tictactoe.errors import (
    ConcurrentRequestError,
    ProtocolError,
    SerializationError,
    WorkerCommunicationError,
)
from tictactoe.types import ErrorInfo
from tictactoe.wire import (
    GameError,
    GameSnapshot,
    Message,
    MoveMade,
    NoMove,
    decode_message,
    encode_snapshot,
)

logger = logging.getLogger(__name__)

# send(payload, generation); the reply must come back with the same generation.
Transport = Callable[[str, int], None]


class ProtocolState(enum.Enum):
    IDLE = "Idle"
    DISPATCHING = "Dispatching"
    AWAITING_RESULT = "AwaitingResult"
    APPLYING = "Applying"
    FAILED = "Failed"


class ComputationProtocol:
    """Tracks the single outstanding search request of one game instance."""

    def __init__(self, transport: Transport, clock: Callable[[], float] = time.monotonic) -> None:
        self.transport = transport
        self.clock = clock
        self.state: ProtocolState = ProtocolState.IDLE
        self.generation: int = 0
        self.outcome: Optional[Message] = None
        self.submitted_at: Optional[float] = None

    @property
    def busy(self) -> bool:
        """True while a request is in flight."""
        return self.state in (ProtocolState.DISPATCHING, ProtocolState.AWAITING_RESULT)

    @property
    def has_outcome(self) -> bool:
        return self.state in (ProtocolState.APPLYING, ProtocolState.FAILED)

    def submit(self, snapshot: GameSnapshot) -> int:
        """Encode and dispatch `snapshot`; returns the request generation.

        Raises ConcurrentRequestError if a request is still outstanding or
        the previous outcome has not been consumed.
        """
        if self.busy:
            raise ConcurrentRequestError(f"a search request is already outstanding ({self.state.value})")
        if self.has_outcome:
            raise ConcurrentRequestError(f"previous outcome not consumed ({self.state.value})")

        self.generation += 1
        self.state = ProtocolState.DISPATCHING
        self.submitted_at = self.clock()
        try:
            payload = encode_snapshot(snapshot)
        except SerializationError as exc:
            logger.warning("Snapshot encoding failed: %s", exc)
            self._fail(exc.to_info())
            return self.generation

        self.state = ProtocolState.AWAITING_RESULT
        logger.debug("Dispatching request #%d (%d bytes)", self.generation, len(payload))
        try:
            self.transport(payload, self.generation)
        except Exception as exc:
            logger.exception("Transport failed for request #%d", self.generation)
            self._fail(WorkerCommunicationError(f"could not reach the search worker: {exc}").to_info())
        return self.generation

    def receive(self, generation: int, payload: str) -> Optional[Message]:
        """Handle a raw response. Returns the outcome, or None if it was stale."""
        if generation != self.generation or self.state is not ProtocolState.AWAITING_RESULT:
            logger.debug("Dropping stale response #%d (current #%d, %s)",
                         generation, self.generation, self.state.value)
            return None
        try:
            msg = decode_message(payload)
        except ProtocolError as exc:
            logger.warning("Malformed response for request #%d: %s", generation, exc)
            self._fail(exc.to_info())
            return self.outcome

        if isinstance(msg, GameError):
            self._fail(msg.info)
        elif isinstance(msg, (MoveMade, NoMove)):
            self.state = ProtocolState.APPLYING
            self.outcome = msg
        else:
            self._fail(ProtocolError(f"unexpected {type(msg).__name__} message on the search channel").to_info())
        return self.outcome

    def consume(self) -> Message:
        """Hand the outcome to the caller and return to IDLE."""
        if not self.has_outcome or self.outcome is None:
            raise RuntimeError(f"no outcome to consume in state {self.state.value}")
        outcome = self.outcome
        self.outcome = None
        self.submitted_at = None
        self.state = ProtocolState.IDLE
        return outcome

    def expire(self, info: ErrorInfo) -> None:
        """Fail the in-flight request (watchdog); its eventual response becomes stale."""
        if not self.busy:
            return
        self.generation += 1
        self._fail(info)

    def invalidate(self) -> None:
        """Forget any request or outcome (reset/new game). Late responses are dropped."""
        if self.state is not ProtocolState.IDLE:
            logger.debug("Invalidating protocol in state %s", self.state.value)
        self.generation += 1
        self.state = ProtocolState.IDLE
        self.outcome = None
        self.submitted_at = None

    def elapsed(self) -> Optional[float]:
        """Seconds since the outstanding request was submitted."""
        if not self.busy or self.submitted_at is None:
            return None
        return self.clock() - self.submitted_at

    def _fail(self, info: ErrorInfo) -> None:
        self.state = ProtocolState.FAILED
        self.outcome = GameError(info)
