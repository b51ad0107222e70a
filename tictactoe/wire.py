"""
Wire format for the foreground/background boundary.

Requests carry a self-contained GameSnapshot; responses are tagged
messages. Both travel as JSON text with camelCase keys. Pydantic models
validate every decoded payload: anything undecodable becomes a
ProtocolError, anything unencodable a SerializationError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from tictactoe.errors import ProtocolError, SerializationError
from tictactoe.types import (
    MIN_BOARD_SIZE,
    MAX_BOARD_SIZE,
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
)

logger = logging.getLogger(__name__)


# ----------------
# Domain messages
# ----------------
@dataclass(frozen=True)
class GameSnapshot:
    """Everything the background unit needs for one search.

    `color_scheme` and `window_size` belong to the UI layer; they are carried
    unchanged and never interpreted here.
    """
    board: Board
    game_state: GameState
    search_depth: int
    algorithm: str = "negamax_alpha_beta"
    human_player: Optional[Player] = None
    last_move: Optional[Position] = None
    moves_played: int = 0
    color_scheme: str = "Light"
    window_size: Optional[WindowSize] = None
    created_at: Optional[float] = None
    last_move_at: Optional[float] = None


@dataclass(frozen=True)
class MoveMade:
    position: Position


@dataclass(frozen=True)
class NoMove:
    """The position has no legal move; the game is over."""


@dataclass(frozen=True)
class GameError:
    info: ErrorInfo


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    now: float


@dataclass(frozen=True)
class ColorSchemeChanged:
    color_scheme: str


Message = Union[MoveMade, NoMove, GameError, Resize, Tick, ColorSchemeChanged]
SEARCH_RESPONSES = (MoveMade, NoMove, GameError)


# ----------------
# Wire models
# ----------------
class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)


class PositionWire(_WireModel):
    row: int = Field(ge=0)
    col: int = Field(ge=0)


class WindowSizeWire(_WireModel):
    width: int = Field(ge=0)
    height: int = Field(ge=0)


class ErrorInfoWire(_WireModel):
    message: str
    error_kind: ErrorKind
    recoverable: bool


class WaitingWire(_WireModel):
    type: Literal["Waiting"]
    player: Player


class ThinkingWire(_WireModel):
    type: Literal["Thinking"]
    player: Player


class WinnerWire(_WireModel):
    type: Literal["Winner"]
    player: Player


class DrawWire(_WireModel):
    type: Literal["Draw"]


class ErrorWire(_WireModel):
    type: Literal["Error"]
    error_info: ErrorInfoWire


GameStateWire = Annotated[
    Union[WaitingWire, ThinkingWire, WinnerWire, DrawWire, ErrorWire],
    Field(discriminator="type"),
]


class SnapshotWire(_WireModel):
    board: List[List[Optional[Player]]]
    game_state: GameStateWire
    search_depth: int = Field(ge=0)
    algorithm: str = "negamax_alpha_beta"
    human_player: Optional[Player] = None
    last_move: Optional[PositionWire] = None
    moves_played: int = Field(default=0, ge=0)
    color_scheme: str = "Light"
    window_size: Optional[WindowSizeWire] = None
    created_at: Optional[float] = None
    last_move_at: Optional[float] = None

    @field_validator('board')
    @classmethod
    def validate_board(cls, v):
        size = len(v)
        if not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
            raise ValueError(f"board must have {MIN_BOARD_SIZE}..{MAX_BOARD_SIZE} rows, got {size}")
        if any(len(row) != size for row in v):
            raise ValueError("board must be square")
        return v


class MoveMadeWire(_WireModel):
    type: Literal["MoveMade"]
    position: PositionWire


class NoMoveWire(_WireModel):
    type: Literal["NoMove"]


class GameErrorWire(_WireModel):
    type: Literal["GameError"]
    message: str
    error_kind: ErrorKind
    recoverable: bool


class ResizeWire(_WireModel):
    type: Literal["Resize"]
    width: int = Field(ge=0)
    height: int = Field(ge=0)


class TickWire(_WireModel):
    type: Literal["Tick"]
    now: float


class ColorSchemeChangedWire(_WireModel):
    type: Literal["ColorSchemeChanged"]
    color_scheme: str


MessageWire = Annotated[
    Union[MoveMadeWire, NoMoveWire, GameErrorWire, ResizeWire, TickWire, ColorSchemeChangedWire],
    Field(discriminator="type"),
]

_MESSAGE_ADAPTER: TypeAdapter[Any] = TypeAdapter(MessageWire)


# ----------------
# Domain <-> wire
# ----------------
def _position_to_wire(p: Position) -> dict:
    return {"row": p.row, "col": p.col}


def _error_to_wire(info: ErrorInfo) -> dict:
    return {"message": info.message, "errorKind": info.kind, "recoverable": info.recoverable}


def _state_to_wire(state: GameState) -> dict:
    if isinstance(state, (Waiting, Thinking, Winner)):
        return {"type": type(state).__name__, "player": state.player}
    if isinstance(state, Draw):
        return {"type": "Draw"}
    if isinstance(state, Error):
        return {"type": "Error", "errorInfo": _error_to_wire(state.info)}
    raise TypeError(f"not a game state: {state!r}")


def _state_from_wire(w: Any) -> GameState:
    if isinstance(w, WaitingWire):
        return Waiting(w.player)
    if isinstance(w, ThinkingWire):
        return Thinking(w.player)
    if isinstance(w, WinnerWire):
        return Winner(w.player)
    if isinstance(w, DrawWire):
        return Draw()
    return Error(ErrorInfo(w.error_info.message, w.error_info.error_kind, w.error_info.recoverable))


def _message_to_wire(msg: Message) -> dict:
    if isinstance(msg, MoveMade):
        return {"type": "MoveMade", "position": _position_to_wire(msg.position)}
    if isinstance(msg, NoMove):
        return {"type": "NoMove"}
    if isinstance(msg, GameError):
        return {"type": "GameError", **_error_to_wire(msg.info)}
    if isinstance(msg, Resize):
        return {"type": "Resize", "width": msg.width, "height": msg.height}
    if isinstance(msg, Tick):
        return {"type": "Tick", "now": msg.now}
    if isinstance(msg, ColorSchemeChanged):
        return {"type": "ColorSchemeChanged", "colorScheme": msg.color_scheme}
    raise TypeError(f"not a message: {msg!r}")


def _message_from_wire(w: Any) -> Message:
    if isinstance(w, MoveMadeWire):
        return MoveMade(Position(w.position.row, w.position.col))
    if isinstance(w, NoMoveWire):
        return NoMove()
    if isinstance(w, GameErrorWire):
        return GameError(ErrorInfo(w.message, w.error_kind, w.recoverable))
    if isinstance(w, ResizeWire):
        return Resize(w.width, w.height)
    if isinstance(w, TickWire):
        return Tick(w.now)
    return ColorSchemeChanged(w.color_scheme)


# ----------------
# Public API
# ----------------
def encode_snapshot(snapshot: GameSnapshot) -> str:
    """Serialize a snapshot to JSON text. Raises SerializationError."""
    try:
        model = SnapshotWire.model_validate({
            "board": [list(row) for row in snapshot.board],
            "gameState": _state_to_wire(snapshot.game_state),
            "searchDepth": snapshot.search_depth,
            "algorithm": snapshot.algorithm,
            "humanPlayer": snapshot.human_player,
            "lastMove": _position_to_wire(snapshot.last_move) if snapshot.last_move else None,
            "movesPlayed": snapshot.moves_played,
            "colorScheme": snapshot.color_scheme,
            "windowSize": (
                {"width": snapshot.window_size.width, "height": snapshot.window_size.height}
                if snapshot.window_size else None
            ),
            "createdAt": snapshot.created_at,
            "lastMoveAt": snapshot.last_move_at,
        })
        return model.model_dump_json(by_alias=True)
    except (ValidationError, TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"snapshot could not be encoded: {exc}") from exc


def decode_snapshot(payload: Union[str, bytes]) -> GameSnapshot:
    """Parse and validate a snapshot. Raises ProtocolError."""
    try:
        w = SnapshotWire.model_validate_json(payload)
    except ValidationError as exc:
        raise ProtocolError(f"malformed snapshot: {exc}") from exc
    return GameSnapshot(
        board=tuple(tuple(row) for row in w.board),
        game_state=_state_from_wire(w.game_state),
        search_depth=w.search_depth,
        algorithm=w.algorithm,
        human_player=w.human_player,
        last_move=Position(w.last_move.row, w.last_move.col) if w.last_move else None,
        moves_played=w.moves_played,
        color_scheme=w.color_scheme,
        window_size=WindowSize(w.window_size.width, w.window_size.height) if w.window_size else None,
        created_at=w.created_at,
        last_move_at=w.last_move_at,
    )


def encode_message(msg: Message) -> str:
    """Serialize a response or passthrough message. Raises SerializationError."""
    try:
        model = _MESSAGE_ADAPTER.validate_python(_message_to_wire(msg))
        return model.model_dump_json(by_alias=True)
    except (ValidationError, TypeError, ValueError) as exc:
        raise SerializationError(f"message could not be encoded: {exc}") from exc


def decode_message(payload: Union[str, bytes]) -> Message:
    """Parse and validate a message. Raises ProtocolError."""
    try:
        w = _MESSAGE_ADAPTER.validate_json(payload)
    except ValidationError as exc:
        raise ProtocolError(f"malformed message: {exc}") from exc
    return _message_from_wire(w)


__all__ = [
    "GameSnapshot",
    "MoveMade",
    "NoMove",
    "GameError",
    "Resize",
    "Tick",
    "ColorSchemeChanged",
    "Message",
    "SEARCH_RESPONSES",
    "encode_snapshot",
    "decode_snapshot",
    "encode_message",
    "decode_message",
]
