import json

import pytest

from tictactoe.engine import board_from_rows, empty_board
from tictactoe.errors import ProtocolError, SerializationError
from tictactoe.types import (
    Draw,
    Error,
    ErrorInfo,
    ErrorKind,
    Player,
    Position,
    Thinking,
    Waiting,
    WindowSize,
    Winner,
)
from tictactoe.wire import (
    ColorSchemeChanged,
    GameError,
    GameSnapshot,
    MoveMade,
    NoMove,
    Resize,
    Tick,
    decode_message,
    decode_snapshot,
    encode_message,
    encode_snapshot,
)

X, O = "X", "O"

STATES = [
    Waiting(Player.X),
    Thinking(Player.O),
    Winner(Player.X),
    Draw(),
    Error(ErrorInfo("bad move", ErrorKind.INVALID_MOVE)),
    Error(ErrorInfo("worker died", ErrorKind.WORKER_COMMUNICATION, recoverable=False)),
]


@pytest.mark.parametrize("state", STATES)
def test_snapshot_round_trip_for_every_state(state):
    snapshot = GameSnapshot(
        board=board_from_rows([[X, None, O], [None, X, None], [O, None, None]]),
        game_state=state,
        search_depth=5,
        human_player=Player.X,
        last_move=Position(2, 0),
        moves_played=4,
        color_scheme="Dark",
        window_size=WindowSize(1024, 768),
        created_at=1700000000.0,
        last_move_at=1700000012.5,
    )
    assert decode_snapshot(encode_snapshot(snapshot)) == snapshot


@pytest.mark.parametrize("size", [3, 4, 5])
def test_snapshot_round_trip_minimal(size):
    snapshot = GameSnapshot(board=empty_board(size), game_state=Thinking(Player.X), search_depth=size * size)
    assert decode_snapshot(encode_snapshot(snapshot)) == snapshot


def test_snapshot_uses_camel_case_tags():
    snapshot = GameSnapshot(board=empty_board(), game_state=Error(ErrorInfo("oops", ErrorKind.TIMEOUT)),
                            search_depth=9)
    data = json.loads(encode_snapshot(snapshot))
    assert data["searchDepth"] == 9
    assert data["gameState"] == {
        "type": "Error",
        "errorInfo": {"message": "oops", "errorKind": "TimeoutError", "recoverable": True},
    }
    assert data["board"][0] == [None, None, None]


@pytest.mark.parametrize("msg", [
    MoveMade(Position(1, 2)),
    NoMove(),
    GameError(ErrorInfo("no luck", ErrorKind.GAME_LOGIC)),
    GameError(ErrorInfo("gone", ErrorKind.WORKER_COMMUNICATION, recoverable=True)),
    Resize(640, 480),
    Tick(12.25),
    ColorSchemeChanged("Dark"),
])
def test_message_round_trip(msg):
    assert decode_message(encode_message(msg)) == msg


def test_game_error_wire_shape():
    data = json.loads(encode_message(GameError(ErrorInfo("boom", ErrorKind.WORKER_COMMUNICATION))))
    assert data == {"type": "GameError", "message": "boom", "errorKind": "WorkerCommunicationError",
                    "recoverable": True}


@pytest.mark.parametrize("payload", [
    "",
    "not json",
    "{}",
    '{"type": "Teleport"}',
    '{"type": "MoveMade"}',
    '{"type": "MoveMade", "position": {"row": -1, "col": 0}}',
    '{"type": "GameError", "message": "x", "errorKind": "Gremlins", "recoverable": true}',
    '{"type": "NoMove", "extra": 1}',
])
def test_malformed_message_is_protocol_error(payload):
    with pytest.raises(ProtocolError):
        decode_message(payload)


@pytest.mark.parametrize("payload", [
    "[]",
    '{"board": [[null, null], [null, null]], "gameState": {"type": "Draw"}, "searchDepth": 1}',
    '{"board": [[null, null, null], [null, null], [null, null, null]], "gameState": {"type": "Draw"}, "searchDepth": 1}',
    '{"board": [["Z", null, null], [null, null, null], [null, null, null]], "gameState": {"type": "Draw"}, "searchDepth": 1}',
    '{"board": [[null, null, null], [null, null, null], [null, null, null]], "gameState": {"type": "Waiting"}, "searchDepth": 1}',
])
def test_malformed_snapshot_is_protocol_error(payload):
    with pytest.raises(ProtocolError):
        decode_snapshot(payload)


def test_unencodable_snapshot_is_serialization_error():
    bad = GameSnapshot(board=((None, "Q", None),) * 3, game_state=Waiting(Player.X), search_depth=3)
    with pytest.raises(SerializationError):
        encode_snapshot(bad)

    with pytest.raises(SerializationError):
        encode_snapshot(GameSnapshot(board=empty_board(), game_state="Waiting", search_depth=3))


def test_unencodable_message_is_serialization_error():
    with pytest.raises(SerializationError):
        encode_message("MoveMade")
