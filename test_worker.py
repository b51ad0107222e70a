import time

import pytest

from tictactoe.engine import board_from_rows, empty_board
from tictactoe.types import Draw, Error, ErrorInfo, ErrorKind, Player, Position, Thinking, Waiting, Winner
from tictactoe.wire import GameError, GameSnapshot, MoveMade, NoMove, decode_message, encode_snapshot
from tictactoe.worker import SearchWorker, compute_response, handle_request

X, O = "X", "O"


def crashing_handler(payload):
    # Module level so a spawned process can unpickle it.
    raise RuntimeError("search process crashed")


def request(rows, state, depth=9, algorithm="negamax_alpha_beta"):
    return encode_snapshot(GameSnapshot(board=board_from_rows(rows), game_state=state,
                                        search_depth=depth, algorithm=algorithm))


def test_handle_request_returns_the_winning_move():
    payload = request([[X, X, None], [O, O, None], [None] * 3], Thinking(Player.O))
    assert decode_message(handle_request(payload)) == MoveMade(Position(1, 2))


@pytest.mark.parametrize("algorithm", ["negamax", "minimax", "minimax_alpha_beta"])
def test_handle_request_honours_algorithm(algorithm):
    payload = request([[X, X, None], [O, O, None], [X, O, None]], Thinking(Player.X), algorithm=algorithm)
    assert decode_message(handle_request(payload)) == MoveMade(Position(0, 2))


@pytest.mark.parametrize("state", [Winner(Player.X), Draw()])
def test_finished_game_gets_no_move(state):
    payload = request([[X, X, X], [O, O, None], [None] * 3], state)
    assert decode_message(handle_request(payload)) == NoMove()


def test_full_board_gets_no_move():
    payload = request([[X, O, X], [X, O, O], [O, X, X]], Thinking(Player.X))
    assert decode_message(handle_request(payload)) == NoMove()


def test_error_state_is_a_protocol_error():
    payload = request([[None] * 3] * 3, Error(ErrorInfo("x", ErrorKind.GAME_LOGIC)))
    msg = decode_message(handle_request(payload))
    assert isinstance(msg, GameError)
    assert msg.info.kind is ErrorKind.PROTOCOL


def test_unknown_algorithm_is_a_protocol_error():
    payload = request([[None] * 3] * 3, Thinking(Player.X), algorithm="coin_flip")
    msg = decode_message(handle_request(payload))
    assert isinstance(msg, GameError)
    assert msg.info.kind is ErrorKind.PROTOCOL


def test_garbage_request_never_raises():
    msg = decode_message(handle_request("{not json"))
    assert isinstance(msg, GameError)
    assert msg.info.kind is ErrorKind.PROTOCOL
    assert msg.info.recoverable


def test_compute_response_for_waiting_state():
    snapshot = GameSnapshot(board=empty_board(), game_state=Waiting(Player.X), search_depth=1)
    assert isinstance(compute_response(snapshot), MoveMade)


def test_inline_worker_queues_results():
    worker = SearchWorker("inline")
    payload = request([[X, X, None], [O, O, None], [None] * 3], Thinking(Player.O))
    worker.send(payload, 7)
    results = worker.poll()
    assert len(results) == 1
    generation, response = results[0]
    assert generation == 7
    assert decode_message(response) == MoveMade(Position(1, 2))
    assert worker.poll() == []


def test_thread_worker_delivers_off_thread():
    with SearchWorker("thread") as worker:
        worker.send(request([[X, X, None], [O, O, None], [None] * 3], Thinking(Player.O)), 3)
        result = worker.wait(timeout=10)
    assert result is not None
    assert result[0] == 3
    assert decode_message(result[1]) == MoveMade(Position(1, 2))


def test_wait_times_out():
    assert SearchWorker("inline").wait(timeout=0.01) is None


def test_unknown_backend():
    with pytest.raises(ValueError):
        SearchWorker("gpu")


def test_process_worker_delivers_from_spawned_process():
    with SearchWorker("process") as worker:
        worker.send(request([[X, X, None], [O, O, None], [None] * 3], Thinking(Player.O)), 5)
        result = worker.wait(timeout=60)
    assert result is not None
    assert result[0] == 5
    assert decode_message(result[1]) == MoveMade(Position(1, 2))
    assert worker._pool is None


def test_process_worker_reports_a_crash():
    with SearchWorker("process", handler=crashing_handler) as worker:
        worker.send(request([[None] * 3] * 3, Thinking(Player.X)), 8)
        result = worker.wait(timeout=60)
    assert result is not None
    generation, response = result
    assert generation == 8
    msg = decode_message(response)
    assert isinstance(msg, GameError)
    assert msg.info.kind is ErrorKind.WORKER_COMMUNICATION
    assert "search process crashed" in msg.info.message


def test_thread_worker_reports_a_crash():
    worker = SearchWorker("thread", handler=crashing_handler)
    worker.send(request([[None] * 3] * 3, Thinking(Player.X)), 2)
    generation, response = worker.wait(timeout=10)
    assert generation == 2
    assert decode_message(response).info.kind is ErrorKind.WORKER_COMMUNICATION


def test_oversized_depth_is_capped_on_large_boards():
    board = [[None] * 5 for _ in range(5)]
    board[0][0] = X
    payload = request(board, Thinking(Player.O), depth=25)
    started = time.perf_counter()
    msg = decode_message(handle_request(payload))
    assert isinstance(msg, MoveMade)
    assert time.perf_counter() - started < 5.0
