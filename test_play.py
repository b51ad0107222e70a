import pytest

from play import Command, read_move
from tictactoe.types import Position


def feed(monkeypatch, *lines):
    answers = iter(lines)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))


@pytest.mark.parametrize("text,expected", [
    ("1 2", Position(1, 2)),
    ("0,0", Position(0, 0)),
    ("u", Command.UNDO),
    ("undo", Command.UNDO),
    ("q", Command.QUIT),
])
def test_read_move(monkeypatch, text, expected):
    feed(monkeypatch, text)
    assert read_move("> ") == expected


def test_read_move_retries_on_garbage(monkeypatch, capsys):
    feed(monkeypatch, "-1 -1", "middle", "2 2")
    assert read_move("> ") == Position(2, 2)
    assert "row col" in capsys.readouterr().out
