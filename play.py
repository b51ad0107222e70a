from __future__ import annotations

import argparse
import enum
import logging
from typing import Union

from config import TicTacToeConfig, set_config, setup_logging
from tictactoe.engine import render_board
from tictactoe.game import GameController
from tictactoe.types import Draw, Error, Position, Waiting, Winner

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Play tic-tac-toe against the search engine in the terminal")
    ap.add_argument("--human", default=None, help="Human seat: X, O or none (AI vs AI)")
    ap.add_argument("--first", default=None, help="Player who opens the game (X or O)")
    ap.add_argument("--depth", type=int, default=None, help="Maximum search depth in plies")
    ap.add_argument("--algorithm", default=None,
                    help="negamax_alpha_beta, negamax, minimax or minimax_alpha_beta")
    ap.add_argument("--backend", default=None, help="Search worker backend: thread, process or inline")
    ap.add_argument("--size", type=int, default=None, help="Board side length (3-5)")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return ap.parse_args()


def build_config(args: argparse.Namespace) -> TicTacToeConfig:
    cfg = TicTacToeConfig.from_env()
    updates = {
        "engine": {k: v for k, v in (("search_depth", args.depth), ("algorithm", args.algorithm),
                                     ("worker_backend", args.backend)) if v is not None},
        "rules": {k: v for k, v in (("board_size", args.size), ("first_player", args.first),
                                    ("human_player", args.human)) if v is not None},
        "logging": {"log_level": args.log_level} if args.log_level else {},
    }
    cfg.update_from_dict(updates)
    return cfg


class Command(enum.Enum):
    UNDO = "undo"
    QUIT = "quit"


def read_move(prompt: str) -> Union[Position, Command]:
    """Parse 'row col' (zero-based), 'u' (undo) or 'q' (quit)."""
    while True:
        text = input(prompt).strip().lower()
        if text in ("q", "quit", "exit"):
            return Command.QUIT
        if text in ("u", "undo"):
            return Command.UNDO
        parts = text.replace(",", " ").split()
        if len(parts) == 2 and all(p.isdigit() for p in parts):
            return Position(int(parts[0]), int(parts[1]))
        print("Enter a move as 'row col', 'u' to undo or 'q' to quit.")


def main() -> None:
    args = parse_args()
    cfg = set_config(build_config(args))
    setup_logging(cfg.logging.log_level)

    with GameController(cfg) as game:
        while True:
            state = game.wait(timeout=cfg.engine.worker_timeout_seconds or None)
            game.tick()
            print()
            print(render_board(game.board))

            if isinstance(state, Winner):
                print(f"{state.player} wins.")
                break
            if isinstance(state, Draw):
                print("Draw.")
                break
            if isinstance(state, Error):
                print(f"{state.info.kind.value}: {state.info.message}")
                game.recover()
                continue
            if isinstance(state, Waiting):
                move = read_move(f"{state.player} to move> ")
                if move is Command.QUIT:
                    break
                if move is Command.UNDO:
                    if not game.undo():
                        print("Nothing to undo.")
                    continue
                game.play(move)


if __name__ == "__main__":
    main()
