"""Play 2048 in the terminal, or replay a scripted sequence of moves."""

from __future__ import annotations

import argparse
from typing import Dict, List

import numpy as np

from tilegame import (
    GAME_OVER_ACTIONS,
    NOTIFICATION_MESSAGES,
    Direction,
    GameSession,
    MoveResult,
)


KEY_BINDINGS: Dict[str, Direction] = {
    "w": Direction.UP,
    "a": Direction.LEFT,
    "s": Direction.DOWN,
    "d": Direction.RIGHT,
}
SCRIPT_LETTERS: Dict[str, Direction] = {
    "u": Direction.UP,
    "r": Direction.RIGHT,
    "d": Direction.DOWN,
    "l": Direction.LEFT,
}


def render(board: np.ndarray) -> str:
    """Board as a markdown-style table; empty cells stay blank."""
    lines = []
    for row in board.tolist():
        lines.append("| " + " | ".join(f"{val if val else '':^4}" for val in row) + " |")
    return "\n".join(lines)


def parse_moves(script: str) -> List[Direction]:
    """Parse either comma-separated names ("left,up") or letters ("llur")."""
    script = script.strip()
    if not script:
        return []
    if "," in script or len(script.split()) > 1:
        tokens = [token for token in script.replace(",", " ").split() if token]
        return [Direction.parse(token) for token in tokens]
    if script.upper() in Direction.__members__:
        return [Direction.parse(script)]
    moves = []
    for letter in script.lower():
        if letter not in SCRIPT_LETTERS:
            raise ValueError(f"Unsupported action: {letter!r}")
        moves.append(SCRIPT_LETTERS[letter])
    return moves


def report(result: MoveResult) -> None:
    for notification in result.notifications:
        print(NOTIFICATION_MESSAGES[notification])
    if result.game_over:
        print(f"Options: {' / '.join(GAME_OVER_ACTIONS)}")


def replay(session: GameSession, moves: List[Direction], show_every: bool) -> None:
    for number, direction in enumerate(moves, start=1):
        result = session.step(direction)
        if show_every:
            print(f"Move {number:>3}: {direction.name.lower():<5} changed={result.changed}")
            print(render(result.board))
        report(result)
        if result.game_over:
            break
    if not show_every:
        print(render(session.board))


def interactive(session: GameSession) -> None:
    print("Commands: w (up), a (left), s (down), d (right), u (undo), r (restart), q (quit)")
    print(render(session.board))
    while True:
        command = input("\nEnter move: ").lower().strip()
        if command == "q":
            print("Thanks for playing!")
            break
        if command == "u":
            undo = session.undo()
            if not undo.ok:
                print(undo.message)
            print(render(undo.board))
        elif command == "r":
            print(render(session.reset()))
        elif command in KEY_BINDINGS:
            if session.is_over:
                print("Game over: undo (u) or restart (r).")
                continue
            result = session.step(KEY_BINDINGS[command])
            if not result.changed:
                print("Nothing moved. Try another direction.")
            print(render(result.board))
            report(result)
        else:
            print("Invalid command! Use w/a/s/d to move, u to undo, r to restart or q to quit.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible tile spawns")
    parser.add_argument(
        "--moves",
        type=str,
        default="",
        help="Scripted moves to replay instead of playing, e.g. 'llur' or 'left,up'",
    )
    parser.add_argument(
        "--show-every",
        action="store_true",
        help="Print the board after every scripted move instead of only at the end",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    session = GameSession(seed=args.seed)
    if args.moves:
        replay(session, parse_moves(args.moves), args.show_every)
    else:
        interactive(session)


if __name__ == "__main__":
    main()
