"""Rules engine for the 2048 sliding-tile puzzle.

Boards are 4x4 integer numpy arrays (0 = empty, otherwise a power of two).
Every engine function returns a new board and leaves its input untouched;
GameSession is the only stateful piece.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Sequence, Tuple

import numpy as np

GRID_SIZE = 4
WINNING_TILE = 2048
SPAWN_VALUES = (2, 4)
SPAWN_PROBS = (0.9, 0.1)


class Direction(IntEnum):
    """Move direction; values match the action ids clients send."""

    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @classmethod
    def parse(cls, value) -> "Direction":
        """Accept a Direction, an action id or a direction name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unsupported action: {value!r}") from None
        if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            try:
                return cls(int(value))
            except ValueError:
                raise ValueError(f"Unsupported action: {value!r}") from None
        raise ValueError(f"Unsupported action: {value!r}")


# ----------------------------- Board helpers -------------------------------

def empty_board(size: int = GRID_SIZE) -> np.ndarray:
    return np.zeros((size, size), dtype=int)


def _is_tile_value(value: int) -> bool:
    return value == 0 or (value >= 2 and value & (value - 1) == 0)


def as_board(cells, size: int = GRID_SIZE) -> np.ndarray:
    """Copy nested rows into a board, rejecting bad shapes and tile values."""
    try:
        raw = np.array(cells)
    except (TypeError, ValueError, OverflowError):
        raise ValueError("Board must be a square grid of integers") from None
    if raw.shape != (size, size):
        raise ValueError(f"Board must be {size}x{size}, got shape {raw.shape}")
    for value in raw.flat:
        # floats and bools are not tile values
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ValueError(f"Invalid tile value: {value!r}")
        if not _is_tile_value(int(value)):
            raise ValueError(f"Invalid tile value: {int(value)}")
    try:
        return raw.astype(int)
    except OverflowError:
        raise ValueError("Tile value too large for the board") from None


def board_to_list(board: np.ndarray) -> list:
    """Plain nested int lists, safe for rendering and JSON."""
    return [[int(cell) for cell in row] for row in np.asarray(board).tolist()]


def boards_equal(a: np.ndarray, b: np.ndarray) -> bool:
    return bool(np.array_equal(a, b))


# ----------------------------- Merge transform -----------------------------

def compress(line: Sequence[int]) -> np.ndarray:
    """Slide the non-zero values of a line to the front."""
    values = [int(v) for v in line if v != 0]
    values += [0] * (len(line) - len(values))
    return np.array(values, dtype=int)


def merge_line(line: Sequence[int]) -> np.ndarray:
    """Collapse one line toward index 0.

    Equal neighbours merge left to right, each tile at most once per move:
    [2, 2, 2, 0] -> [4, 2, 0, 0] and [2, 2, 2, 2] -> [4, 4, 0, 0].
    """
    row = compress(line)
    for j in range(len(row) - 1):
        if row[j] != 0 and row[j] == row[j + 1]:
            row[j] *= 2
            # the zero left behind stops the doubled tile from merging again
            row[j + 1] = 0
    return compress(row)


# ------------------------------- Move engine -------------------------------

def _move_left(board: np.ndarray) -> np.ndarray:
    return np.array([merge_line(row) for row in board], dtype=int)


def _move_right(board: np.ndarray) -> np.ndarray:
    return np.array([merge_line(row[::-1])[::-1] for row in board], dtype=int)


def apply_move(board: np.ndarray, direction) -> np.ndarray:
    """Return the board after sliding every line in ``direction`` (no spawn)."""
    direction = Direction.parse(direction)
    board = np.asarray(board, dtype=int)
    if direction == Direction.LEFT:
        return _move_left(board)
    if direction == Direction.RIGHT:
        return _move_right(board)
    if direction == Direction.UP:
        return _move_left(board.T).T.copy()
    return _move_right(board.T).T.copy()


# --------------------------------- Spawner ---------------------------------

def spawn_tile(board: np.ndarray, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Write a 2 (90%) or 4 (10%) into a random empty cell of a copy of ``board``.

    A full board comes back unchanged.
    """
    rng = rng if rng is not None else np.random.default_rng()
    new_board = np.array(board, dtype=int)
    empty_tiles = np.argwhere(new_board == 0)
    if len(empty_tiles) == 0:
        return new_board
    y, x = empty_tiles[rng.integers(len(empty_tiles))]
    new_board[y, x] = rng.choice(SPAWN_VALUES, p=SPAWN_PROBS)
    return new_board


def new_board(rng: Optional[np.random.Generator] = None, size: int = GRID_SIZE) -> np.ndarray:
    """A fresh board with two spawned tiles."""
    rng = rng if rng is not None else np.random.default_rng()
    return spawn_tile(spawn_tile(empty_board(size), rng), rng)


# ------------------------- Terminal-state detector -------------------------

def is_game_over(board: np.ndarray) -> bool:
    """True when the board is full and no two orthogonal neighbours match."""
    board = np.asarray(board)
    if 0 in board:
        return False
    rows, cols = board.shape
    for i in range(rows):
        for j in range(cols):
            if i < rows - 1 and board[i][j] == board[i + 1][j]:
                return False
            if j < cols - 1 and board[i][j] == board[i][j + 1]:
                return False
    return True


def has_won(board: np.ndarray) -> bool:
    return bool((np.asarray(board) >= WINNING_TILE).any())


# ------------------------------ Game session -------------------------------

class SessionState(Enum):
    PLAYING = "playing"
    OVER = "over"


class Notification(Enum):
    GAME_OVER = "game_over"
    WIN = "win"
    NOTHING_TO_UNDO = "nothing_to_undo"


GAME_OVER_ACTIONS = ("undo", "restart")
NOTIFICATION_MESSAGES = {
    Notification.GAME_OVER: "No more moves left!",
    Notification.WIN: f"Congratulations, you reached {WINNING_TILE}!",
    Notification.NOTHING_TO_UNDO: "No moves to undo",
}


@dataclass(eq=False)
class MoveResult:
    board: np.ndarray
    changed: bool
    game_over: bool
    won: bool
    notifications: Tuple[Notification, ...] = field(default_factory=tuple)


@dataclass(eq=False)
class UndoResult:
    board: np.ndarray
    ok: bool
    message: str = ""


class GameSession:
    """One game: current board, a single undo snapshot and the over flag."""

    def __init__(
        self,
        board=None,
        *,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        if board is None:
            self.reset()
        else:
            self.current = as_board(board)
            self.previous = None
            self.state = SessionState.PLAYING
            self._win_announced = False

    @property
    def board(self) -> np.ndarray:
        return self.current.copy()

    @property
    def is_over(self) -> bool:
        return self.state is SessionState.OVER

    def reset(self) -> np.ndarray:
        """Start over with a fresh two-tile board and an empty undo slot."""
        self.current = new_board(self.rng)
        self.previous = None
        self.state = SessionState.PLAYING
        self._win_announced = False
        return self.board

    def step(self, direction) -> MoveResult:
        """Apply one player move, spawning a tile only if the board changed."""
        direction = Direction.parse(direction)
        if self.is_over:
            return MoveResult(board=self.board, changed=False, game_over=True, won=has_won(self.current))

        # the snapshot is taken even when the move turns out to be a no-op
        self.previous = self.current.copy()
        candidate = apply_move(self.current, direction)
        changed = not boards_equal(candidate, self.current)
        if changed:
            self.current = spawn_tile(candidate, self.rng)

        notifications = []
        game_over = is_game_over(self.current)
        if game_over:
            self.state = SessionState.OVER
            notifications.append(Notification.GAME_OVER)
        won = has_won(self.current)
        if won and not self._win_announced:
            self._win_announced = True
            notifications.append(Notification.WIN)

        return MoveResult(
            board=self.board,
            changed=changed,
            game_over=game_over,
            won=won,
            notifications=tuple(notifications),
        )

    def undo(self) -> UndoResult:
        """Restore the pre-move board once; the snapshot is single-use."""
        if self.previous is None:
            return UndoResult(
                board=self.board,
                ok=False,
                message=NOTIFICATION_MESSAGES[Notification.NOTHING_TO_UNDO],
            )
        self.current = self.previous
        self.previous = None
        self.state = SessionState.PLAYING
        return UndoResult(board=self.board, ok=True)
