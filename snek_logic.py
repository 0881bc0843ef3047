# snek_logic.py
import logging
import random
import time
from collections import deque, namedtuple
from enum import Enum, IntEnum
from itertools import islice

import numpy as np

logger = logging.getLogger(__name__)

# --- Board constants (the board is never resized) ---
HEIGHT = 30
WIDTH = 100
INITIAL_LENGTH = 3

# --- Scoring and speed ---
SNACK_POINTS = 10
SNACK_GROWTH = 3
POWER_ITEM_POINTS = 75
INITIAL_TICK = 0.1   # seconds per tick
TICK_STEP = 0.002    # each snack shaves this much off the tick
MIN_TICK = 0.04
POISON_DURATION = 5.0

# --- Item refresh cadence (wall-clock seconds) ---
SNACK_REFRESH_SECONDS = 5.0
SNACKS_PER_REFRESH = 3
POWER_REFRESH_SECONDS = 10.0
POWER_ITEM_SCORE_THRESHOLD = 100

# --- Obstacles ---
OBSTACLE_SCORE_THRESHOLD = 50
OBSTACLE_SCORE_STEP = 50

# --- Placement attempt budgets ---
ITEM_ATTEMPTS = 100
OBSTACLE_ATTEMPTS = 3


class CellTag(IntEnum):
    EMPTY = 0
    SNAKE_HEAD = 1
    SNAKE_BODY = 2
    SNACK = 3
    POWER_ITEM = 4
    OBSTACLE = 5


# Tags the board itself may hold; head/body are derived from the Snake.
BOARD_TAGS = frozenset({CellTag.EMPTY, CellTag.SNACK,
                        CellTag.POWER_ITEM, CellTag.OBSTACLE})


class Direction(Enum):
    NORTH = (-1, 0)
    SOUTH = (1, 0)
    EAST = (0, 1)
    WEST = (0, -1)

    @property
    def delta(self):
        return self.value

    @property
    def opposite(self):
        dr, dc = self.value
        return Direction((-dr, -dc))


class Input(Enum):
    """Logical inputs, already decoded from raw keys by the shell."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PAUSE = "pause"
    QUIT = "quit"
    CONFIRM = "confirm"


INPUT_TO_DIRECTION = {
    Input.UP: Direction.NORTH,
    Input.DOWN: Direction.SOUTH,
    Input.LEFT: Direction.WEST,
    Input.RIGHT: Direction.EAST,
}


class GameStatus(Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"


GameResult = namedtuple(
    "GameResult", ["score", "high_score", "new_high_score", "reason"])


class Board:
    """Fixed HEIGHT x WIDTH grid of item tags.

    The outermost ring is a permanent wall. Snake occupancy is never stored
    here, only snacks, power-items and obstacles.
    """

    def __init__(self):
        self.height = HEIGHT
        self.width = WIDTH
        self.cells = np.zeros((self.height, self.width), dtype=np.int8)

    def contains(self, pos):
        row, col = pos
        return 0 <= row < self.height and 0 <= col < self.width

    def is_interior(self, pos):
        row, col = pos
        return 1 <= row <= self.height - 2 and 1 <= col <= self.width - 2

    def _check(self, pos):
        if not self.contains(pos):
            raise ValueError(f"Position {pos} is outside the board.")

    def get(self, pos) -> CellTag:
        self._check(pos)
        return CellTag(int(self.cells[pos]))

    def set(self, pos, tag: CellTag):
        self._check(pos)
        if tag not in BOARD_TAGS:
            raise ValueError(f"{tag!r} cannot be stored on the board.")
        self.cells[pos] = tag

    def clear(self, pos):
        self.set(pos, CellTag.EMPTY)

    def count(self, tag: CellTag) -> int:
        return int(np.count_nonzero(self.cells == tag))


class Snake:
    """
    Body segments as (row, col), head at index 0 and tail at the end.
    """

    def __init__(self, positions, facing=Direction.EAST, allow_reverse=True):
        if not positions:
            raise ValueError("A snake needs at least one segment.")
        self.positions = deque(positions)
        self.facing = facing
        # The classic game lets the player turn straight back into the neck
        self.allow_reverse = allow_reverse
        self.pending_growth = 0

    @classmethod
    def spawn(cls, length=INITIAL_LENGTH, allow_reverse=True):
        """Build a horizontal snake at the board centre, facing east."""
        row, col = HEIGHT // 2, WIDTH // 2
        positions = [(row, col - i) for i in range(length)]
        return cls(positions, Direction.EAST, allow_reverse)

    @property
    def head(self):
        return self.positions[0]

    @property
    def tail(self):
        return self.positions[-1]

    def __len__(self):
        return len(self.positions)

    def __iter__(self):
        return iter(self.positions)

    def occupies(self, pos):
        return pos in self.positions

    def advance(self, direction=None):
        """Move one cell, turning first if a direction is given.

        Returns the new head position.
        """
        if direction is not None:
            reversing = len(self.positions) > 1 and direction is self.facing.opposite
            if self.allow_reverse or not reversing:
                self.facing = direction

        dr, dc = self.facing.delta
        row, col = self.head
        self.positions.appendleft((row + dr, col + dc))

        if self.pending_growth:
            self.pending_growth -= 1
        else:
            self.positions.pop()
        return self.head

    def grow(self, n):
        if n < 0:
            raise ValueError(f"Cannot grow by a negative amount ({n}).")
        self.pending_growth += n

    def collides_with_self(self):
        head = self.positions[0]
        return any(segment == head for segment in islice(self.positions, 1, None))

    def in_bounds(self, height=HEIGHT, width=WIDTH):
        row, col = self.head
        return 1 <= row <= height - 2 and 1 <= col <= width - 2


# --- Item placement ---

# (dr, dc) offsets from the centre cell: horizontal or vertical bar
OBSTACLE_SHAPES = ((0, 1), (1, 0))


def place_random(board, snake_head, tag, attempts=ITEM_ATTEMPTS, rng=None):
    """Put `tag` on a random empty interior cell.

    Gives up after `attempts` draws and returns None; otherwise returns the
    chosen position.
    """
    rng = rng or random
    # Bounded: a full board just gets no item this time
    for _ in range(attempts):
        pos = (rng.randint(1, board.height - 2), rng.randint(1, board.width - 2))
        if pos == snake_head or board.get(pos) is not CellTag.EMPTY:
            continue
        board.set(pos, tag)
        return pos
    return None


def place_obstacle(board, snake, rng=None, attempts=OBSTACLE_ATTEMPTS):
    """Drop a 3-cell straight obstacle somewhere clear of the snake.

    Returns the three cells, or None if every attempt was rejected.
    """
    rng = rng or random
    for _ in range(attempts):
        dr, dc = rng.choice(OBSTACLE_SHAPES)
        # Keep the whole bar inside the interior
        row = rng.randint(1 + dr, board.height - 2 - dr)
        col = rng.randint(1 + dc, board.width - 2 - dc)
        cells = [(row - dr, col - dc), (row, col), (row + dr, col + dc)]

        if any(snake.occupies(cell) or board.get(cell) is not CellTag.EMPTY
               for cell in cells):
            continue
        for cell in cells:
            board.set(cell, CellTag.OBSTACLE)
        return cells
    return None


class GameSession:
    """
    One play-through: owns the board, the snake, score, speed and timers.

    The high score handed in by the caller is carried forward and updated
    when the game ends.
    """

    def __init__(self, high_score=0, rng=None, clock=time.monotonic,
                 allow_reverse=True):
        self.rng = rng or random.Random()
        self.clock = clock

        self.board = Board()
        self.snake = Snake.spawn(allow_reverse=allow_reverse)

        self.score = 0
        self.tick_interval = INITIAL_TICK
        self.status = GameStatus.PLAYING
        self.death_reason = None

        self.poisoned = False
        self.poisoned_at = None
        self.saved_tick_interval = None

        self.last_obstacle_score = 0
        self.high_score = high_score
        self.new_high_score = False

        now = self.clock()
        self.paused_at = None
        self.last_snack_refresh = now
        self.last_power_refresh = now

        self._place_snacks()
        logger.info("New session started (high score %d)", self.high_score)

    @property
    def tick_ms(self):
        return max(1, int(round(self.tick_interval * 1000)))

    def step(self, direction=None):
        """Run one tick. Does nothing unless the game is being played."""
        if self.status is not GameStatus.PLAYING:
            return self.status

        # 1. Poison wears off before the move, so this tick runs at the restored speed
        now = self.clock()
        self._expire_poison(now)

        # 2. Move, then resolve whatever item sits under the new head
        head = self.snake.advance(direction)
        self._consume(head, now)

        # 3. Collisions: own body first, then the wall ring
        if self.status is GameStatus.PLAYING and self.snake.collides_with_self():
            self._end("self")
        if self.status is GameStatus.PLAYING and not self.snake.in_bounds():
            self._end("wall")

        # 4. Still alive: maybe a new obstacle, then timed item refills
        if self.status is GameStatus.PLAYING:
            self._maybe_spawn_obstacle()
            self.replenish(now)
        return self.status

    def toggle_pause(self):
        if self.status is GameStatus.PLAYING:
            self.status = GameStatus.PAUSED
            self.paused_at = self.clock()
        elif self.status is GameStatus.PAUSED:
            # Time spent paused does not count towards any timer
            paused_for = self.clock() - self.paused_at
            self.last_snack_refresh += paused_for
            self.last_power_refresh += paused_for
            if self.poisoned:
                self.poisoned_at += paused_for
            self.paused_at = None
            self.status = GameStatus.PLAYING
        return self.status

    def replenish(self, now):
        # Snacks refill on their own clock, whatever the score
        if now - self.last_snack_refresh >= SNACK_REFRESH_SECONDS:
            self._place_snacks()
            self.last_snack_refresh = now

        if self.score > POWER_ITEM_SCORE_THRESHOLD and \
                now - self.last_power_refresh >= POWER_REFRESH_SECONDS:
            pos = place_random(self.board, self.snake.head, CellTag.POWER_ITEM,
                               ITEM_ATTEMPTS, self.rng)
            logger.debug("Power-item refresh placed at %s", pos)
            self.last_power_refresh = now

    def result(self):
        return GameResult(self.score, self.high_score, self.new_high_score,
                          self.death_reason)

    def _place_snacks(self):
        for _ in range(SNACKS_PER_REFRESH):
            place_random(self.board, self.snake.head, CellTag.SNACK,
                         ITEM_ATTEMPTS, self.rng)

    def _expire_poison(self, now):
        if self.poisoned and now - self.poisoned_at >= POISON_DURATION:
            self.tick_interval = self.saved_tick_interval
            self.poisoned = False
            self.poisoned_at = None
            self.saved_tick_interval = None
            logger.debug("Poison wore off, tick back to %.3fs", self.tick_interval)

    def _consume(self, head, now):
        if not self.board.contains(head):
            return
        tag = self.board.get(head)

        if tag is CellTag.SNACK:
            self.score += SNACK_POINTS
            # The floor only caps the speed-up; a poisoned tick already
            # under it stays where it is
            self.tick_interval = max(min(MIN_TICK, self.tick_interval),
                                     self.tick_interval - TICK_STEP)
            self.board.clear(head)
            self.snake.grow(SNACK_GROWTH)
            logger.debug("Snack at %s, score %d", head, self.score)
        elif tag is CellTag.POWER_ITEM:
            self.score += POWER_ITEM_POINTS
            if not self.poisoned:
                self.saved_tick_interval = self.tick_interval
                self.poisoned = True
                self.poisoned_at = now
            self.tick_interval /= 2
            self.board.clear(head)
            logger.debug("Power-item at %s, score %d, tick %.3fs",
                         head, self.score, self.tick_interval)
        elif tag is CellTag.OBSTACLE:
            self._end("obstacle")
        elif tag is CellTag.EMPTY:
            pass
        else:
            raise ValueError(f"Unexpected tag {tag!r} on the board at {head}.")

    def _maybe_spawn_obstacle(self):
        if self.score < OBSTACLE_SCORE_THRESHOLD:
            return
        if self.score - self.last_obstacle_score < OBSTACLE_SCORE_STEP:
            return
        cells = place_obstacle(self.board, self.snake, self.rng)
        self.last_obstacle_score = self.score
        if cells is None:
            logger.debug("No room for an obstacle at score %d", self.score)
        else:
            logger.info("Obstacle spawned at %s", cells)

    def _end(self, reason):
        self.status = GameStatus.GAME_OVER
        self.death_reason = reason
        if self.score > self.high_score:
            self.high_score = self.score
            self.new_high_score = True
        logger.info("Game over (%s) with score %d", reason, self.score)
