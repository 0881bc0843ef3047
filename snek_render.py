# snek_render.py
from enum import Enum
from typing import NamedTuple, Tuple

from snek_logic import CellTag, HEIGHT

# --- Glyphs ---
WALL_GLYPH = "█"  # solid block


class Color(Enum):
    DEFAULT = "default"
    WALL = "wall"
    HEADER = "header"
    SNAKE_HEAD = "snake_head"
    SNAKE_BODY = "snake_body"
    SNACK = "snack"
    POWER_ITEM = "power_item"
    OBSTACLE = "obstacle"
    TITLE = "title"
    TEXT = "text"
    ALERT = "alert"


# Every tag has a style, so lookups never fall through
TAG_STYLES = {
    CellTag.EMPTY: (" ", Color.DEFAULT),
    CellTag.SNAKE_HEAD: ("@", Color.SNAKE_HEAD),
    CellTag.SNAKE_BODY: ("o", Color.SNAKE_BODY),
    CellTag.SNACK: ("*", Color.SNACK),
    CellTag.POWER_ITEM: ("$", Color.POWER_ITEM),
    CellTag.OBSTACLE: ("#", Color.OBSTACLE),
}

# SGR sequences for sinks that take raw ANSI text instead of curses
ANSI_CODES = {
    Color.DEFAULT: "\x1b[0m",
    Color.WALL: "\x1b[0;37m",
    Color.HEADER: "\x1b[1;30;47m",
    Color.SNAKE_HEAD: "\x1b[1;32m",
    Color.SNAKE_BODY: "\x1b[0;32m",
    Color.SNACK: "\x1b[1;33m",
    Color.POWER_ITEM: "\x1b[1;35m",
    Color.OBSTACLE: "\x1b[0;31m",
    Color.TITLE: "\x1b[1;36m",
    Color.TEXT: "\x1b[0;37m",
    Color.ALERT: "\x1b[1;31m",
}
ANSI_RESET = "\x1b[0m"
ANSI_HOME = "\x1b[H"


class StyledCell(NamedTuple):
    glyph: str
    color: Color


class Frame(NamedTuple):
    """One full screen of styled cells, flattened row by row."""
    height: int
    width: int
    cells: Tuple[StyledCell, ...]

    def rows(self):
        for r in range(self.height):
            yield self.cells[r * self.width:(r + 1) * self.width]

    def to_ansi(self):
        parts = [ANSI_HOME]
        for row in self.rows():
            current = None
            for cell in row:
                if cell.color is not current:
                    parts.append(ANSI_CODES[cell.color])
                    current = cell.color
                parts.append(cell.glyph)
            parts.append(ANSI_RESET + "\r\n")
        return "".join(parts)


def _write_text(grid, row, col, text, color):
    for offset, char in enumerate(text):
        grid[row][col + offset] = StyledCell(char, color)


def _draw_header(grid, width, score, high_score, poisoned):
    _write_text(grid, 0, 2, f" Score: {score} ", Color.HEADER)

    if high_score > 0:
        text = f" High score: {high_score} "
        _write_text(grid, 0, width - 2 - len(text), text, Color.HEADER)

    if poisoned:
        text = " POISONED "
        _write_text(grid, 0, (width - len(text)) // 2, text, Color.ALERT)


def _draw_message(grid, height, width, row, text, color):
    if not 1 <= row <= height - 2:
        return
    text = text[:width - 2]
    col = 1 + (width - 2 - len(text)) // 2
    _write_text(grid, row, col, text, color)


def render(board, snake=None, session=None, messages=(), high_score=0):
    """Build the frame for the current state without touching it.

    `snake` and `session` may be None (title screen). Priority inside the
    border: message text, snake head, snake body, board item, empty.

    The header (score, high score, poison marker) is written into the top
    border row so the frame stays HEIGHT x WIDTH; row 0 is therefore not
    solid wall where header text sits. The other three edges always are.
    """
    height, width = board.height, board.width
    wall = StyledCell(WALL_GLYPH, Color.WALL)

    grid = []
    for r in range(height):
        row = []
        for c in range(width):
            if r in (0, height - 1) or c in (0, width - 1):
                row.append(wall)
            else:
                glyph, color = TAG_STYLES[board.get((r, c))]
                row.append(StyledCell(glyph, color))
        grid.append(row)

    if snake is not None:
        segments = list(snake)
        # Body first so the head wins if it overlaps its own body
        for tag, cells in ((CellTag.SNAKE_BODY, segments[1:]),
                           (CellTag.SNAKE_HEAD, segments[:1])):
            glyph, color = TAG_STYLES[tag]
            for pos in cells:
                if board.is_interior(pos):
                    grid[pos[0]][pos[1]] = StyledCell(glyph, color)

    score = session.score if session is not None else 0
    poisoned = session.poisoned if session is not None else False
    _draw_header(grid, width, score, high_score, poisoned)

    for row, text, color in messages:
        _draw_message(grid, height, width, row, text, color)

    return Frame(height, width, tuple(cell for row in grid for cell in row))


# --- Overlay messages for the title / pause / game-over screens ---

MIDDLE_ROW = HEIGHT // 2

DEATH_REASONS = {
    "wall": "You ran into the wall.",
    "self": "You bit your own tail.",
    "obstacle": "You crashed into an obstacle.",
}


def title_messages():
    return [
        (MIDDLE_ROW - 4, "S N E K", Color.TITLE),
        (MIDDLE_ROW - 1, "Arrow keys or WASD to steer, P to pause, Q to quit", Color.TEXT),
        (MIDDLE_ROW, "* grows you, $ is worth a lot but speeds you up, # is deadly", Color.TEXT),
        (MIDDLE_ROW + 3, "Press ENTER to start", Color.ALERT),
    ]


def pause_messages():
    return [
        (MIDDLE_ROW - 1, "PAUSED", Color.ALERT),
        (MIDDLE_ROW + 1, "Press P to continue", Color.TEXT),
    ]


def game_over_messages(result):
    messages = [
        (MIDDLE_ROW - 3, "GAME OVER", Color.ALERT),
        (MIDDLE_ROW - 1, DEATH_REASONS.get(result.reason, ""), Color.TEXT),
        (MIDDLE_ROW, f"Final score: {result.score}", Color.TEXT),
    ]
    if result.new_high_score:
        messages.append((MIDDLE_ROW + 1, "New high score!", Color.TITLE))
    messages.append(
        (MIDDLE_ROW + 3, "Press ENTER to play again or Q to quit", Color.TEXT))
    return messages
