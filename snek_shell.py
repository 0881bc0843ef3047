# snek_shell.py
import argparse
import curses
import logging
import random
import sys
import time

from snek_logic import (Board, GameSession, GameStatus, Input, INPUT_TO_DIRECTION,
                        HEIGHT, WIDTH)
from snek_render import (Color, render, title_messages, pause_messages,
                         game_over_messages)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TERMINAL_TOO_SMALL = 1
EXIT_CURSES_ERROR = 1

# Curses key codes -> logical inputs (arrows, WASD and vi keys)
KEY_TO_INPUT = {
    curses.KEY_UP: Input.UP,
    curses.KEY_DOWN: Input.DOWN,
    curses.KEY_LEFT: Input.LEFT,
    curses.KEY_RIGHT: Input.RIGHT,
    ord('w'): Input.UP,
    ord('s'): Input.DOWN,
    ord('a'): Input.LEFT,
    ord('d'): Input.RIGHT,
    ord('k'): Input.UP,
    ord('j'): Input.DOWN,
    ord('h'): Input.LEFT,
    ord('l'): Input.RIGHT,
    ord('p'): Input.PAUSE,
    ord('q'): Input.QUIT,
    27: Input.QUIT,  # ESC
    ord('\n'): Input.CONFIRM,
    ord('\r'): Input.CONFIRM,
    curses.KEY_ENTER: Input.CONFIRM,
    ord(' '): Input.CONFIRM,
}

# Foreground per colour; background is the terminal default (-1)
COLOR_FOREGROUNDS = {
    Color.DEFAULT: curses.COLOR_WHITE,
    Color.WALL: curses.COLOR_WHITE,
    Color.HEADER: curses.COLOR_BLACK,
    Color.SNAKE_HEAD: curses.COLOR_GREEN,
    Color.SNAKE_BODY: curses.COLOR_GREEN,
    Color.SNACK: curses.COLOR_YELLOW,
    Color.POWER_ITEM: curses.COLOR_MAGENTA,
    Color.OBSTACLE: curses.COLOR_RED,
    Color.TITLE: curses.COLOR_CYAN,
    Color.TEXT: curses.COLOR_WHITE,
    Color.ALERT: curses.COLOR_RED,
}

# Filled by init_colors(); drawing falls back to plain attributes without it
COLOR_ATTRS = {}


def decode_key(key):
    """Map a curses getch() value to an Input, or None."""
    if key == -1:
        return None
    if 0 <= key < 256 and chr(key).isalpha():
        key = ord(chr(key).lower())
    return KEY_TO_INPUT.get(key)


def init_colors():
    if not curses.has_colors():
        return
    curses.start_color()
    curses.use_default_colors()
    for pair_number, (color, foreground) in enumerate(COLOR_FOREGROUNDS.items(), start=1):
        background = curses.COLOR_WHITE if color is Color.HEADER else -1
        curses.init_pair(pair_number, foreground, background)
        attr = curses.color_pair(pair_number)
        if color in (Color.SNAKE_HEAD, Color.SNACK, Color.POWER_ITEM,
                     Color.TITLE, Color.ALERT):
            attr |= curses.A_BOLD
        COLOR_ATTRS[color] = attr


def terminal_fits(stdscr):
    rows, cols = stdscr.getmaxyx()
    return rows >= HEIGHT and cols >= WIDTH


def draw_frame(stdscr, frame):
    """Write a Frame to the screen, one run of same-coloured cells at a time."""
    for r, row in enumerate(frame.rows()):
        start = 0
        while start < len(row):
            color = row[start].color
            end = start
            while end < len(row) and row[end].color is color:
                end += 1
            text = "".join(cell.glyph for cell in row[start:end])
            try:
                stdscr.addstr(r, start, text, COLOR_ATTRS.get(color, 0))
            except curses.error:
                # Writing the bottom-right cell moves the cursor off-screen
                pass
            start = end
    stdscr.refresh()


def wait_for_confirm(stdscr, frame):
    """Show a static screen until ENTER (True) or Q (False)."""
    draw_frame(stdscr, frame)
    stdscr.timeout(-1)
    while True:
        action = decode_key(stdscr.getch())
        if action is Input.CONFIRM:
            return True
        if action is Input.QUIT:
            return False


def play_session(stdscr, session):
    """Run ticks until game over. Returns False if the player quit."""
    while session.status is not GameStatus.GAME_OVER:
        # Draw first; while paused wait for a key with no timeout
        if session.status is GameStatus.PAUSED:
            draw_frame(stdscr, render(session.board, session.snake, session,
                                      pause_messages(), session.high_score))
            stdscr.timeout(-1)
        else:
            draw_frame(stdscr, render(session.board, session.snake, session,
                                      (), session.high_score))
            stdscr.timeout(session.tick_ms)

        # Input is read once per tick and applied before the step
        tick_started = time.monotonic()
        action = decode_key(stdscr.getch())

        # Quit and pause are handled between ticks, never inside one
        if action is Input.QUIT:
            logger.info("Player quit with score %d", session.score)
            return False
        if action is Input.PAUSE:
            session.toggle_pause()
            continue
        if session.status is not GameStatus.PLAYING:
            continue

        # A key press ends getch() early; sleep out the rest of the tick
        remaining_ms = session.tick_ms - int((time.monotonic() - tick_started) * 1000)
        if remaining_ms > 0:
            curses.napms(remaining_ms)

        session.step(INPUT_TO_DIRECTION.get(action))
    return True


def game_loop_shell_curses(stdscr, args):
    curses.curs_set(0)
    stdscr.keypad(True)
    init_colors()

    if not terminal_fits(stdscr):
        return EXIT_TERMINAL_TOO_SMALL

    rng = random.Random(args.seed)
    high_score = 0

    if not wait_for_confirm(stdscr, render(Board(), messages=title_messages())):
        return EXIT_OK

    while True:
        session = GameSession(high_score=high_score, rng=rng,
                              allow_reverse=not args.no_reverse)
        if not play_session(stdscr, session):
            return EXIT_OK

        result = session.result()
        high_score = session.high_score
        frame = render(session.board, session.snake, session,
                       game_over_messages(result), high_score)
        if not wait_for_confirm(stdscr, frame):
            return EXIT_OK


def build_parser():
    parser = argparse.ArgumentParser(description="snek - a terminal snake game")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for item and obstacle placement.")
    parser.add_argument("--no-reverse", action="store_true",
                        help="Ignore 180-degree turns instead of letting the snake bite its neck.")
    parser.add_argument("--log-file", default=None,
                        help="Write logs to this file (the screen belongs to the game).")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level for --log-file.")
    return parser


def configure_logging(log_file, level):
    if not log_file:
        return
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main_shell(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file, args.log_level)

    try:
        exit_code = curses.wrapper(game_loop_shell_curses, args)
    except curses.error as e:
        print(f"Curses error: {e}", file=sys.stderr)
        print("Make sure the terminal supports curses.", file=sys.stderr)
        return EXIT_CURSES_ERROR

    if exit_code == EXIT_TERMINAL_TOO_SMALL:
        print(f"Please open snek in a terminal that's at least {HEIGHT}x{WIDTH}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main_shell())
