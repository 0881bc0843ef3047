import curses
import io
import random
import unittest
from types import SimpleNamespace
from unittest import mock

import snek_shell
from snek_logic import Board, CellTag, Direction, GameSession, GameStatus, Input, Snake
from snek_render import render, title_messages


def fake_screen(keys, size=(30, 100)):
    stdscr = mock.MagicMock()
    stdscr.getmaxyx.return_value = size
    stdscr.getch.side_effect = list(keys)
    return stdscr


def new_session():
    session = GameSession(rng=random.Random(2), clock=lambda: 0.0)
    session.board.cells[:] = CellTag.EMPTY
    return session


class TestDecodeKey(unittest.TestCase):
    def test_arrows_and_letters(self):
        self.assertIs(snek_shell.decode_key(curses.KEY_UP), Input.UP)
        self.assertIs(snek_shell.decode_key(curses.KEY_LEFT), Input.LEFT)
        self.assertIs(snek_shell.decode_key(ord('d')), Input.RIGHT)
        self.assertIs(snek_shell.decode_key(ord('W')), Input.UP)
        self.assertIs(snek_shell.decode_key(ord('j')), Input.DOWN)

    def test_commands(self):
        self.assertIs(snek_shell.decode_key(ord('p')), Input.PAUSE)
        self.assertIs(snek_shell.decode_key(ord('Q')), Input.QUIT)
        self.assertIs(snek_shell.decode_key(27), Input.QUIT)
        self.assertIs(snek_shell.decode_key(ord('\n')), Input.CONFIRM)
        self.assertIs(snek_shell.decode_key(curses.KEY_ENTER), Input.CONFIRM)

    def test_nothing_or_unknown(self):
        self.assertIsNone(snek_shell.decode_key(-1))
        self.assertIsNone(snek_shell.decode_key(ord('x')))
        self.assertIsNone(snek_shell.decode_key(curses.KEY_F1))


class TestDrawing(unittest.TestCase):
    def test_draw_frame_writes_runs_and_refreshes(self):
        stdscr = fake_screen([])
        frame = render(Board(), messages=title_messages())
        snek_shell.draw_frame(stdscr, frame)

        stdscr.refresh.assert_called_once()
        rows_written = {call.args[0] for call in stdscr.addstr.call_args_list}
        self.assertEqual(rows_written, set(range(frame.height)))
        # Bottom row is a single run of wall blocks
        stdscr.addstr.assert_any_call(frame.height - 1, 0, "█" * frame.width, mock.ANY)

    def test_draw_frame_ignores_curses_errors(self):
        stdscr = fake_screen([])
        stdscr.addstr.side_effect = curses.error
        snek_shell.draw_frame(stdscr, render(Board()))
        stdscr.refresh.assert_called_once()

    def test_terminal_fits(self):
        self.assertTrue(snek_shell.terminal_fits(fake_screen([], (30, 100))))
        self.assertTrue(snek_shell.terminal_fits(fake_screen([], (50, 200))))
        self.assertFalse(snek_shell.terminal_fits(fake_screen([], (29, 100))))
        self.assertFalse(snek_shell.terminal_fits(fake_screen([], (30, 99))))


class TestScreens(unittest.TestCase):
    def test_wait_for_confirm(self):
        frame = render(Board())
        stdscr = fake_screen([ord('x'), -1, ord('\n')])
        self.assertTrue(snek_shell.wait_for_confirm(stdscr, frame))
        stdscr.timeout.assert_called_with(-1)

        stdscr = fake_screen([ord('q')])
        self.assertFalse(snek_shell.wait_for_confirm(stdscr, frame))


@mock.patch("snek_shell.curses.napms")
class TestPlaySession(unittest.TestCase):
    def test_ticks_until_quit(self, napms):
        session = new_session()
        row, col = session.snake.head
        stdscr = fake_screen([-1, -1, ord('q')])

        self.assertFalse(snek_shell.play_session(stdscr, session))
        self.assertEqual(session.snake.head, (row, col + 2))
        stdscr.timeout.assert_called_with(session.tick_ms)

    def test_direction_keys_steer(self, napms):
        session = new_session()
        row, col = session.snake.head
        stdscr = fake_screen([curses.KEY_UP, -1, ord('q')])

        snek_shell.play_session(stdscr, session)
        self.assertEqual(session.snake.head, (row - 2, col))
        self.assertIs(session.snake.facing, Direction.NORTH)

    def test_pause_stops_the_snake(self, napms):
        session = new_session()
        row, col = session.snake.head
        stdscr = fake_screen([ord('p'), ord('x'), ord('p'), -1, ord('q')])

        snek_shell.play_session(stdscr, session)
        self.assertEqual(session.snake.head, (row, col + 1))
        self.assertIs(session.status, GameStatus.PLAYING)

    def test_returns_true_on_game_over(self, napms):
        session = new_session()
        session.snake = Snake([(1, 50), (2, 50), (3, 50)], Direction.NORTH)
        stdscr = fake_screen([-1])

        self.assertTrue(snek_shell.play_session(stdscr, session))
        self.assertIs(session.status, GameStatus.GAME_OVER)


@mock.patch("snek_shell.init_colors")
@mock.patch("snek_shell.curses.curs_set")
class TestGameLoop(unittest.TestCase):
    def args(self, **overrides):
        values = dict(seed=1, no_reverse=False, log_file=None, log_level="INFO")
        values.update(overrides)
        return SimpleNamespace(**values)

    def test_small_terminal(self, curs_set, init_colors):
        stdscr = fake_screen([], (24, 80))
        code = snek_shell.game_loop_shell_curses(stdscr, self.args())
        self.assertEqual(code, snek_shell.EXIT_TERMINAL_TOO_SMALL)
        stdscr.getch.assert_not_called()

    def test_quit_from_title(self, curs_set, init_colors):
        stdscr = fake_screen([ord('q')])
        self.assertEqual(snek_shell.game_loop_shell_curses(stdscr, self.args()), snek_shell.EXIT_OK)

    @mock.patch("snek_shell.play_session")
    def test_high_score_carries_into_the_next_game(self, play_session, curs_set, init_colors):
        sessions = []

        def finish(stdscr, session):
            sessions.append(session)
            session.score = 40 * len(sessions)
            session._end("wall")
            return True

        play_session.side_effect = finish
        stdscr = fake_screen([ord('\n'), ord('\n'), ord('q')])

        snek_shell.game_loop_shell_curses(stdscr, self.args(no_reverse=True))

        self.assertEqual(len(sessions), 2)
        self.assertEqual(sessions[0].high_score, 40)
        self.assertEqual(sessions[1].high_score, 80)
        self.assertTrue(sessions[1].new_high_score)
        self.assertFalse(sessions[1].snake.allow_reverse)


class TestMain(unittest.TestCase):
    def test_parser_defaults(self):
        args = snek_shell.build_parser().parse_args([])
        self.assertIsNone(args.seed)
        self.assertFalse(args.no_reverse)
        self.assertIsNone(args.log_file)
        self.assertEqual(args.log_level, "INFO")

    @mock.patch("snek_shell.curses.wrapper", return_value=snek_shell.EXIT_TERMINAL_TOO_SMALL)
    def test_small_terminal_message(self, wrapper):
        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            code = snek_shell.main_shell(["--seed", "3"])
        self.assertEqual(code, 1)
        self.assertIn("at least 30x100", out.getvalue())
        self.assertEqual(wrapper.call_args.args[1].seed, 3)

    @mock.patch("snek_shell.curses.wrapper", side_effect=curses.error("no terminal"))
    def test_curses_failure(self, wrapper):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            code = snek_shell.main_shell([])
        self.assertEqual(code, snek_shell.EXIT_CURSES_ERROR)
        self.assertIn("no terminal", err.getvalue())

    @mock.patch("snek_shell.logging.basicConfig")
    def test_logging_only_with_a_log_file(self, basic_config):
        snek_shell.configure_logging(None, "INFO")
        basic_config.assert_not_called()
        snek_shell.configure_logging("snek.log", "DEBUG")
        self.assertEqual(basic_config.call_args.kwargs["filename"], "snek.log")


if __name__ == '__main__':
    unittest.main()
